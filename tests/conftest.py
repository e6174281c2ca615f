"""Shared test fixtures for the handyhttpd test suite.

Provides served directories, control socket paths, free ports and a
registry whose servers never open real listeners.
"""

from __future__ import annotations

import socket
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

from handyhttpd.control.dispatcher import CommandDispatcher
from handyhttpd.hosting.registry import ServerRegistry
from handyhttpd.hosting.server import HostedServer


# ---------------------------------------------------------------------------
# Filesystem Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def site_a(tmp_path: Path) -> Path:
    """A directory with an index page and a text file."""
    root = tmp_path / "a"
    root.mkdir()
    (root / "index.html").write_text("<h1>site a</h1>")
    (root / "hello.txt").write_text("hello from a")
    return root


@pytest.fixture
def site_b(tmp_path: Path) -> Path:
    root = tmp_path / "b"
    root.mkdir()
    (root / "hello.txt").write_text("hello from b")
    return root


@pytest.fixture
def socket_path() -> Iterator[str]:
    """A control socket path short enough for AF_UNIX (pytest's tmp_path may not be)."""
    with tempfile.TemporaryDirectory(prefix="hh") as d:
        yield str(Path(d) / "handyhttpd.sock")


@pytest.fixture
def free_port() -> int:
    """A TCP port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


# ---------------------------------------------------------------------------
# Registry Fixtures
# ---------------------------------------------------------------------------


class OfflineHostedServer(HostedServer):
    """A HostedServer that records ensure_listening() instead of binding."""

    def __init__(self, port: int) -> None:
        super().__init__(port, host="127.0.0.1")
        self.listen_calls = 0
        self._fake_listening = False

    @property
    def listening(self) -> bool:
        return self._fake_listening

    def ensure_listening(self) -> None:
        self.listen_calls += 1
        self._fake_listening = True

    async def stop(self) -> None:
        self._fake_listening = False


@pytest.fixture
def registry() -> ServerRegistry:
    """A registry defaulting to port 9696 whose servers never bind."""
    return ServerRegistry(default_port=9696, server_factory=OfflineHostedServer)


@pytest.fixture
def dispatcher(registry: ServerRegistry) -> CommandDispatcher:
    return CommandDispatcher(registry)
