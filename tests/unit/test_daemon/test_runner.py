"""Tests for the daemon/client startup branches."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Iterator
from unittest.mock import AsyncMock, patch

import pytest

from handyhttpd.config.settings import Settings
from handyhttpd.control.channel import ClientRole, DaemonRole, try_bind_control_channel
from handyhttpd.daemon import NO_SERVER_MESSAGE, build_registry, run, run_client, run_daemon
from handyhttpd.domain.models import Request
from handyhttpd.errors import BadRequest, CommandRejected, DaemonUnreachable


@pytest.fixture
def settings(socket_path: str) -> Settings:
    settings = Settings()
    settings.control.socket_path = socket_path
    settings.hosting.host = "127.0.0.1"
    return settings


@pytest.fixture
def daemon_role(socket_path: str) -> Iterator[DaemonRole]:
    role = try_bind_control_channel(socket_path)
    assert isinstance(role, DaemonRole)
    yield role
    role.release()


class TestBuildRegistry:
    def test_uses_hosting_settings(self, settings: Settings) -> None:
        settings.hosting.default_port = 8123
        registry = build_registry(settings)
        assert registry.resolve_port(0) == 0
        server = registry._factory(8123)
        assert server.port == 8123
        assert server._host == "127.0.0.1"


class TestRunDaemon:
    @pytest.mark.asyncio
    async def test_list_without_daemon(
        self, daemon_role: DaemonRole, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        request = Request(root_dir="/srv/a", alias="a", list_mounts=True)
        assert await run_daemon(daemon_role, request, settings) == 0
        assert capsys.readouterr().out == f"{NO_SERVER_MESSAGE}\n"
        assert daemon_role.released
        assert not Path(daemon_role.socket_path).exists()

    @pytest.mark.asyncio
    async def test_quit_without_daemon(
        self, daemon_role: DaemonRole, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        request = Request(root_dir="/srv/a", alias="a", quit=True)
        assert await run_daemon(daemon_role, request, settings) == 0
        assert NO_SERVER_MESSAGE in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failed_startup_request_releases_socket(
        self,
        daemon_role: DaemonRole,
        settings: Settings,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        request = Request(root_dir=str(tmp_path / "missing"), alias="missing")
        assert await run_daemon(daemon_role, request, settings) == 1
        assert "not a directory" in capsys.readouterr().err
        assert daemon_role.released

    @pytest.mark.asyncio
    async def test_empty_alias_startup_request(
        self, daemon_role: DaemonRole, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        request = Request(root_dir="/", alias="")
        assert await run_daemon(daemon_role, request, settings) == 1
        assert "alias" in capsys.readouterr().err
        assert daemon_role.released


class TestRunClient:
    @pytest.mark.asyncio
    async def test_prints_reply(
        self, settings: Settings, socket_path: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch(
            "handyhttpd.daemon.CommandForwarder.forward",
            new=AsyncMock(return_value="9696: a -> /srv/a\n"),
        ):
            status = await run_client(
                ClientRole(socket_path), Request(root_dir="/srv/a", alias="a", list_mounts=True), settings
            )
        assert status == 0
        assert capsys.readouterr().out == "9696: a -> /srv/a\n"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            DaemonUnreachable("cannot reach the daemon"),
            CommandRejected("bad request: x", 400),
            BadRequest("alias: String should have at least 1 character"),
        ],
    )
    async def test_errors_exit_non_zero(
        self,
        settings: Settings,
        socket_path: str,
        capsys: pytest.CaptureFixture[str],
        error: Exception,
    ) -> None:
        with patch(
            "handyhttpd.daemon.CommandForwarder.forward", new=AsyncMock(side_effect=error)
        ):
            status = await run_client(
                ClientRole(socket_path), Request(root_dir="/srv/a", alias="a"), settings
            )
        assert status == 1
        assert str(error) in capsys.readouterr().err


class TestRun:
    def test_list_with_no_daemon(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        status = run(Request(root_dir="/srv/a", alias="a", list_mounts=True), settings)
        assert status == 0
        assert capsys.readouterr().out == f"{NO_SERVER_MESSAGE}\n"
        assert not Path(settings.control.socket_path).exists()

    def test_stale_socket_reports_unreachable(
        self, settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        stale = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        stale.bind(settings.control.socket_path)
        stale.close()
        status = run(Request(root_dir="/srv/a", alias="a", list_mounts=True), settings)
        assert status == 1
        assert "stale socket" in capsys.readouterr().err
