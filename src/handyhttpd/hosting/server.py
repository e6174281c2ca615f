"""One HTTP file server bound to one port.

Each HostedServer owns a FastAPI application and the uvicorn server that
runs it. Directories are exposed as Starlette ``StaticFiles`` mounts under
``/<alias>``; the mount table can change while the server is running.

    GET /            -> plain-text list of the aliases served on this port
    GET /<alias>/... -> files below the aliased directory
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from pathlib import Path
from typing import Iterator

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.routing import BaseRoute, Mount

from handyhttpd.domain.models import MountView
from handyhttpd.errors import BadRequest, BindError

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128

# Starlette compiles "{name}" in a mount path as a path parameter.
ALIAS_FORBIDDEN = ("/", "{", "}")


class ManagedServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the daemon.

    Several of these run in one event loop next to the control server;
    none of them may install (or re-raise) process signal handlers.
    """

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


def bind_tcp_socket(host: str, port: int) -> socket.socket:
    """Bind a listening TCP socket, raising BindError if the port is taken."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError as e:
        sock.close()
        raise BindError(
            f"cannot listen on {host}:{port}: {e.strerror or e}", port=port
        ) from e
    return sock


class HostedServer:
    """A listener on one port serving a mutable set of ``alias -> root_dir`` mounts.

    Mount changes swap the application's route list as a whole, so a
    request that already matched one alias keeps running against the
    handler it matched while other aliases are added, retargeted or
    removed.
    """

    def __init__(
        self,
        port: int,
        host: str = "0.0.0.0",
        html: bool = True,
        graceful_timeout: float = 5.0,
        log_level: str = "warning",
    ) -> None:
        self.port = port
        self._host = host
        self._html = html
        self._graceful_timeout = graceful_timeout
        self._log_level = log_level
        self._mounts: dict[str, str] = {}
        self._routes: dict[str, Mount] = {}
        self._server: ManagedServer | None = None
        self._task: asyncio.Task[None] | None = None
        self._sock: socket.socket | None = None

        self.app = FastAPI(
            title=f"handyhttpd port {port}",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )

        @self.app.get("/", response_class=PlainTextResponse)
        async def index() -> str:
            if not self._mounts:
                return f"nothing is served on port {self.port}\n"
            return "".join(f"/{alias}/\n" for alias in self._mounts)

        self._base_routes: list[BaseRoute] = list(self.app.router.routes)

    # -------------------------------------------------------------------
    # Mount table
    # -------------------------------------------------------------------

    @property
    def mounts(self) -> dict[str, str]:
        """A copy of the current ``alias -> root_dir`` table."""
        return dict(self._mounts)

    @staticmethod
    def validate_mount(alias: str, root_dir: str) -> None:
        """Raise BadRequest unless ``alias`` is one literal path segment and ``root_dir`` a directory."""
        if not alias or alias in (".", "..") or any(c in alias for c in ALIAS_FORBIDDEN):
            raise BadRequest(f"invalid alias: {alias!r}")
        if not Path(root_dir).is_dir():
            raise BadRequest(f"not a directory: {root_dir}")

    def add_mount(self, alias: str, root_dir: str) -> None:
        """Serve ``root_dir`` under ``/alias/``, replacing any previous target.

        A directory is served under one alias per port; mounting it under
        a new alias drops the old one.

        Raises:
            BadRequest: If the alias is not a single path segment or the
                        directory does not exist.
        """
        self.validate_mount(alias, root_dir)

        for other, other_root in list(self._mounts.items()):
            if other != alias and other_root == root_dir:
                logger.info("Port %d: moving %s from /%s to /%s", self.port, root_dir, other, alias)
                del self._mounts[other]
                del self._routes[other]

        self._mounts[alias] = root_dir
        self._routes[alias] = Mount(
            f"/{alias}",
            app=StaticFiles(directory=root_dir, html=self._html),
            name=alias,
        )
        self._install_routes()
        logger.info("Port %d: serving %s as /%s", self.port, root_dir, alias)

    def remove_mount(self, alias: str) -> bool:
        """Stop serving ``/alias/``. Returns False if it was not mounted."""
        if alias not in self._mounts:
            logger.debug("Port %d: no mount /%s to remove", self.port, alias)
            return False
        root_dir = self._mounts.pop(alias)
        del self._routes[alias]
        self._install_routes()
        logger.info("Port %d: no longer serving %s as /%s", self.port, root_dir, alias)
        return True

    def view(self) -> MountView:
        return MountView(
            port=self.port,
            listening=self.listening,
            mounts=tuple(self._mounts.items()),
        )

    def _install_routes(self) -> None:
        self.app.router.routes = [*self._base_routes, *self._routes.values()]

    # -------------------------------------------------------------------
    # Listener lifecycle
    # -------------------------------------------------------------------

    @property
    def listening(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_listening(self) -> None:
        """Bind the port and start serving, unless already serving.

        Must be called from within the daemon's running event loop.

        Raises:
            BindError: If the port is in use by something else.
        """
        if self.listening:
            return

        sock = bind_tcp_socket(self._host, self.port)
        self.port = sock.getsockname()[1]
        config = uvicorn.Config(
            self.app,
            host=self._host,
            port=self.port,
            lifespan="off",
            log_level=self._log_level,
            access_log=False,
            timeout_graceful_shutdown=self._graceful_timeout,
        )
        self._sock = sock
        self._server = ManagedServer(config)
        self._task = asyncio.get_running_loop().create_task(
            self._server.serve(sockets=[sock]), name=f"handyhttpd-port-{self.port}"
        )
        self._task.add_done_callback(self._on_serve_done)
        logger.info("Listening on %s:%d", self._host, self.port)

    async def wait_started(self, timeout: float = 5.0) -> bool:
        """Wait until uvicorn reports it is accepting connections."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while self._server is not None and not self._server.started:
            if self._task is None or self._task.done() or loop.time() > deadline:
                return False
            await asyncio.sleep(0.01)
        return self._server is not None

    async def stop(self) -> None:
        """Stop accepting connections and release the port.

        In-flight requests get up to ``graceful_timeout`` seconds to finish.
        """
        if self._server is None:
            return
        server, task = self._server, self._task
        # uvicorn skips its shutdown (and keeps the socket) if told to exit mid-startup.
        await self.wait_started()
        server.should_exit = True
        if task is not None:
            await asyncio.wait({task})
        if self._sock is not None:
            self._sock.close()
        self._server = None
        self._task = None
        self._sock = None
        logger.info("Stopped listening on port %d", self.port)

    def _on_serve_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Server on port %d failed: %s", self.port, exc)
