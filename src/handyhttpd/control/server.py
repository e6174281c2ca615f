"""Control-channel HTTP server, run by the daemon on the Unix socket.

    GET /list                                -> "port: alias -> dir" lines
    GET /quit                                -> "handyhttpd is quitting now"
    GET /?verb=&alias=&dir=&port=            -> "added dir D as /A on port P"

Errors come back as plain text so the forwarder can print them as-is:
400 for malformed commands, 409 when a port cannot be used.
"""

from __future__ import annotations

import asyncio
import logging

import uvicorn
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import PlainTextResponse

from handyhttpd.control.channel import DaemonRole
from handyhttpd.control.dispatcher import CommandDispatcher
from handyhttpd.control.protocol import LIST_PATH, MOUNT_PATH, QUIT_PATH, decode_mount_command
from handyhttpd.errors import BadRequest, BindError, PortExhausted
from handyhttpd.hosting.server import ManagedServer
from handyhttpd.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

QUIT_REPLY = "handyhttpd is quitting now\n"


def create_app(dispatcher: CommandDispatcher, coordinator: ShutdownCoordinator) -> FastAPI:
    """Create the control-channel application."""
    app = FastAPI(
        title="handyhttpd control",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.exception_handler(BadRequest)
    async def bad_request(request: Request, exc: BadRequest) -> PlainTextResponse:
        logger.warning("Rejected command %s: %s", request.url.query, exc)
        return PlainTextResponse(f"bad request: {exc}\n", status_code=400)

    @app.exception_handler(BindError)
    @app.exception_handler(PortExhausted)
    async def port_unavailable(request: Request, exc: Exception) -> PlainTextResponse:
        logger.warning("Command %s failed: %s", request.url.query, exc)
        return PlainTextResponse(f"{exc}\n", status_code=409)

    @app.get(LIST_PATH, response_class=PlainTextResponse)
    async def list_mounts() -> str:
        return dispatcher.listing()

    @app.get(QUIT_PATH, response_class=PlainTextResponse)
    async def quit_daemon(background_tasks: BackgroundTasks) -> str:
        logger.info("Quit requested over the control channel")
        background_tasks.add_task(_shutdown_after_reply, coordinator)
        return QUIT_REPLY

    @app.get(MOUNT_PATH, response_class=PlainTextResponse)
    async def mount(request: Request) -> str:
        logger.info("Handling command %s", request.url.query)
        command = decode_mount_command(request.query_params)
        return await dispatcher.apply(command)

    return app


async def _shutdown_after_reply(coordinator: ShutdownCoordinator) -> None:
    # Runs as a background task, i.e. after the quit reply has been sent.
    coordinator.request_shutdown("quit command")


class CommandServer:
    """Serves the control application on the daemon's bound socket."""

    def __init__(
        self,
        role: DaemonRole,
        dispatcher: CommandDispatcher,
        coordinator: ShutdownCoordinator,
        log_level: str = "warning",
    ) -> None:
        self._role = role
        self.app = create_app(dispatcher, coordinator)
        config = uvicorn.Config(
            self.app,
            uds=role.socket_path,
            lifespan="off",
            log_level=log_level,
            access_log=False,
        )
        self._server = ManagedServer(config)
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._server.serve(sockets=[self._role.sock]), name="handyhttpd-control"
        )
        logger.info("Accepting commands on %s", self._role.socket_path)

    async def wait_started(self, timeout: float = 5.0) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not self._server.started:
            if self._task is None or self._task.done() or loop.time() > deadline:
                return False
            await asyncio.sleep(0.01)
        return True

    async def stop(self) -> None:
        """Stop accepting commands and remove the control socket."""
        if self._task is not None:
            await self.wait_started()
            self._server.should_exit = True
            await asyncio.wait({self._task})
            self._task = None
        self._role.release()
        logger.info("Control channel closed")
