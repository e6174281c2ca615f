"""Startup of a handyhttpd invocation: become the daemon, or talk to it.

    run(request, settings)
      -> try_bind_control_channel()
           DaemonRole -> run_daemon(): apply request locally, serve commands
           ClientRole -> run_client(): forward request, print the reply
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys

from handyhttpd.config.settings import Settings
from handyhttpd.control.channel import ClientRole, DaemonRole, try_bind_control_channel
from handyhttpd.control.dispatcher import CommandDispatcher
from handyhttpd.control.forwarder import CommandForwarder
from handyhttpd.control.server import CommandServer
from handyhttpd.domain.models import Request
from handyhttpd.errors import HandyError
from handyhttpd.hosting.registry import ServerRegistry
from handyhttpd.hosting.server import HostedServer
from handyhttpd.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

NO_SERVER_MESSAGE = "No server is running"


def build_registry(settings: Settings) -> ServerRegistry:
    hosting = settings.hosting
    factory = functools.partial(
        HostedServer,
        host=hosting.host,
        html=hosting.html,
        graceful_timeout=hosting.graceful_timeout,
        log_level=settings.logging.server_level,
    )
    return ServerRegistry(default_port=hosting.default_port, server_factory=factory)


async def run_daemon(role: DaemonRole, request: Request, settings: Settings) -> int:
    """Serve as the daemon until ``quit`` or a termination signal."""
    if request.list_mounts or request.quit:
        # Binding succeeded, so there is nothing to list or stop.
        role.release()
        print(NO_SERVER_MESSAGE)
        return 0

    registry = build_registry(settings)
    dispatcher = CommandDispatcher(registry)
    try:
        reply = await dispatcher.apply(request.to_command())
    except HandyError as e:
        logger.error("Cannot apply startup request: %s", e)
        print(f"handyhttpd: {e}", file=sys.stderr)
        await registry.stop_all()
        role.release()
        return 1
    print(reply, end="", flush=True)

    coordinator = ShutdownCoordinator()
    control = CommandServer(role, dispatcher, coordinator, log_level=settings.logging.server_level)
    coordinator.install_signal_handlers()
    control.start()
    logger.info("Daemon running, control socket %s", role.socket_path)
    try:
        await coordinator.wait()
    finally:
        await coordinator.teardown(control, registry)
        coordinator.remove_signal_handlers()
    return 0


async def run_client(role: ClientRole, request: Request, settings: Settings) -> int:
    """Forward ``request`` to the running daemon and print its reply."""
    forwarder = CommandForwarder(role.socket_path, timeout=settings.control.forward_timeout)
    try:
        body = await forwarder.forward(request)
    except HandyError as e:
        print(f"handyhttpd: {e}", file=sys.stderr)
        return 1
    sys.stdout.write(body)
    sys.stdout.flush()
    return 0


def run(request: Request, settings: Settings) -> int:
    """Run one invocation and return its exit status.

    Raises:
        BindError: If the control socket cannot be bound for a reason
                   other than another daemon holding it.
    """
    role = try_bind_control_channel(settings.control.socket_path)
    if isinstance(role, ClientRole):
        return asyncio.run(run_client(role, request, settings))
    try:
        return asyncio.run(run_daemon(role, request, settings))
    finally:
        role.release()
