"""Orderly daemon shutdown on ``quit`` or SIGINT/SIGTERM."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from handyhttpd.control.server import CommandServer
    from handyhttpd.hosting.registry import ServerRegistry

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """Collects shutdown triggers and tears the daemon down in order.

    The control channel is closed before any hosted server is stopped, so
    a late ``add`` cannot bring a listener back up halfway through.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._torn_down = False
        self.reason = ""

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    def request_shutdown(self, reason: str = "requested") -> None:
        """Trigger shutdown. Later calls are ignored."""
        if self._event.is_set():
            return
        logger.info("Shutdown requested (%s)", reason)
        self.reason = reason
        self._event.set()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)

    async def wait(self) -> None:
        await self._event.wait()

    async def teardown(self, control: CommandServer, registry: ServerRegistry) -> None:
        """Stop the control channel, then every hosted server. Runs once."""
        if self._torn_down:
            return
        self._torn_down = True
        await control.stop()
        await registry.stop_all()
        logger.info("Daemon stopped (%s)", self.reason or "no reason given")
