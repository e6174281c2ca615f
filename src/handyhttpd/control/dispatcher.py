"""The single path through which commands change the daemon's state."""

from __future__ import annotations

import asyncio
import logging

from handyhttpd.control.protocol import format_confirmation, format_listing
from handyhttpd.domain.models import MountCommand, Verb
from handyhttpd.hosting.registry import ServerRegistry
from handyhttpd.hosting.server import HostedServer

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Applies mount commands to a ServerRegistry one at a time.

    Both the daemon's own startup request and every command arriving on
    the control channel go through ``apply``, which holds a lock for the
    whole resolve-mount-listen sequence. Nothing inside the critical
    section awaits network I/O.
    """

    def __init__(self, registry: ServerRegistry) -> None:
        self.registry = registry
        self._lock = asyncio.Lock()

    async def apply(self, command: MountCommand) -> str:
        """Apply ``command`` and return the confirmation line for the requester.

        Raises:
            BadRequest: If the alias or directory is invalid.
            BindError: If a new port cannot be bound.
            PortExhausted: If no port can be resolved for an add.
        """
        async with self._lock:
            if command.verb is Verb.ADD:
                return self._add(command)
            return self._remove(command)

    def _add(self, command: MountCommand) -> str:
        HostedServer.validate_mount(command.alias, command.root_dir)
        server = self.registry.get_or_create(command.port)
        server.add_mount(command.alias, command.root_dir)
        server.ensure_listening()
        logger.info("Added %s as /%s on port %d", command.root_dir, command.alias, server.port)
        return format_confirmation(command, server.port)

    def _remove(self, command: MountCommand) -> str:
        server, found = self.registry.find(command.port)
        port = self.registry.resolve_port(command.port)
        if not found:
            logger.info("Remove /%s: no server on port %d", command.alias, port)
            return f"no server on port {port}, nothing removed\n"
        server.remove_mount(command.alias)
        return format_confirmation(command, server.port)

    def listing(self) -> str:
        """Plain-text listing of every port and its mounts."""
        views = self.registry.snapshot()
        logger.info("Listing %d port(s)", len(views))
        return format_listing(views)
