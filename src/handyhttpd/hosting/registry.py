"""Process-wide table of hosted servers, keyed by port."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from handyhttpd.domain.models import MountView
from handyhttpd.errors import PortExhausted
from handyhttpd.hosting.server import HostedServer

logger = logging.getLogger(__name__)

ServerFactory = Callable[[int], HostedServer]


class ServerRegistry:
    """Maps each port to the HostedServer bound to it.

    Remembers the last port a server was created or reused on, so a
    request that does not name a port lands where the previous one did.
    The registry itself does no locking; callers serialize mutations
    (see ``CommandDispatcher``).
    """

    def __init__(
        self,
        default_port: int | None = None,
        server_factory: ServerFactory | None = None,
    ) -> None:
        self._servers: dict[int, HostedServer] = {}
        self._default_port = default_port
        self._factory: ServerFactory = server_factory or HostedServer
        self.last_port = 0

    def __len__(self) -> int:
        return len(self._servers)

    def __contains__(self, port: object) -> bool:
        return port in self._servers

    def resolve_port(self, port: int) -> int:
        """The port a request for ``port`` refers to (0 stays 0 when nothing was used yet)."""
        return port or self.last_port

    def find(self, port: int) -> tuple[HostedServer | None, bool]:
        """Look up the server for ``port``, defaulting 0 to the last used port."""
        server = self._servers.get(self.resolve_port(port))
        return server, server is not None

    def get_or_create(self, port: int) -> HostedServer:
        """Return the server for ``port``, binding a new one if needed.

        Raises:
            PortExhausted: If ``port`` is 0 and there is neither a last
                           used port nor a default port.
            BindError: If a new server cannot bind its port. Nothing is
                       registered in that case.
        """
        resolved = port or self.last_port or self._default_port
        if not resolved:
            raise PortExhausted("no port given and no previous or default port to use")

        server = self._servers.get(resolved)
        if server is None:
            server = self._factory(resolved)
            server.ensure_listening()
            self._servers[resolved] = server
            logger.info("Created server on port %d", resolved)
        self.last_port = resolved
        return server

    def snapshot(self) -> list[MountView]:
        """A consistent copy of every port's mounts, ordered by port."""
        return [self._servers[port].view() for port in sorted(self._servers)]

    async def stop_all(self) -> None:
        """Stop every hosted server concurrently."""
        servers = list(self._servers.values())
        results = await asyncio.gather(*(s.stop() for s in servers), return_exceptions=True)
        for server, result in zip(servers, results):
            if isinstance(result, Exception):
                logger.error("Error stopping server on port %d: %s", server.port, result)
        logger.info("Stopped %d hosted server(s)", len(servers))
