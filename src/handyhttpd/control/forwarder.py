"""Client side of the control channel.

Sends one command to the running daemon over its Unix socket and hands
back the reply body. One request, one reply, no retries.
"""

from __future__ import annotations

import logging

import httpx

from handyhttpd.control.protocol import BASE_URL, encode_request
from handyhttpd.domain.models import Request
from handyhttpd.errors import CommandRejected, DaemonUnreachable

logger = logging.getLogger(__name__)


class CommandForwarder:
    """Relays a Request to the daemon listening on ``socket_path``."""

    def __init__(
        self,
        socket_path: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._socket_path = socket_path
        self._timeout = timeout
        self._transport = transport

    async def forward(self, request: Request) -> str:
        """Send ``request`` to the daemon and return its reply body.

        Raises:
            DaemonUnreachable: If the exchange with the daemon fails.
            CommandRejected: If the daemon answers with a non-200 status.
            BadRequest: If the request has no alias or root dir to send.
        """
        path, params = encode_request(request)
        transport = self._transport or httpx.AsyncHTTPTransport(uds=self._socket_path)
        async with httpx.AsyncClient(
            transport=transport, base_url=BASE_URL, timeout=self._timeout
        ) as client:
            try:
                resp = await client.get(path, params=params)
            except httpx.TransportError as e:
                logger.error("Cannot connect to daemon at %s: %s", self._socket_path, e)
                raise DaemonUnreachable(
                    f"cannot reach the handyhttpd daemon at {self._socket_path}: {e}. "
                    f"If no daemon is running, remove the stale socket file.",
                    socket_path=self._socket_path,
                ) from e

        if resp.status_code != 200:
            logger.warning("Daemon denied %s (status %d)", path, resp.status_code)
            raise CommandRejected(
                resp.text.rstrip("\n") or f"daemon denied the request (status {resp.status_code})",
                status_code=resp.status_code,
            )
        logger.debug("Daemon replied to %s: %s", path, resp.text.rstrip("\n"))
        return resp.text
