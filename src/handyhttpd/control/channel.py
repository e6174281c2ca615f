"""Daemon election on the well-known control socket.

Whoever manages to ``bind()`` the Unix socket path is the daemon; every
other invocation finds the address in use and becomes a client that
forwards its command. The kernel's exclusive bind is the only lock.

A socket file left behind by a daemon that crashed still makes the bind
fail, so later invocations act as clients and report the daemon as
unreachable. The file is not removed automatically.
"""

from __future__ import annotations

import errno
import logging
import os
import socket
from dataclasses import dataclass, field

from handyhttpd.errors import BindError

logger = logging.getLogger(__name__)


@dataclass
class DaemonRole:
    """This process owns the control socket and must serve it."""

    socket_path: str
    sock: socket.socket = field(repr=False)
    released: bool = False

    def release(self) -> None:
        """Close the control socket and remove its file. Safe to call twice."""
        if self.released:
            return
        self.released = True
        self.sock.close()
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass
        logger.info("Released control socket %s", self.socket_path)


@dataclass(frozen=True)
class ClientRole:
    """Another process owns the control socket; forward commands to it."""

    socket_path: str


def try_bind_control_channel(socket_path: str) -> DaemonRole | ClientRole:
    """Attempt to become the daemon by binding ``socket_path``.

    Raises:
        BindError: If binding fails for any reason other than the address
                   already being in use (e.g. permissions, bad path).
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(socket_path)
    except OSError as e:
        sock.close()
        if e.errno == errno.EADDRINUSE:
            logger.debug("Control socket %s is taken, acting as client", socket_path)
            return ClientRole(socket_path=socket_path)
        raise BindError(
            f"cannot bind control socket {socket_path}: {e.strerror or e}", path=socket_path
        ) from e

    sock.listen()
    logger.info("Bound control socket %s, acting as daemon", socket_path)
    return DaemonRole(socket_path=socket_path, sock=sock)
