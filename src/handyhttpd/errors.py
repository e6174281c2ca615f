"""Error types shared by the daemon, the forwarder and the hosted servers."""

from __future__ import annotations


class HandyError(Exception):
    """Base class for all handyhttpd errors."""


class BindError(HandyError):
    """Raised when a port or the control socket cannot be bound."""

    def __init__(self, message: str, port: int | None = None, path: str = "") -> None:
        super().__init__(message)
        self.port = port
        self.path = path


class PortExhausted(HandyError):
    """Raised when no port was given and there is no default to fall back on."""


class BadRequest(HandyError):
    """Raised when a command is missing required fields or carries invalid ones."""


class DaemonUnreachable(HandyError):
    """Raised when the forwarder cannot complete its exchange with the daemon."""

    def __init__(self, message: str, socket_path: str = "") -> None:
        super().__init__(message)
        self.socket_path = socket_path


class CommandRejected(HandyError):
    """Raised when the daemon answers a forwarded command with a non-success status."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code
