"""Core domain models for handyhttpd.

These models represent what flows between an invocation and the daemon:
the normalized user request built from command-line flags, the mount
commands that travel over the control channel, and the read-only view
of a hosted port used for listing.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from handyhttpd.errors import BadRequest


class Verb(str, enum.Enum):
    """What a mount command does to a hosted port."""

    ADD = "add"
    REMOVE = "remove"

    @property
    def past_tense(self) -> str:
        return "added" if self is Verb.ADD else "removed"


class Request(BaseModel):
    """Normalized intent of a single invocation.

    ``port == 0`` means "not specified": the daemon falls back to the
    last port used, then to the configured default port.
    """

    model_config = ConfigDict(frozen=True)

    port: int = Field(default=0, ge=0, le=65535)
    root_dir: str = Field(description="Absolute path of the directory to serve")
    alias: str = Field(description="URL prefix (without slashes) to serve it under")
    remove: bool = Field(default=False)
    list_mounts: bool = Field(default=False)
    quit: bool = Field(default=False)

    def to_command(self) -> MountCommand:
        """The mount command this request stands for.

        Raises:
            BadRequest: If the alias or root dir is empty.
        """
        try:
            return MountCommand(
                verb=Verb.REMOVE if self.remove else Verb.ADD,
                alias=self.alias,
                root_dir=self.root_dir,
                port=self.port,
            )
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise BadRequest(f"{field}: {error['msg']}") from e


class MountCommand(BaseModel):
    """Add or remove one ``alias -> root_dir`` mount on a port."""

    model_config = ConfigDict(frozen=True)

    verb: Verb
    alias: str = Field(min_length=1)
    root_dir: str = Field(min_length=1)
    port: int = Field(default=0, ge=0, le=65535)


class MountView(BaseModel):
    """Snapshot of one hosted port, as shown by ``list``."""

    model_config = ConfigDict(frozen=True)

    port: int
    listening: bool = False
    mounts: tuple[tuple[str, str], ...] = Field(
        default=(), description="(alias, root_dir) pairs in mount order",
    )
