"""Wire format of the control channel.

Commands are plain HTTP GET requests sent over the Unix socket:

    GET /list                                  -> "port: alias -> dir" lines
    GET /quit                                  -> confirmation, then shutdown
    GET /?verb=add&alias=a&dir=/srv/a&port=0   -> confirmation naming the port
"""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import ValidationError

from handyhttpd.domain.models import MountCommand, MountView, Request, Verb
from handyhttpd.errors import BadRequest

LIST_PATH = "/list"
QUIT_PATH = "/quit"
MOUNT_PATH = "/"

# Host part is ignored on a Unix socket but httpx needs an absolute URL.
BASE_URL = "http://handyhttpd"

REQUIRED_PARAMS = ("verb", "alias", "dir", "port")


def encode_request(request: Request) -> tuple[str, dict[str, str]]:
    """Translate a Request into the path and query of its control command."""
    if request.list_mounts:
        return LIST_PATH, {}
    if request.quit:
        return QUIT_PATH, {}
    command = request.to_command()
    return MOUNT_PATH, {
        "verb": command.verb.value,
        "alias": command.alias,
        "dir": command.root_dir,
        "port": str(command.port),
    }


def decode_mount_command(params: Mapping[str, str]) -> MountCommand:
    """Build a MountCommand from query parameters.

    Raises:
        BadRequest: If a parameter is missing, the dir is not absolute, the
                    verb is unknown or the port is not an integer in range.
    """
    missing = [name for name in REQUIRED_PARAMS if name not in params]
    if missing:
        raise BadRequest(f"missing required parameter(s): {', '.join(missing)}")
    if not os.path.isabs(params["dir"]):
        raise BadRequest(f"dir must be an absolute path: {params['dir']!r}")
    try:
        return MountCommand(
            verb=Verb(params["verb"]),
            alias=params["alias"],
            root_dir=params["dir"],
            port=int(params["port"]),
        )
    except ValueError as e:
        # ValidationError is a ValueError subclass
        detail = e.errors()[0]["msg"] if isinstance(e, ValidationError) else str(e)
        raise BadRequest(f"invalid command: {detail}") from e


def format_confirmation(command: MountCommand, port: int) -> str:
    return f"{command.verb.past_tense} dir {command.root_dir} as /{command.alias} on port {port}\n"


def format_listing(views: list[MountView]) -> str:
    """Render a registry snapshot as ``port: alias -> dir`` lines.

    A port whose listener has stopped is shown as ``port (not listening)``.
    """
    if not views:
        return "No directory is served\n"
    lines = []
    for view in views:
        label = str(view.port) if view.listening else f"{view.port} (not listening)"
        if not view.mounts:
            lines.append(f"{label}: (no mounts)")
        for alias, root_dir in view.mounts:
            lines.append(f"{label}: {alias} -> {root_dir}")
    return "\n".join(lines) + "\n"
