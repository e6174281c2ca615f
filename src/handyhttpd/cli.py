"""Command-line interface for handyhttpd.

Every invocation describes one change: serve a directory (the current
one by default), stop serving it, list what is served, or quit. The
first invocation becomes the daemon; later ones forward to it.

    handyhttpd                        # serve $PWD as /<basename> on the last port
    handyhttpd --dir /srv/a --port 8000
    handyhttpd --alias docs           # serve $PWD as /docs
    handyhttpd --remove               # stop serving $PWD's alias
    handyhttpd --list
    handyhttpd --quit
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from handyhttpd.domain.models import Request
from handyhttpd.errors import BadRequest, HandyError

logger = logging.getLogger(__name__)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="handyhttpd",
        description="Serve local directories over HTTP through one background daemon",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: ~/.handyhttpd.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    parser.add_argument(
        "--port", type=_port, default=0,
        help="Port to serve http requests on. By default, the last port you've used.",
    )
    parser.add_argument(
        "--dir", type=str, default="",
        help="Dir served as www root. By default, the current dir.",
    )
    parser.add_argument(
        "--alias", type=str, default="",
        help="URL alias to serve the dir under. By default, the dir name.",
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--remove", action="store_true",
        help="Stop serving the dir so that no one can visit it through http anymore",
    )
    action.add_argument(
        "--list", action="store_true",
        help="List all running servers and hosted dirs",
    )
    action.add_argument(
        "--quit", action="store_true",
        help="Quit the daemon completely",
    )

    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> Request:
    """Turn parsed flags into a normalized Request.

    Raises:
        BadRequest: If no alias is given and none can be derived from the
                    dir (the filesystem root has no name).
    """
    root = os.path.abspath(args.dir or os.getcwd())
    alias = args.alias or os.path.basename(root.rstrip(os.sep))
    if not alias and not (args.list or args.quit):
        raise BadRequest(f"cannot derive an alias from {root}, pass --alias")
    return Request(
        port=args.port,
        root_dir=root,
        alias=alias,
        remove=args.remove,
        list_mounts=args.list,
        quit=args.quit,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the handyhttpd CLI."""
    args = parse_args(argv)

    from handyhttpd.config.settings import load_settings
    from handyhttpd.daemon import run
    from handyhttpd.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"
        settings.logging.console = True

    setup_logging(settings.logging)

    try:
        request = build_request(args)
        logger.info(
            "Parsed params. [port: %d] [dir: %s] [alias: %s] [remove: %s] [list: %s] [quit: %s]",
            request.port, request.root_dir, request.alias,
            request.remove, request.list_mounts, request.quit,
        )
        status = run(request, settings)
    except HandyError as e:
        logger.error("%s", e)
        print(f"handyhttpd: {e}", file=sys.stderr)
        status = 1
    sys.exit(status)


if __name__ == "__main__":
    main()
