"""Logging setup utilities for handyhttpd.

The daemon outlives the terminal that started it, so log lines go to a
file in the temp directory by default; console output is opt-in.
"""

from __future__ import annotations

import logging
import sys

from handyhttpd.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``handyhttpd`` logger from the logging settings.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, log file in the temp directory).
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("handyhttpd")
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    formatter = logging.Formatter(config.format)

    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config.file:
        try:
            file_handler = logging.FileHandler(config.file)
        except OSError as e:
            print(f"cannot open log file {config.file}: {e}; logging to stderr", file=sys.stderr)
            file_handler = logging.StreamHandler(sys.stderr)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug("Logging initialized at %s level", config.level)
