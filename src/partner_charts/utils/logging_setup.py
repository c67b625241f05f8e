"""Process-wide logging configuration for the CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Libraries that log every request at debug level
_NOISY_LOGGERS = ("urllib3", "git")


def configure_logging(debug: bool = False) -> None:
    """Send log records to stderr through rich so command output stays clean."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=debug, rich_tracebacks=debug)],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if debug else logging.WARNING)
