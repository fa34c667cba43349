"""Centralized logging configuration.

Every module logs through `logging.getLogger(__name__)`; only the CLI
calls `setup_logging`, so library use stays silent unless the host
application configures the root logger itself.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_FORMAT = "%(name)s: %(message)s"


def setup_logging(level: str | int = logging.WARNING, *, console: Console | None = None) -> None:
    """Configure the root logger with a single Rich handler on stderr."""

    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
