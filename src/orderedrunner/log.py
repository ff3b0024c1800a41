"""Logging setup for the command-line interface.

Library modules only create loggers with ``logging.getLogger(__name__)``;
handlers are installed here, by the application.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "orderedrunner"


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    """Route the package's log records through a rich handler."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
