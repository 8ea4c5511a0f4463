"""Logging setup shared by the package.

Modules obtain loggers with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once to attach a rich handler to the package logger.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "gsettings_codegen"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace.

    Args:
        name: Usually the calling module's ``__name__``.

    Returns:
        Logger instance.
    """
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | int = "WARNING", console: Console | None = None) -> None:
    """Configure package logging with a rich handler.

    Repeated calls only update the level.

    Args:
        level: Logging level name or number.
        console: Console to log to (defaults to stderr).
    """
    global _configured

    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    if _configured:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    _configured = True
