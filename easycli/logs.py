"""
easy-cli logging: one RichHandler on stderr for the "easycli" logger namespace.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "easycli"


def verbosity(count, /, default=logging.WARNING):
    """
    logging level for a -v count: 0 → default, 1 → INFO, 2+ → DEBUG.
    """
    match count:
        case 0:
            return default
        case 1:
            return min(default, logging.INFO)
    return logging.DEBUG


def setup_logging(level=logging.WARNING, /, colorful=True):
    """
    configure the "easycli" logger; calling it again replaces the previous handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(level)

    handler = RichHandler(
        console=Console(stderr=True, no_color=not colorful),
        show_time=level <= logging.DEBUG,
        show_path=level <= logging.DEBUG,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


__all__ = (
    "LOGGER_NAME",
    "verbosity",
    "setup_logging",
)
