"""Logging setup for the pkgtrust package."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from pkgtrust.config import Settings

LOG_LEVELS = {
    1: logging.INFO,
    2: logging.DEBUG,
}


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure the package logger from settings.

    Level 0 silences the logger entirely. With a log file configured,
    records are appended to it; otherwise they go to stderr through rich.

    Args:
        settings: Process settings carrying log_level and log_file.

    Returns:
        The configured "pkgtrust" logger.
    """
    logger = logging.getLogger("pkgtrust")

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if settings.log_level not in LOG_LEVELS:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        logger.propagate = False
        return logger

    if settings.log_file:
        handler: logging.Handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)

    logger.addHandler(handler)
    logger.setLevel(LOG_LEVELS[settings.log_level])
    logger.propagate = False
    return logger
