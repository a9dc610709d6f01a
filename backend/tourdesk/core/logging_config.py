import logging
import sys

from tourdesk.core.config import settings

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def configure_logging(level: str | None = None) -> logging.Logger:
    """Console-only logging for the whole package (cloud friendly).

    Safe to call more than once: existing handlers on the package logger are
    replaced, never duplicated.
    """
    logger = logging.getLogger("tourdesk")
    logger.setLevel((level or settings.log_level).upper())

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.propagate = False
    return logger
