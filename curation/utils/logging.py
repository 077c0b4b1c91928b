"""Logger factory shared by the API process and the Temporal worker."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(funcName)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return the named logger with a stdout handler attached once.

    ``level`` is a standard level name; INFO when omitted.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or "INFO").upper())
    if not logger.handlers:
        logger.addHandler(_stdout_handler())
    return logger
