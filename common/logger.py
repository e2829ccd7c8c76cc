import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: Optional[str] = None, level: Optional[str] = None) -> logging.Logger:
    """
    Module logger writing to stderr, so stdout stays clean for CLI output.
    Level comes from `level`, else DRA_LOG_LEVEL, else INFO.
    """
    logger = logging.getLogger(name or "dra")
    if logger.handlers:
        return logger
    logger.setLevel((level or os.getenv("DRA_LOG_LEVEL", "INFO")).upper())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
