from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    `level` falls back to the LOG_LEVEL environment variable, then INFO.
    Calling this more than once only updates the level.
    """
    logger = logging.getLogger("jetson_deepstream")
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger.setLevel(getattr(logging, name, logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
