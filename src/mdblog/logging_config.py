"""Console logging setup for the command line tools"""

import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _resolve_log_level(raw_level: str) -> int:
    level = logging.getLevelName(raw_level.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    logger = logging.getLogger("mdblog")
    logger.setLevel(_resolve_log_level(level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
