"""Unit tests for logging_config.py"""

import logging

from mdblog.logging_config import _resolve_log_level, configure_logging


def test_resolve_log_level_names():
    assert _resolve_log_level("debug") == logging.DEBUG
    assert _resolve_log_level(" WARNING ") == logging.WARNING


def test_resolve_log_level_unknown_falls_back_to_info():
    assert _resolve_log_level("chatty") == logging.INFO


def test_configure_logging_is_idempotent():
    """Repeated configuration leaves exactly one handler on the package logger."""
    configure_logging("DEBUG")
    logger = configure_logging("WARNING")
    assert logger.name == "mdblog"
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
