from __future__ import annotations

import logging

import pytest

from jetson_deepstream.logging_utils import configure_logging


def test_configure_logging_single_handler() -> None:
    logger = configure_logging("debug")
    assert logger.level == logging.DEBUG
    configure_logging("warning")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1


def test_configure_logging_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "error")
    assert configure_logging().level == logging.ERROR
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert configure_logging().level == logging.INFO
