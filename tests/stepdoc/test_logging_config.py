"""Tests for loguru setup and standard logging interception."""

import logging

import pytest
from loguru import logger

from stepdoc import configure_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()


def test_standard_logging_routed_to_loguru():
    configure_logging("DEBUG")
    messages = []
    logger.add(messages.append, format="{level} {message}", level="DEBUG")
    logging.getLogger("some.library").warning("disk almost full")
    assert any("WARNING disk almost full" in m for m in messages)


def test_level_from_settings(monkeypatch, capsys):
    """Without an explicit level, STEPDOC_LOG_LEVEL decides what reaches stderr."""
    monkeypatch.setenv("STEPDOC_LOG_LEVEL", "WARNING")
    configure_logging()
    logger.info("routine detail")
    logger.warning("something odd")
    err = capsys.readouterr().err
    assert "something odd" in err
    assert "routine detail" not in err
