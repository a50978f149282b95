from __future__ import annotations

import logging

from compat_matrix.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    enable_debug,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_setup_logging_idempotent():
    logger1 = setup_logging()
    logger2 = setup_logging()
    assert logger1 is logger2
    assert len(logger1.handlers) == 1


def test_get_logger_returns_configured_logger():
    assert get_logger() is setup_logging()


def test_labeled_prefixes(capsys):
    logger = setup_logging()
    logger.info("info message")
    logger.warning("warning message")
    logger.error("error message")
    log_summary("variant=software files=1")
    lines = capsys.readouterr().out.strip().split("\n")
    assert lines == [
        "INFO info message",
        "WARN warning message",
        "ERROR error message",
        "SUMMARY variant=software files=1",
    ]


def test_child_loggers_reach_package_handler(capsys):
    setup_logging()
    logging.getLogger("compat_matrix.services.pipeline").info("read file=a.xlsx sheets=3")
    assert capsys.readouterr().out == "INFO read file=a.xlsx sheets=3\n"


def test_debug_hidden_until_enabled(capsys):
    logger = setup_logging()
    logger.debug("hidden")
    assert capsys.readouterr().out == ""
    enable_debug()
    logger.debug("shown")
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG shown" in out


def test_summary_level_name():
    setup_logging()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"


def test_reset_logging_allows_fresh_setup():
    first = setup_logging()
    reset_logging()
    assert first.handlers == []
    second = setup_logging()
    assert len(second.handlers) == 1
