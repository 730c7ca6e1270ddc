"""
Station logger setup.
"""

import logging

import pytest

from scan_station.modules.applog import LOGGER_NAME, get_logger, setup_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    logger.handlers.clear()
    yield logger
    for h in logger.handlers:
        h.close()
    logger.handlers[:] = saved


def test_setup_twice_does_not_duplicate_handlers(tmp_path, clean_logger):
    setup_logger(str(tmp_path / "logs"), "INFO")
    setup_logger(str(tmp_path / "logs"), "INFO")

    assert len(clean_logger.handlers) == 2


def test_child_loggers_write_to_file(tmp_path, clean_logger):
    setup_logger(str(tmp_path / "logs"), "DEBUG")
    get_logger("db").info("[DB] hello")
    for h in clean_logger.handlers:
        h.flush()

    text = (tmp_path / "logs" / "scan_station.log").read_text(encoding="utf-8")
    assert "INFO: [DB] hello" in text


def test_console_only_when_no_dir(clean_logger):
    setup_logger("", "WARNING")
    assert len(clean_logger.handlers) == 1
    assert clean_logger.level == logging.WARNING
