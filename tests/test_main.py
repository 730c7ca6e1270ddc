"""
Entry point start-up failures.
"""

import logging

import pytest

pytest.importorskip("PyQt5.QtWidgets")

from scan_station import main as entry  # noqa: E402
from scan_station.modules.applog import LOGGER_NAME  # noqa: E402


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    logger.handlers.clear()
    yield logger
    for h in logger.handlers:
        h.close()
    logger.handlers[:] = saved


def test_bad_config_is_logged_and_exits_1(tmp_path, monkeypatch, caplog, clean_logger):
    ini = tmp_path / "config.ini"
    ini.write_text("[Camera]\nWidth = wide\n", encoding="utf-8")
    monkeypatch.setenv("SCAN_STATION_CONFIG", str(ini))

    with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
        with pytest.raises(SystemExit) as exc:
            entry.main(["scan-station"])

    assert exc.value.code == 1
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert errors and errors[0].getMessage().startswith("Configure file error: [Camera] Width")
