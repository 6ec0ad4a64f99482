import json
import logging

import pytest

import constants
import logger_setup


@pytest.fixture
def app_logger():
    logger = logging.getLogger(constants.LOGGER_NAME)
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


def write_config(directory, run_id="test_run", level="DEBUG"):
    path = directory / "config.json"
    path.write_text(json.dumps({
        "run_id": run_id,
        "logging": {"level": level, "format": "%(levelname)s %(message)s"},
    }))
    return path


def test_setup_creates_run_log_file(tmp_path, monkeypatch, app_logger):
    monkeypatch.chdir(tmp_path)
    write_config(tmp_path)
    logger = logger_setup.setup_logging()

    assert logger is app_logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    log_file = tmp_path / "runs" / "test_run" / "simulation.log"
    logger.info("hello from the fire")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the fire" in log_file.read_text()


def test_repeated_setup_does_not_duplicate_handlers(tmp_path, monkeypatch, app_logger):
    monkeypatch.chdir(tmp_path)
    write_config(tmp_path)
    logger_setup.setup_logging()
    logger_setup.setup_logging()
    assert len(app_logger.handlers) == 2


def test_reconfigure_closes_previous_file_handler(tmp_path, monkeypatch, app_logger):
    monkeypatch.chdir(tmp_path)
    logger_setup.configure_logger("first", "INFO", "%(message)s")
    old_file_handler = next(h for h in app_logger.handlers if isinstance(h, logging.FileHandler))

    logger_setup.configure_logger("second", "WARNING", "%(message)s")

    assert old_file_handler not in app_logger.handlers
    assert old_file_handler.stream is None
    assert app_logger.level == logging.WARNING
    assert (tmp_path / "runs" / "second" / "simulation.log").exists()
