# logger_setup.py

import logging
import os
import json

from constants import LOGGER_NAME

LOG_ROOT = 'runs'
LOG_FILE_NAME = 'simulation.log'


def _run_log_path(run_id: str) -> str:
    """Returns runs/<run_id>/simulation.log, creating the run directory if needed."""
    run_dir = os.path.join(LOG_ROOT, run_id)
    os.makedirs(run_dir, exist_ok=True)
    return os.path.join(run_dir, LOG_FILE_NAME)


def configure_logger(run_id: str, level, fmt: str) -> logging.Logger:
    """
    Points the "fire_particles" logger at the console and the run's log file.

    The logger does not propagate to the root logger, so pygame and numba
    output never reaches the run log. Handlers from an earlier call are closed
    and replaced rather than stacked.
    """
    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.setLevel(level)
    app_logger.propagate = False

    for stale in list(app_logger.handlers):
        app_logger.removeHandler(stale)
        stale.close()

    log_file = _run_log_path(run_id)
    formatter = logging.Formatter(fmt)
    for handler in (logging.FileHandler(log_file), logging.StreamHandler()):
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    app_logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    return app_logger


def setup_logging(config_path='config.json') -> logging.Logger:
    """
    Configures application logging from the 'run_id' and 'logging' entries of
    the config file ('logging' needs 'level' and 'format').
    """
    with open(config_path, 'r') as f:
        config = json.load(f)

    log_config = config['logging']
    return configure_logger(config['run_id'], log_config['level'], log_config['format'])
