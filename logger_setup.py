# logger_setup.py

import logging
import os
import json

LOGGER_NAME = "heart_swarm"


def load_config(config_path='config.json'):
    """Reads the run configuration (run id, master seed, logging settings)."""
    with open(config_path, 'r') as f:
        return json.load(f)


def setup_logging(config_path='config.json', runs_dir='runs'):
    """
    Sets up logging for the application.

    Reads logging configuration, creates a run-specific log directory, and
    configures a dedicated application logger (not the root logger) to output
    to both the console and a log file. This keeps verbose output from
    third-party libraries like Numba and pygame out of the run log.

    Data Contract:
    - Inputs:
        - config_path (str) - Path to the configuration file.
        - runs_dir (str) - Parent directory for per-run log directories.
    - Outputs: The configured logger.
    - Side Effects:
        - Configures the "heart_swarm" logger.
        - Creates directories for log files.
    - Invariants: Assumes the config file contains 'run_id' and a 'logging' dictionary
      with 'level' and 'format'.
    """
    config = load_config(config_path)

    run_id = config['run_id']
    log_config = config['logging']

    # --- Get a dedicated logger for the application ---
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_config['level'])

    # --- Prevent logs from propagating to the root logger ---
    logger.propagate = False

    # --- Create directories for logs ---
    log_dir = os.path.join(runs_dir, run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'simulation.log')

    formatter = logging.Formatter(log_config['format'])

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplication if this function is called again
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)

    logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    return logger
