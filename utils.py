# utils.py
"""
Utility functions for the simulation framework.

This module provides helper functions, such as logging setup and
configuration loading, that are used across different parts of the
application but do not belong to the physics itself.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

from constants import DEFAULT_LOG_FILE, DEFAULT_LOG_FORMAT

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys. All are optional. A log_file
#       of null disables the file handler.
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#   - Invariants: After this function runs, the logging system is
#     initialized and ready for use throughout the application.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: The parsed JSON document. The sections
#     "simulation_parameters", "run_control" and "logging" are always
#     present (empty when the file omits them).
#   - Raises: FileNotFoundError, json.JSONDecodeError, or ValueError when
#     the document or a section is not a JSON object. Each is logged first.

CONFIG_SECTIONS = ("simulation_parameters", "run_control", "logging")


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', DEFAULT_LOG_FORMAT)
    log_file_path = log_config.get('log_file', DEFAULT_LOG_FILE)

    # Get the root logger
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    # Create formatter
    formatter = logging.Formatter(log_format)

    # Console Handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        # Ensure the log directory exists
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        # Rotating File Handler
        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise

    if not isinstance(config, dict):
        msg = f"Configuration in {path} must be a JSON object."
        logging.error(msg)
        raise ValueError(msg)
    for section in CONFIG_SECTIONS:
        value = config.setdefault(section, {})
        if not isinstance(value, dict):
            msg = f"Configuration section '{section}' in {path} must be a JSON object."
            logging.error(msg)
            raise ValueError(msg)

    logging.info("Configuration loaded successfully.")
    return config
