"""
Logging configuration module for the cyclone panel analysis.

This module provides a reusable logging setup function that can be imported
and used by all scripts and library modules of the attrition pipeline.
"""

import logging
from pathlib import Path


ROOT_LOGGER_NAME = 'cyclone_panel'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file='cyclone_panel.log', log_level=logging.INFO, log_format=DEFAULT_FORMAT):
    """
    Setup logging configuration with both file and console handlers.

    Parameters
    ----------
    log_file : str or Path, optional
        Log file name (default: 'cyclone_panel.log'). Relative names are
        created in the project root directory; parent directories are created
        when missing.
    log_level : int or str, optional
        Logging level (default: logging.INFO)
    log_format : str, optional
        Record format shared by both handlers

    Returns
    -------
    logging.Logger
        Configured logger instance

    Example
    -------
    >>> from scripts.logging_config import setup_logging
    >>> logger = setup_logging()
    >>> logger.info("Loading baseline survey")
    """
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper())

    log_path = Path(log_file)
    if not log_path.is_absolute():
        # Root directory is the parent of scripts/
        log_path = Path(__file__).parent.parent / log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    # Clear any existing handlers to avoid duplicates
    if logger.handlers:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def get_logger(name=None):
    """
    Get a logger instance with the specified name.

    Library modules call this at import time; output appears once
    setup_logging() has attached handlers to the root panel logger.

    Parameters
    ----------
    name : str, optional
        Name for the child logger (default: the root panel logger)

    Returns
    -------
    logging.Logger
        Logger instance

    Example
    -------
    >>> from scripts.logging_config import setup_logging, get_logger
    >>> setup_logging()
    >>> logger = get_logger('join')
    >>> logger.info("Left join started")
    """
    if name:
        return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
    return logging.getLogger(ROOT_LOGGER_NAME)
