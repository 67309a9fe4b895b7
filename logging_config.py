#!/usr/bin/env python3
"""
Logging configuration.
Sets up console (and optional file) output for the caustics modules.
"""

import logging
import sys
from typing import Iterable, Optional

from defaults import LOG_DATEFMT, LOG_FORMAT

# Loggers configured by setup_logging; library modules log under their own names
LOGGER_NAMES = (
    "demo", "ray_tracer", "mesh_io", "geometry", "session",
    "analysis", "viewer", "visualization",
)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None,
                  names: Iterable[str] = LOGGER_NAMES) -> None:
    """
    Configure console and optional file logging for the caustics modules.

    Parameters:
    - level: logging level (e.g. logging.DEBUG, logging.INFO)
    - log_file: optional path to also write the log to
    - names: logger names to configure
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    file_handler = None
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)

    for name in names:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Avoid duplicate output when called more than once
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.addHandler(console_handler)
        if file_handler is not None:
            logger.addHandler(file_handler)

    logging.getLogger("demo").debug("Logging initialized.")
