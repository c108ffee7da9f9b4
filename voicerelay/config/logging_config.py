"""
Configure logging for the application.

This module provides a consistent logging configuration across the relay,
ensuring log messages are formatted correctly and directed to the console
and a rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from voicerelay.config.constants import LOGGER_NAME
from voicerelay.config.models import LoggingConfig


def configure_logging(
    name: str = LOGGER_NAME, config: Optional[LoggingConfig] = None
) -> logging.Logger:
    """
    Configure the application logger with console and file handlers.

    Module loggers obtained with ``logging.getLogger(__name__)`` inside the
    ``voicerelay`` package propagate into the handlers installed here.

    Returns:
        logging.Logger: The configured logger instance
    """
    config = config or LoggingConfig()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, config.level.value))

    # Remove existing handlers if any
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(config.format)

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.file_output:
        try:
            log_dir = Path(config.log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_dir / config.log_filename,
                maxBytes=config.max_log_size,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.debug("Logging configured")
    return logger
