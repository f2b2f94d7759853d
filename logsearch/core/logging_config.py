"""
Logging configuration for production use.

Provides structured logging with file and console output.
Integrates with config for environment-specific log levels. Library modules
only call ``logging.getLogger(__name__)``; entry points call ``setup_logging``
once so the ``logsearch`` hierarchy gets its handlers.
"""

import logging
import logging.handlers
from typing import Optional

from .config import config


def setup_logging(logger_name: str = "logsearch", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return a logger instance.

    Args:
        logger_name: Name of the logger (the package root by default)
        level: Overrides ``config.log_level`` when given

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Don't add handlers if logger already configured
    if logger.handlers:
        return logger

    level = (level or config.log_level).upper()
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = config.logs_dir / f"{logger_name}.log"
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
