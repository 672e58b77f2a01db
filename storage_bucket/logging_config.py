"""
Application logging configuration.

This module provides unified logging configuration for the storage bucket API.
It sets up structured logging that captures detailed error information
for debugging while returning safe, user-friendly messages to clients.
"""
import logging
import sys

from storage_bucket.config import settings


def setup_logging(level: str | None = None) -> logging.Logger:
    """
    Configure and return the application logger.

    The logger outputs to stdout with a structured format including:
    - Timestamp
    - Logger name
    - Log level
    - Message

    Args:
        level: Optional level name overriding LOG_LEVEL from settings

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger("storage_bucket")
    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
    logger.setLevel(log_level)

    # Prevent duplicate handlers if called multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
