"""Logging configuration for the relay."""

import logging
import os
import sys

LOGGER_NAME = "openanakin"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("OPENANAKIN_LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def setup_logging(level: str | None = None) -> logging.Logger:
    """Set up logging with proper handlers and formatters."""
    logger = logging.getLogger(LOGGER_NAME)
    log_level = _resolve_level(level)
    logger.setLevel(log_level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    # Propagate so pytest's caplog and uvicorn's root handlers see records
    logger.propagate = True

    return logger


def mask_key(value: str | None) -> str:
    """Mask a credential for log output, keeping only its edges."""
    if not value:
        return "<none>"
    if len(value) <= 8:
        return "****"
    return value[:4] + "****" + value[-4:]


# Global logger instance
logger = setup_logging()
