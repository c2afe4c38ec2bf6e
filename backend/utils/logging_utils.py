"""
Structured Logging Utilities

Provides utilities for adding structured context to log messages,
so every store operation can be traced by entity type and identifier.
"""

import logging
import sys
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from constants import StoreDefaults


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Keys lifted from call arguments into the log context by log_operation
_CONTEXT_KEYS = ("entity_id", "entity_type")


class StructuredLogger:
    """
    Wrapper around standard logger that adds structured context.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Saved entity", extra={
            "entity_type": "customer",
            "entity_id": 42,
            "operation": "save"
        })
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__)
        """
        self.logger = logging.getLogger(name)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Copy the extra dict so callers can reuse theirs between calls.

        Args:
            extra: Additional context dict

        Returns:
            Context dict passed to the underlying logger
        """
        return dict(extra) if extra else {}

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with structured context."""
        self.logger.debug(message, extra=self._add_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with structured context."""
        self.logger.info(message, extra=self._add_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with structured context."""
        self.logger.warning(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """Log error message with structured context."""
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)


def log_operation(operation_name: str):
    """
    Decorator to automatically log operation start/end with structured context.

    Args:
        operation_name: Name of the operation

    Example:
        @log_operation("delete_all")
        def delete_all(self):
            ...
    """
    def decorator(func):
        def _build_context(kwargs) -> Dict[str, Any]:
            context = {"operation": operation_name}
            for key in _CONTEXT_KEYS:
                if key in kwargs:
                    context[key] = kwargs[key]
            return context

        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)
            context = _build_context(kwargs)
            logger.info(f"Starting {operation_name}", extra=context)
            try:
                result = func(*args, **kwargs)
                logger.info(f"Completed {operation_name}", extra=context)
                return result
            except Exception as e:
                context["error"] = str(e)
                context["error_type"] = type(e).__name__
                logger.error(f"Failed {operation_name}", extra=context, exc_info=True)
                raise

        return wrapper

    return decorator


def configure_logging(log_dir: Path, level: str = StoreDefaults.LOG_LEVEL) -> Path:
    """
    Attach console and rotating file handlers to the root logger.

    Safe to call more than once; handlers installed by an earlier call are
    replaced rather than duplicated.

    Args:
        log_dir: Directory for the log file (created if missing)
        level: Log level name

    Returns:
        Path of the log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / StoreDefaults.LOG_FILENAME
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    log_formatter = logging.Formatter(LOG_FORMAT)

    # File handler with rotation (10MB per file, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=StoreDefaults.LOG_MAX_BYTES,
        backupCount=StoreDefaults.LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(log_level)
    file_handler._ticketing_handler = True

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(log_level)
    console_handler._ticketing_handler = True

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, '_ticketing_handler', False):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(log_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return log_file
