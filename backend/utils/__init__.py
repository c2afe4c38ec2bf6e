"""
Utility functions and decorators.
"""

from .error_handlers import handle_api_errors, to_http_exception
from .logging_utils import StructuredLogger, configure_logging, log_operation

__all__ = [
    "handle_api_errors",
    "to_http_exception",
    "StructuredLogger",
    "configure_logging",
    "log_operation",
]
