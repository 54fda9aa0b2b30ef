"""
Exception hierarchy and result dictionaries for factor weight comparison.

Library code raises the exceptions below. The command-line runner and the
plot layer turn them into logged ``{"status": "failed", ...}`` results so a
single failed plot or run does not surface as a bare traceback.
"""

from __future__ import annotations

import functools
import logging
import traceback
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class FactorAnalysisError(Exception):
    """Base exception for factor weight analysis errors."""
    pass


class ConfigurationError(FactorAnalysisError):
    """Raised when a run configuration is invalid."""
    pass


class DataValidationError(FactorAnalysisError):
    """Raised when a table or model handle violates its data contract."""
    pass


class InvalidArgumentError(FactorAnalysisError, ValueError):
    """Raised when a caller asks for an unknown view or an out-of-range factor."""
    pass


def create_error_result(
    error: Exception,
    context: str = "",
    additional_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the result dictionary reported for a failed step.

    Args:
        error: The exception that ended the step
        context: Where the failure happened, e.g. ``"Weight comparison failed"``
        additional_fields: Extra entries merged into the result

    Returns:
        Dict with ``status="failed"``, the error message and its type name
    """
    result = {
        "status": "failed",
        "error": str(error),
        "error_type": type(error).__name__,
    }
    if context:
        result["error_context"] = context
    if additional_fields:
        result.update(additional_fields)
    return result


def _format_failure(message: str, include_traceback: bool) -> str:
    if include_traceback:
        return f"❌ {message}\n{traceback.format_exc()}"
    return f"❌ {message}"


def log_and_return_error(
    error: Exception,
    logger_instance: logging.Logger,
    context: str = "",
    log_level: str = "error",
    include_traceback: bool = False,
    additional_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Log ``error`` at ``log_level`` and return its result dictionary.

    Args:
        error: The exception to report
        logger_instance: Logger to report through
        context: Prefix for the log message and ``error_context`` field
        log_level: Name of the logger method to use ('error', 'warning', ...)
        include_traceback: Append the active traceback to the log message
        additional_fields: Extra entries for the result
    """
    message = f"{context}: {error}" if context else str(error)
    log_func = getattr(logger_instance, log_level.lower())
    log_func(_format_failure(message, include_traceback))
    return create_error_result(error, context, additional_fields)


def handle_errors(
    return_dict: bool = True,
    log_level: str = "error",
    include_traceback: bool = False,
    reraise: bool = False,
):
    """
    Decorator that logs exceptions raised by the wrapped function.

    The logger is taken from a ``logger`` keyword argument, then from a
    ``logger`` attribute on the first positional argument (``self``), then
    this module's logger.

    Args:
        return_dict: On failure return an error result instead of None
        log_level: Level name used for the failure message
        include_traceback: Append the traceback to the failure message
        reraise: Re-raise after logging

    Example:
        @handle_errors(return_dict=False, log_level="warning")
        def plot_top_weights(self, table, view_name, factor, save_path):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger_instance = kwargs.get('logger')
            if not logger_instance and args and hasattr(args[0], 'logger'):
                logger_instance = args[0].logger
            if not logger_instance:
                logger_instance = logger

            try:
                return func(*args, **kwargs)
            except Exception as e:
                context = f"{func.__module__}.{func.__name__}"
                logger_instance.log(
                    getattr(logging, log_level.upper()),
                    _format_failure(f"{context} failed: {e}", include_traceback),
                )
                if reraise:
                    raise
                return create_error_result(e, context) if return_dict else None

        return wrapper
    return decorator


SUCCESS_RESULT_TEMPLATE = {
    "status": "completed",
}


def create_success_result(**kwargs) -> Dict[str, Any]:
    """Return ``{"status": "completed"}`` extended with ``kwargs``."""
    result = SUCCESS_RESULT_TEMPLATE.copy()
    result.update(kwargs)
    return result
