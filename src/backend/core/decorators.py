"""
Centralized error handling decorators for data source operations.
Provides reusable decorators that wrap remote calls with logging and
classification so callers decide only whether to propagate or fall back.
"""
import functools
import inspect
import logging
import traceback
from typing import Any, Callable, Optional

from core.exceptions import RemoteError, TransportError

logger = logging.getLogger(__name__)


class RemoteErrorHandler:
    """Centralized remote error handling utilities."""

    REMOTE_EXCEPTIONS = (
        RemoteError,
        TransportError,
    )

    # PostgREST code raised when a row policy recurses into itself
    POLICY_RECURSION_CODE = "42P17"

    @staticmethod
    def handle_remote_error(
        exc: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> tuple[bool, str]:
        """
        Classify and log a remote failure.

        Args:
            exc: The exception that occurred
            operation: Description of the remote operation
            context: Additional context information

        Returns:
            Tuple of (is_recoverable, error_message)
        """
        context_str = f" | Context: {context}" if context else ""

        if isinstance(exc, TransportError):
            error_msg = f"Remote unreachable during {operation}: {str(exc)}{context_str}"
            logger.warning(error_msg)
            return True, error_msg

        elif isinstance(exc, RemoteError):
            error_msg = f"Remote rejected {operation}: {exc.message}{context_str}"
            if exc.code:
                error_msg += f" | Code: {exc.code}"
            if exc.details:
                error_msg += f" | Details: {exc.details}"
            if exc.hint:
                error_msg += f" | Hint: {exc.hint}"
            logger.warning(error_msg)
            return False, error_msg

        else:
            error_msg = f"Unexpected error during {operation}: {type(exc).__name__}: {str(exc)}{context_str}"
            logger.error(f"{error_msg}\nTraceback: {traceback.format_exc()}")
            return False, error_msg

    @classmethod
    def is_policy_recursion(cls, exc: Exception) -> bool:
        """True for the known access-policy recursion failure."""
        if not isinstance(exc, RemoteError):
            return False
        return exc.code == cls.POLICY_RECURSION_CODE or "infinite recursion" in exc.message


def _is_async(func: Callable) -> bool:
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(getattr(func, '__wrapped__', None))


def handle_remote_exceptions(
    operation_name: Optional[str] = None,
    reraise: bool = True,
    default_return: Any = None,
) -> Callable:
    """
    Decorator to wrap async data source calls with error handling.

    Only RemoteError and TransportError are handled; anything else is a
    programming error and always propagates.

    Args:
        operation_name: Name of the operation for logging (defaults to function name)
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if an error occurs and reraise=False

    Returns:
        Decorated function with error handling
    """
    def decorator(func: Callable) -> Callable:
        if not _is_async(func):
            raise TypeError(f"handle_remote_exceptions requires a coroutine function, got {func!r}")

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or getattr(func, '__name__', 'unknown')
            context = {
                "function": getattr(func, '__name__', 'unknown'),
                "kwargs_keys": list(kwargs.keys()) if kwargs else []
            }

            try:
                result = await func(*args, **kwargs)
                logger.debug(f"Successfully completed {operation}")
                return result

            except RemoteErrorHandler.REMOTE_EXCEPTIONS as exc:
                RemoteErrorHandler.handle_remote_error(exc, operation, context)

                if reraise:
                    raise
                logger.info(f"Operation {operation} failed but continuing with default return: {default_return!r}")
                # Fresh copy so callers can't mutate a shared default
                return default_return.copy() if hasattr(default_return, "copy") else default_return

        return async_wrapper

    return decorator


def log_remote_operation(
    operation: str,
    level: str = "debug"
) -> Callable:
    """
    Decorator to log remote operations with context.

    Args:
        operation: Description of the operation
        level: Logging level ('debug', 'info', 'warning', 'error')

    Returns:
        Decorated function with operation logging
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            func_name = getattr(func, '__name__', 'unknown')
            logger_method(f"Starting {operation} via {func_name}")

            try:
                result = await func(*args, **kwargs)
                logger_method(f"Completed {operation} via {func_name}")
                return result
            except Exception as exc:
                logger_method(f"Failed {operation} via {func_name}: {str(exc)}")
                raise

        return async_wrapper

    return decorator


def safe_remote_query(func=None, operation_name: Optional[str] = None, default_return: Any = None) -> Callable:
    """
    Safe remote read decorator that never raises remote exceptions.
    Use for reads where the caller continues with a default on failure.

    Can be used with or without parentheses:
        @safe_remote_query
        async def my_func(...): ...

        @safe_remote_query("custom name", default_return=[])
        async def my_func(...): ...
    """
    def decorator(f: Callable) -> Callable:
        return handle_remote_exceptions(
            operation_name=operation_name,
            reraise=False,
            default_return=default_return,
        )(f)

    if func is None:
        return decorator
    elif callable(func):
        return decorator(func)
    else:
        # Called with the operation name as first positional arg
        return safe_remote_query(operation_name=func, default_return=default_return)


def critical_remote_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Remote write decorator that always logs errors and reraises.

    Can be used with or without parentheses.
    """
    def decorator(f: Callable) -> Callable:
        return handle_remote_exceptions(
            operation_name=operation_name,
            reraise=True,
        )(f)

    if func is None:
        return decorator
    elif callable(func):
        return decorator(func)
    else:
        return critical_remote_operation(operation_name=func)
