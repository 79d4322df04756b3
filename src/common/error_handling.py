"""
Centralized error handling for the career metrics engine.

Builders degrade to zero/empty values and never raise for missing data.
The errors below cover the two places where failure is real: decoding
persisted documents and composing the dashboard from concurrent fetches.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

# Type variable for generic return types
T = TypeVar("T")


class CareerMetricsError(Exception):
    """Base error for the career metrics engine."""


class DashboardDataError(CareerMetricsError):
    """
    A composed dashboard request failed.

    Raised when any one of the concurrent sub-fetches fails; the underlying
    cause is chained via ``__cause__``.
    """


class RecordDecodeError(CareerMetricsError):
    """A persisted document could not be decoded into a record model."""

    def __init__(self, collection: str, document_id: Any, message: str):
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"{collection}[{document_id}]: {message}")


def metrics_operation(operation_name: str, component: str = "unknown", critical: bool = False):
    """
    Decorator for repository reads and other timed metrics operations.

    On success logs the elapsed time (and the record count for list results)
    at DEBUG. On failure logs at ERROR with stack trace when critical, else
    WARNING, and re-raises.

    Usage:
        @metrics_operation("fetch career events", component="repository", critical=True)
        def fetch_career_events(self, user_id: str, limit=None):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.log(
                    logging.ERROR if critical else logging.WARNING,
                    f"[{component}] [{operation_name}] ✗ Failed: {e}",
                    exc_info=critical,
                )
                raise

            elapsed_ms = (time.perf_counter() - started) * 1000
            count = f"{len(result)} records, " if isinstance(result, list) else ""
            logger.debug(f"[{component}] [{operation_name}] ✓ {count}{elapsed_ms:.1f}ms")
            return result

        return wrapper

    return decorator


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(logger, "compose dashboard", level=logging.ERROR):
            results = await asyncio.gather(...)

    Args:
        logger: Logger instance to use
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(
                    level,
                    f"[{operation}] Failed: {exc_val}",
                    exc_info=include_traceback,
                )
            # Never suppress
            return False

    return ExceptionLogger()
