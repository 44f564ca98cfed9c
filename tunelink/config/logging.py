"""Logging configuration and utilities using Loguru.

Public API:
----------
setup_loguru_logger(verbose: bool = False) -> None
    Configure console and file sinks for the application

get_logger(name: str) -> Logger
    Get a module-bound logger
    Usage: logger = get_logger(__name__)

@resilient_operation(operation_name: str)
    Log and re-raise errors around calls to external services
    Usage: @resilient_operation("spotify_get_track")
"""

from collections.abc import Awaitable, Callable
import functools
from pathlib import Path
import sys
from typing import Any

from loguru import logger

from .settings import settings

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def setup_loguru_logger(verbose: bool = False) -> None:
    """Configure Loguru logger for the application.

    Args:
        verbose: Enable debug level on the console and detailed tracebacks
    """
    logger.remove()

    log_file_path = Path(settings.logging.log_file)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    logger.configure(extra={"service": "tunelink", "module": "root"})

    console_level = "DEBUG" if verbose else settings.logging.console_level
    logger.add(
        sink=sys.stderr,
        level=console_level,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:"
            "<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )

    # Structured JSON file log with rotation
    logger.add(
        sink=str(log_file_path),
        level=settings.logging.file_level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {process}:{thread} | {extra[service]} | {extra[module]} | {name}:{function}:{line} | {message}",
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        backtrace=True,
        diagnose=True,
        enqueue=not settings.logging.real_time_debug,
        catch=True,
        serialize=True,
    )


# =============================================================================
# LOGGER FACTORY
# =============================================================================


def get_logger(name: str) -> Any:  # Loguru does not export its Logger type
    """Get a logger bound to the given module name.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Friend added", owner_id=1, other_id=2)
        ```
    """
    return logger.bind(
        module=name,
        service="tunelink",
    )


# =============================================================================
# ERROR HANDLING DECORATORS
# =============================================================================


def resilient_operation(operation_name: str | None = None):
    """Decorator for service boundary operations with standardized error logging.

    Errors are logged with the operation name and re-raised unchanged.

    Example:
        >>> @resilient_operation("spotify_get_track")
        >>> async def get_track(track_id):
        >>>     return await catalog.get_track(track_id)
    """

    def decorator[**P, R](
        func: Callable[P, Awaitable[R]],
    ) -> Callable[P, Awaitable[R]]:
        op_name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.opt(exception=e).warning(f"Error in {op_name}: {e!s}")
                raise

        return wrapper

    return decorator
