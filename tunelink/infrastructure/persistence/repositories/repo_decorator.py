"""Repository decorator for standardizing DB operations.

Every repository method goes through `db_operation`, which provides:
- Structured logging with context and timing information
- Error classification per SQLAlchemy exception family
- Translation of connectivity failures into the domain's UnavailableError

Integrity errors are logged and re-raised untouched: callers decide whether
a constraint violation means "already exists" or "lost a race, retry".
"""

import asyncio
from collections.abc import Callable, Coroutine
import functools
import time
from typing import Any, ParamSpec, TypeVar

from sqlalchemy.exc import (
    DatabaseError,
    IntegrityError,
    MultipleResultsFound,
    NoResultFound,
    OperationalError,
    SQLAlchemyError,
    TimeoutError,
)

from tunelink.config import get_logger
from tunelink.domain.exceptions import UnavailableError

# Type variables for generic function signatures
P = ParamSpec("P")
T = TypeVar("T")

# Initialize logger
logger = get_logger(__name__)


def db_operation(operation_name: str | None = None):
    """Decorate repository methods with consistent logging and error handling.

    Args:
        operation_name: Optional name for the operation (defaults to function name)

    Example:
        @db_operation("get_account")
        async def get_account(self, account_id: int) -> Account | None:
            ...
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, T]],
    ) -> Callable[P, Coroutine[Any, Any, T]]:
        func_name = operation_name or func.__name__

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(
                f"db_operation can only be used with async functions, but {func_name} is not async",
            )

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            start_time = time.perf_counter()
            repo_name = args[0].__class__.__name__ if args else "Repository"
            context = _build_log_context(kwargs)

            def elapsed() -> float:
                return (time.perf_counter() - start_time) * 1000

            try:
                logger.trace(
                    f"DB operation starting: {repo_name}.{func_name}",
                    operation=func_name,
                    **context,
                )

                result = await func(*args, **kwargs)

                logger.trace(
                    f"DB operation completed: {repo_name}.{func_name}",
                    operation=func_name,
                    exec_time_ms=elapsed(),
                    **context,
                )
                return result

            except NoResultFound as e:
                logger.debug(
                    f"DB record not found: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise

            except MultipleResultsFound as e:
                logger.warning(
                    f"Multiple results found: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise

            except IntegrityError as e:
                # Expected under concurrent writers; the caller resolves it
                logger.debug(
                    f"DB integrity error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e.orig),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise

            except TimeoutError as e:
                logger.error(
                    f"DB timeout error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise UnavailableError(f"Database timed out during {func_name}") from e

            except OperationalError as e:
                logger.error(
                    f"DB operational error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise UnavailableError(f"Database unavailable during {func_name}") from e

            except DatabaseError as e:
                logger.error(
                    f"DB error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise

            except SQLAlchemyError as e:
                logger.error(
                    f"SQLAlchemy error: {repo_name}.{func_name}",
                    operation=func_name,
                    error=str(e),
                    exec_time_ms=elapsed(),
                    **context,
                )
                raise

        return wrapper

    return decorator


def _build_log_context(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Build a context dictionary for logging from function kwargs."""
    id_params = {
        k: v
        for k, v in kwargs.items()
        if k.endswith("_id") and isinstance(v, int | str)
    }

    simple_params = {
        k: v
        for k, v in kwargs.items()
        if (
            not k.startswith("_")
            and isinstance(v, int | str | bool | None)
            and k not in id_params
        )
    }

    # IDs take precedence
    return {**simple_params, **id_params}
