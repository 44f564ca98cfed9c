"""Async helpers for CLI commands to eliminate duplication."""

import asyncio
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, Concatenate

from tunelink.cli.ui import command_error_handler
from tunelink.infrastructure.persistence.database.db_connection import get_engine
from tunelink.infrastructure.persistence.unit_of_work import (
    DatabaseUnitOfWork,
    unit_of_work,
)


async def _run_with_uow[**P, R](
    func: Callable[Concatenate[DatabaseUnitOfWork, P], Awaitable[R]],
    *args: P.args,
    **kwargs: P.kwargs,
) -> R:
    try:
        async with unit_of_work() as uow:
            return await func(uow, *args, **kwargs)
    finally:
        # Pooled connections belong to this event loop; release them before it closes
        await get_engine().dispose()


def async_db_operation[**P, R](
    func: Callable[Concatenate[DatabaseUnitOfWork, P], Awaitable[R]],
) -> Callable[P, R]:
    """Run an async command body with a fresh unit of work.

    The wrapped coroutine receives the unit of work as its first argument;
    the returned function is synchronous, with CLI error handling applied.

    Example:
        ```python
        @async_db_operation
        async def _add_friend(uow, owner_id: int, other_id: int) -> None:
            await AddFriendUseCase().execute(AddFriendCommand(owner_id, other_id), uow)
        ```
    """

    @command_error_handler
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> R:
        return asyncio.run(_run_with_uow(func, *args, **kwargs))

    return wrapper
