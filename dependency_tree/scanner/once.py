"""Run-scoped, once-only asynchronous initialisation."""

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar


T = TypeVar("T")


class AsyncOnce(Generic[T]):
    """
    Compute a value with a coroutine function at most once.

    The first caller of ``get()`` starts the computation with its arguments;
    callers arriving while it is still running await the same task instead
    of starting a second one, and later callers get the stored result (or
    exception). ``reset()`` forgets it so the next run rebuilds the value.
    """

    def __init__(self, factory: Callable[..., Awaitable[T]]):
        self._factory = factory
        self._task: Optional["asyncio.Future[T]"] = None

    async def get(self, *args, **kwargs) -> T:
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory(*args, **kwargs))
        return await self._task

    def reset(self) -> None:
        self._task = None

    @property
    def started(self) -> bool:
        return self._task is not None
