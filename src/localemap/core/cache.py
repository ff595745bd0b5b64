"""Build-scoped caches.

Nothing is persisted between builds. Each cache lives as long as the object
that owns it, so tests can inject, inspect or clear them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class LastModifiedCache:
    """In-memory cache of resolved last-modified values keyed by source file.

    Misses are cached too (as None) so a file is only resolved once per build.
    """

    def __init__(self) -> None:
        self._values: dict[str, str | None] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: str) -> str | None:
        """Return cached value (None for cached misses and unknown keys)."""
        return self._values.get(key)

    def set(self, key: str, value: str | None) -> None:
        self._values[key] = value

    def invalidate(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()


class ComputeOnce(Generic[T]):
    """Single-computation guard for an async factory.

    The first caller starts the computation; concurrent and later callers
    await the same task and observe the same result (or exception).
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._task: asyncio.Task[T] | None = None

    @property
    def started(self) -> bool:
        return self._task is not None

    async def get(self) -> T:
        """Return the computed value, starting the computation if needed."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        return await self._task

    def reset(self) -> None:
        """Discard the computed value so the next call recomputes it."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
