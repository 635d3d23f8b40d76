"""Asynchronous operation utilities"""

import asyncio
import functools
import logging
from typing import Any, Callable, Coroutine, Dict, List, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in sync context

    Args:
        coro: Coroutine to run

    Returns:
        Coroutine result
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    coro.close()
    raise RuntimeError("run_async() cannot be called from a running event loop")


async def run_in_chunks(items: List[Any],
                        processor: Callable[[Any], Coroutine[Any, Any, Any]],
                        chunk_size: int = 10) -> List[Any]:
    """
    Process items in chunks to limit concurrency

    Members of a chunk run concurrently, chunks run one after another. A
    failing member does not cancel its siblings: the whole chunk is awaited,
    then the first exception is raised and no further chunk starts.

    Args:
        items: Items to process
        processor: Async processor function
        chunk_size: Number of items to process concurrently

    Returns:
        List of results
    """
    chunk_size = max(1, chunk_size)
    results = []

    for i in range(0, len(items), chunk_size):
        chunk = items[i:i + chunk_size]
        chunk_results = await asyncio.gather(
            *[processor(item) for item in chunk],
            return_exceptions=True
        )

        errors = [r for r in chunk_results if isinstance(r, BaseException)]
        if errors:
            for extra in errors[1:]:
                logger.debug("Additional failure in chunk: %r", extra)
            raise errors[0]

        results.extend(chunk_results)

    return results


class NamedLocks:
    """Mutual exclusion keyed by operation name.

    Callers using the same name serialize, different names proceed
    independently. Locks are created lazily and bound to the running loop.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[name] = lock
        return lock

    def __call__(self, name: str) -> asyncio.Lock:
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._locks

    def is_locked(self, name: str) -> bool:
        lock = self._locks.get(name)
        return lock is not None and lock.locked()


def locked(name: str, attribute: str = "locks"):
    """
    Decorator serializing a coroutine method through a named lock

    Args:
        name: Lock name
        attribute: Attribute of ``self`` holding a :class:`NamedLocks`
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, *args, **kwargs):
            async with getattr(self, attribute)(name):
                return await func(self, *args, **kwargs)

        return wrapper

    return decorator
