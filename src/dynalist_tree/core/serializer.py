"""Per-key FIFO serialization of async operations."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


class KeyedSerializer:
    """Run async operations one at a time per key, in submission order.

    Each key maps to the future of the last operation enqueued for it. A new
    operation installs its own future as the tail, waits for the previous tail,
    runs, and resolves its future. Operations under different keys do not wait
    on each other. Only safe within one process and one event loop.
    """

    def __init__(self) -> None:
        self._tails: dict[str, asyncio.Future[None]] = {}

    @property
    def pending_keys(self) -> int:
        """Number of keys with running or queued operations."""
        return len(self._tails)

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run operation once every operation submitted earlier under key has finished.

        Failures propagate to this caller only; the next queued operation still runs.
        """
        previous = self._tails.get(key)
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._tails[key] = done

        try:
            if previous is not None:
                # Shielded: a cancelled waiter must not cancel its predecessor.
                await asyncio.shield(previous)
            logger.debug("Serializer admitted operation on {}", key)
            return await operation()
        finally:
            if previous is None or previous.done():
                self._release(key, done)
            else:
                # Cancelled while queued: keep the chain intact behind the predecessor.
                previous.add_done_callback(lambda _f: self._release(key, done))

    def _release(self, key: str, done: "asyncio.Future[None]") -> None:
        if not done.done():
            done.set_result(None)
        if self._tails.get(key) is done:
            del self._tails[key]
        logger.debug("Serializer released {}", key)
