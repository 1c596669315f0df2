"""Concurrency control utilities.

Provides an asyncio reader/writer lock for the shared token registry: any
number of readers at once, writers exclusive and brief.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class ReadWriteLock:
    """Asyncio reader/writer lock.

    Readers share access; a writer waits for active readers to drain and
    blocks new readers while it waits, so a steady stream of reads cannot
    starve an insert.

    Example:
        async with lock.read():
            entry = cache.get(key)
        async with lock.write():
            cache.setdefault(key, value)
    """

    def __init__(self, name: str = "rwlock"):
        self.name = name
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self, timeout: Optional[float] = None):
        """Shared access."""
        async with self._cond:
            await self._wait(self._can_read, timeout, "read")
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def write(self, timeout: Optional[float] = None):
        """Exclusive access. Never hold this across a network call."""
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._wait(self._can_write, timeout, "write")
            finally:
                self._waiting_writers -= 1
                self._cond.notify_all()
            self._writer = True
        logger.debug(f"Write lock acquired: {self.name}")
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()
            logger.debug(f"Write lock released: {self.name}")

    def _can_read(self) -> bool:
        return not self._writer and self._waiting_writers == 0

    def _can_write(self) -> bool:
        return not self._writer and self._readers == 0

    async def _wait(self, predicate, timeout: Optional[float], mode: str) -> None:
        """Wait for predicate. Caller holds the condition."""
        try:
            if timeout:
                await asyncio.wait_for(self._cond.wait_for(predicate), timeout=timeout)
            else:
                await self._cond.wait_for(predicate)
        except asyncio.TimeoutError:
            logger.warning(f"{mode} lock timeout on {self.name} after {timeout}s")
            raise LockTimeoutError(
                f"Could not acquire {mode} lock on {self.name} within {timeout}s"
            )
