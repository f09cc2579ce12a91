from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class Bulkhead:
    """Caps concurrent work per key. With ``limit_per_key=1`` it acts as a keyed mutex."""

    def __init__(self, limit_per_key: int = 10) -> None:
        if limit_per_key < 1:
            raise ValueError("limit_per_key must be at least 1")
        self._limit_per_key = limit_per_key
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._holders: dict[str, int] = {}

    @property
    def active_keys(self) -> int:
        return len(self._semaphores)

    @asynccontextmanager
    async def limit(self, key: str) -> AsyncIterator[None]:
        semaphore = self._semaphores.get(key)
        if semaphore is None:
            semaphore = asyncio.Semaphore(self._limit_per_key)
            self._semaphores[key] = semaphore
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with semaphore:
                yield
        finally:
            self._release(key)

    def _release(self, key: str) -> None:
        remaining = self._holders[key] - 1
        if remaining:
            self._holders[key] = remaining
            return
        # idle keys are dropped so per-payment keys do not accumulate
        del self._holders[key]
        del self._semaphores[key]
