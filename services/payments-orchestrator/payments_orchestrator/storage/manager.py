from __future__ import annotations

from typing import Any, Protocol

from shared.logging import get_logger

logger = get_logger(__name__)


class ManagedStore(Protocol):
    @property
    def name(self) -> str: ...

    def count(self) -> int: ...


class StoreManager:
    """Loads stores on startup and flushes the persistent ones on shutdown."""

    def __init__(self) -> None:
        self._stores: list[Any] = []

    @property
    def count(self) -> int:
        return len(self._stores)

    @property
    def stores(self) -> list[ManagedStore]:
        return list(self._stores)

    def add(self, store: ManagedStore) -> None:
        self._stores.append(store)

    def initialize(self) -> None:
        for store in self._stores:
            initialize = getattr(store, "initialize", None)
            if callable(initialize):
                initialize()
        logger.info("stores_initialized", extra={"extra_fields": {"stores": self.count}})

    def flush_all(self) -> None:
        flushed = 0
        for store in self._stores:
            flush = getattr(store, "flush", None)
            if callable(flush):
                flush()
                flushed += 1
        logger.info("stores_flushed", extra={"extra_fields": {"stores": flushed}})
