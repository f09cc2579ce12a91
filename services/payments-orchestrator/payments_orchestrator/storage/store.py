from __future__ import annotations

from collections.abc import Callable
from typing import Generic, Protocol, TypeVar
from uuid import UUID

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class Store(Protocol[T]):
    """Upsert-by-id collection. Implementations hand out copies, never live objects."""

    @property
    def name(self) -> str: ...

    def save(self, item: T) -> None: ...

    def get(self, item_id: UUID) -> T | None: ...

    def find(self, predicate: Callable[[T], bool]) -> list[T]: ...

    def all(self) -> list[T]: ...

    def count(self) -> int: ...


class InMemoryStore(Generic[T]):
    def __init__(self, name: str) -> None:
        self._name = name
        self._items: dict[UUID, T] = {}

    @property
    def name(self) -> str:
        return self._name

    def save(self, item: T) -> None:
        self._items[item.id] = item.model_copy(deep=True)  # type: ignore[attr-defined]

    def get(self, item_id: UUID) -> T | None:
        item = self._items.get(item_id)
        if item is None:
            return None
        return item.model_copy(deep=True)

    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        return [item.model_copy(deep=True) for item in self._items.values() if predicate(item)]

    def all(self) -> list[T]:
        return [item.model_copy(deep=True) for item in self._items.values()]

    def count(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()
