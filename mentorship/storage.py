"""Ordered key-value map contract shared by every registry namespace."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, List, Optional, TypeVar

V = TypeVar("V")


class OrderedMap(ABC, Generic[V]):
    """Mapping from string keys to records that iterates in key order.

    Implementations must make every ``insert`` and ``remove`` atomic: a
    reader either sees the previous value or the new one, never a partial
    write.
    """

    @abstractmethod
    def insert(self, key: str, value: V) -> Optional[V]:
        """Store ``value`` under ``key`` and return the value it replaced."""

    @abstractmethod
    def get(self, key: str) -> Optional[V]:
        """Return the value stored under ``key``, if any."""

    @abstractmethod
    def remove(self, key: str) -> Optional[V]:
        """Delete ``key`` and return the removed value, if any."""

    @abstractmethod
    def values(self) -> List[V]:
        """Return a snapshot of every stored value ordered by key."""

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Hold the map's write lock so a scan and a following insert are not interleaved.

        Process-local maps rely on their owner's lock and need nothing more.
        """

        yield

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        return len(self.values())


class InMemoryOrderedMap(OrderedMap[V]):
    """Process-local map used where durability is not required, mainly tests."""

    def __init__(self) -> None:
        self._items: Dict[str, V] = {}
        self._lock = threading.Lock()

    def insert(self, key: str, value: V) -> Optional[V]:
        with self._lock:
            previous = self._items.get(key)
            self._items[key] = value
        return previous

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            return self._items.get(key)

    def remove(self, key: str) -> Optional[V]:
        with self._lock:
            return self._items.pop(key, None)

    def values(self) -> List[V]:
        with self._lock:
            return [self._items[key] for key in sorted(self._items)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["InMemoryOrderedMap", "OrderedMap"]
