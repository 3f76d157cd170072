"""Containers that periodically release unused capacity."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Generic, TypeVar, overload

log = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")


@dataclass
class Shrink:
    """Decides when a container is worth compacting."""

    # Shrinking every 60 flushes should be roughly every minute.
    DEFAULT_SHRINK_INTERVAL = 60
    # Don't bother if we'd free less than 4KB of memory.
    DEFAULT_MIN_SIZE_BYTES = 1024 * 4

    shrink_every: int = DEFAULT_SHRINK_INTERVAL
    min_bytes: int = DEFAULT_MIN_SIZE_BYTES
    since_shrink: int = 0

    def should_shrink(self, capacity: int, length: int, item_size: int) -> bool:
        """Return True if a container of this capacity and length should shrink."""
        self.since_shrink += 1
        if self.since_shrink < self.shrink_every:
            log.debug("should_shrink: shrink interval has not elapsed")
            return False
        freed = max(capacity * item_size - length * item_size, 0)
        if freed < self.min_bytes:
            log.debug("should_shrink: would not free sufficient bytes (%d)", freed)
            return False
        self.since_shrink = 0
        log.debug("should_shrink: shrinking, freeing %d bytes", freed)
        return True


class ShrinkMap(MutableMapping, Generic[K, V]):
    """A dict that tracks its high-water size and compacts itself."""

    ENTRY_SIZE = 16

    def __init__(self, shrink: Shrink | None = None) -> None:
        self._map: dict[K, V] = {}
        self._capacity = 0
        self.shrink = shrink if shrink is not None else Shrink()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __getitem__(self, key: K) -> V:
        return self._map[key]

    def __setitem__(self, key: K, value: V) -> None:
        self._map[key] = value
        self._capacity = max(self._capacity, len(self._map))

    def __delitem__(self, key: K) -> None:
        del self._map[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)

    def __repr__(self) -> str:
        return f"ShrinkMap({self._map!r})"

    def try_shrink(self) -> None:
        if self.shrink.should_shrink(self._capacity, len(self._map), self.ENTRY_SIZE):
            self._map = dict(self._map)
            self._capacity = len(self._map)

    def retain_and_shrink(self, predicate: Callable[[K, V], bool]) -> None:
        """Keep only entries for which ``predicate(key, value)`` holds."""
        before = len(self._map)
        self._map = {key: value for key, value in self._map.items() if predicate(key, value)}
        if len(self._map) < before:
            log.debug(
                "dropped unused entries: len=%d dropped=%d",
                len(self._map),
                before - len(self._map),
            )
            self.try_shrink()


class ShrinkVec(MutableSequence, Generic[T]):
    """A list that tracks its high-water size and compacts itself."""

    ITEM_SIZE = 8

    def __init__(self, shrink: Shrink | None = None) -> None:
        self._items: list[T] = []
        self._capacity = 0
        self.shrink = shrink if shrink is not None else Shrink()

    @property
    def capacity(self) -> int:
        return self._capacity

    def _grow(self) -> None:
        self._capacity = max(self._capacity, len(self._items))

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __setitem__(self, index, value) -> None:
        self._items[index] = value
        self._grow()

    def __delitem__(self, index) -> None:
        del self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ShrinkVec({self._items!r})"

    def insert(self, index: int, value: T) -> None:
        self._items.insert(index, value)
        self._grow()

    def try_shrink(self) -> None:
        if self.shrink.should_shrink(self._capacity, len(self._items), self.ITEM_SIZE):
            self._items = list(self._items)
            self._capacity = len(self._items)

    def retain_and_shrink(self, predicate: Callable[[T], bool]) -> None:
        """Keep only items for which ``predicate(item)`` holds."""
        before = len(self._items)
        self._items = [item for item in self._items if predicate(item)]
        if len(self._items) < before:
            log.debug(
                "dropped unused data: len=%d dropped=%d",
                len(self._items),
                before - len(self._items),
            )
            self.try_shrink()