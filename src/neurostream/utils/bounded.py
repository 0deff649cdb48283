"""
Bounded, time-ordered storage.

``BoundedTimeOrderedSet`` keeps at most ``capacity`` items sorted by an
integer timestamp and evicts the oldest entries when the capacity is
exceeded. Items sharing a timestamp are kept in insertion order.
"""

import bisect
import itertools
import logging
from typing import Callable, Generic, Iterable, Iterator, List, Tuple, TypeVar

from .validation import require_greater_equal

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedTimeOrderedSet(Generic[T]):
    """
    Fixed-capacity collection iterated in ascending timestamp order.

    Args:
        capacity: Maximum number of items retained
        timestamp_of: Callable extracting an item's timestamp
    """

    def __init__(self, capacity: int, timestamp_of: Callable[[T], int]):
        require_greater_equal(capacity, "capacity", 1)
        self.capacity = int(capacity)
        self._timestamp_of = timestamp_of
        # Entries are (timestamp, sequence, item); the sequence number breaks
        # ties so items themselves are never compared.
        self._entries: List[Tuple[int, int, T]] = []
        self._sequence = itertools.count()
        self.evicted_count = 0

    def add(self, item: T) -> None:
        """Insert ``item`` and evict the oldest entries beyond capacity."""
        self._insert(item)
        self._adjust()

    def add_all(self, items: Iterable[T]) -> None:
        """Insert every item, evicting only once all are in."""
        for item in items:
            self._insert(item)
        self._adjust()

    def _insert(self, item: T) -> None:
        entry = (self._timestamp_of(item), next(self._sequence), item)
        if not self._entries or entry[:2] >= self._entries[-1][:2]:
            self._entries.append(entry)
        else:
            bisect.insort(self._entries, entry, key=lambda e: e[:2])

    def _adjust(self) -> None:
        overflow = len(self._entries) - self.capacity
        if overflow > 0:
            del self._entries[:overflow]
            self.evicted_count += overflow
            logger.debug(f"Evicted {overflow} oldest entries (capacity {self.capacity})")

    def first(self) -> T:
        """Oldest item; raises ``IndexError`` when empty."""
        if not self._entries:
            raise IndexError("first() on an empty BoundedTimeOrderedSet")
        return self._entries[0][2]

    def last(self) -> T:
        """Newest item; raises ``IndexError`` when empty."""
        if not self._entries:
            raise IndexError("last() on an empty BoundedTimeOrderedSet")
        return self._entries[-1][2]

    def between(self, t_low: int, t_high: int) -> Iterator[T]:
        """Yield items with ``t_low <= timestamp <= t_high`` in ascending order."""
        start = bisect.bisect_left(self._entries, t_low, key=lambda e: e[0])
        for timestamp, _, item in itertools.islice(self._entries, start, None):
            if timestamp > t_high:
                break
            yield item

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[T]:
        return (item for _, _, item in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"BoundedTimeOrderedSet(size={len(self)}, capacity={self.capacity})"
