"""
Bounded top-K selection.

Keeps the ``capacity`` best items of an unbounded stream in a min-heap whose
root is always the worst item retained so far. A new item only enters the heap
when it ranks better than that root, which it then replaces
(insert-with-overflow). Each offer costs O(log capacity); memory is O(capacity).
"""

from __future__ import annotations

import heapq
import operator
from typing import Callable, Generic, List, Optional, TypeVar

from ..exceptions import ConfigurationError

T = TypeVar("T")


class _HeapEntry(Generic[T]):
    """Heap slot ordering its item with the selector's ``less_than``."""

    __slots__ = ("item", "less_than")

    def __init__(self, item: T, less_than: Callable[[T, T], bool]):
        self.item = item
        self.less_than = less_than

    def __lt__(self, other: "_HeapEntry[T]") -> bool:
        return self.less_than(self.item, other.item)


class BoundedTopKSelector(Generic[T]):
    """Retain the best ``capacity`` items under ``less_than``.

    ``less_than(a, b)`` must return True when ``a`` ranks worse than ``b``.
    It should be a strict total order; ties it leaves open are resolved by
    heap position and are not meant to be relied upon.
    """

    def __init__(self, capacity: int, less_than: Callable[[T, T], bool] = operator.lt):
        if capacity < 1:
            raise ConfigurationError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.less_than = less_than
        self._heap: List[_HeapEntry[T]] = []

    def offer(self, item: T) -> Optional[T]:
        """Offer ``item``; return whichever item got dropped, or None.

        The dropped item is ``item`` itself when it does not beat the current
        worst, or the evicted root when it does.
        """
        entry = _HeapEntry(item, self.less_than)
        if len(self._heap) < self.capacity:
            heapq.heappush(self._heap, entry)
            return None
        root = self._heap[0]
        if self.less_than(root.item, item):
            heapq.heapreplace(self._heap, entry)
            return root.item
        return item

    def peek_worst(self) -> Optional[T]:
        """Return the worst retained item without removing it."""
        return self._heap[0].item if self._heap else None

    def drain_descending(self) -> List[T]:
        """Remove every item and return them best first.

        Popping a min-heap yields the worst item first, so the output buffer is
        filled from its end backwards.
        """
        result: List[Optional[T]] = [None] * len(self._heap)
        idx = len(result) - 1
        while self._heap:
            result[idx] = heapq.heappop(self._heap).item
            idx -= 1
        return result  # type: ignore[return-value]

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)
