"""
Growable array of playlist track indices.

IndexArray tracks its capacity (size) and fill level (used) explicitly so the
growth policy is observable. Values are positions in the host playlist
enumeration and only stay meaningful until that playlist is modified.

Every structural mutation runs under the array's lock. Arrays built for the
sequencing controller share its re-entrant lock so a composite rebuild can
hold it across many primitive calls.
"""

import sys
import threading
import logging
from typing import Iterable, Iterator, List, Optional

import config
from errors import AllocationError

logger = logging.getLogger(__name__)

ITEM_SIZE = 8
MAX_CAPACITY = sys.maxsize // ITEM_SIZE


class IndexArray:

    def __init__(self, capacity_hint: int = 0, lock=None, max_capacity: int = MAX_CAPACITY):
        self._lock = lock if lock is not None else threading.RLock()
        self._max_capacity = max_capacity
        capacity = capacity_hint if capacity_hint > 0 else config.INDEX_ARRAY_INITIAL_CAPACITY
        capacity = min(capacity, max_capacity)
        with self._lock:
            self._data: List[int] = [0] * capacity
            self._used: int = 0

    @property
    def lock(self):
        return self._lock

    @property
    def size(self) -> int:
        """Allocated capacity."""
        return len(self._data)

    @property
    def used(self) -> int:
        """Number of stored indices."""
        return self._used

    def _next_capacity(self, old: int) -> int:
        if old < config.INDEX_ARRAY_GROWTH_THRESHOLD:
            grown = old * 2
        else:
            grown = old + old // 2
        return max(grown, old + 1)

    def _grow(self) -> None:
        old = len(self._data)
        new = self._next_capacity(old)
        if new > self._max_capacity:
            if old + 1 > self._max_capacity:
                raise AllocationError(f"index array cannot grow past {self._max_capacity} items")
            new = self._max_capacity
        try:
            data = self._data + [0] * (new - old)
        except MemoryError as e:
            raise AllocationError(f"index array growth to {new} items failed") from e
        self._data = data
        logger.debug(f"INDEX_ARRAY: grew {old} -> {new}")

    def append(self, value: int) -> None:
        """
        Store value at the end of the array.

        Raises:
            AllocationError: growth was needed and failed. Nothing changes.
        """
        with self._lock:
            if self._used >= len(self._data):
                self._grow()
            self._data[self._used] = value
            self._used += 1

    def extend(self, values: Iterable[int]) -> None:
        for value in values:
            self.append(value)

    def reset(self) -> None:
        """Drop all values, keeping the backing storage."""
        with self._lock:
            self._used = 0

    def destroy(self) -> None:
        """Release the backing storage. The array can be reused afterwards."""
        with self._lock:
            self._data = []
            self._used = 0

    def swap(self, i: int, j: int) -> None:
        with self._lock:
            self._check_index(i)
            self._check_index(j)
            self._data[i], self._data[j] = self._data[j], self._data[i]

    def sort(self) -> None:
        """Ascending sort of the used part."""
        with self._lock:
            self._data[:self._used] = sorted(self._data[:self._used])

    def find(self, value: int, start: int = 0) -> Optional[int]:
        """Position of the first occurrence of value, or None."""
        with self._lock:
            for pos in range(start, self._used):
                if self._data[pos] == value:
                    return pos
        return None

    def copy(self, lock=None) -> 'IndexArray':
        with self._lock:
            clone = IndexArray(max(self._used, 1), lock=lock if lock is not None else self._lock,
                               max_capacity=self._max_capacity)
            clone._data[:self._used] = self._data[:self._used]
            clone._used = self._used
        return clone

    def to_list(self) -> List[int]:
        with self._lock:
            return self._data[:self._used]

    def _check_index(self, pos: int) -> None:
        if not 0 <= pos < self._used:
            raise IndexError(f"position {pos} outside 0..{self._used - 1}")

    def __getitem__(self, pos: int) -> int:
        with self._lock:
            if pos < 0:
                pos += self._used
            self._check_index(pos)
            return self._data[pos]

    def __len__(self) -> int:
        return self._used

    def __iter__(self) -> Iterator[int]:
        return iter(self.to_list())

    def __contains__(self, value) -> bool:
        return self.find(value) is not None

    def __repr__(self) -> str:
        return f"IndexArray(used={self._used}, size={len(self._data)}, {self.to_list()!r})"
