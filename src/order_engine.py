"""
Shuffle and order restoring for index arrays.
"""

import random
import logging
from typing import Optional

from errors import InvariantError
from index_array import IndexArray

logger = logging.getLogger(__name__)

# seeded once per process
_rng = random.Random()


def default_rng() -> random.Random:
    return _rng


def _check(array: IndexArray) -> None:
    if array.used > array.size:
        raise InvariantError(f"index array used {array.used} > size {array.size}")


def shuffle(array: IndexArray, rng: Optional[random.Random] = None) -> None:
    """Backward Fisher-Yates shuffle in place."""
    rng = rng or _rng
    with array.lock:
        _check(array)
        for i in range(array.used - 1, 0, -1):
            j = rng.randint(0, i)
            array.swap(i, j)


def restore_order(array: IndexArray) -> None:
    """Ascending sort, which is natural playlist order."""
    with array.lock:
        _check(array)
        array.sort()


def reorder_preserving(array: IndexArray, reference_value: Optional[int],
                       shuffled: bool, rng: Optional[random.Random] = None) -> int:
    """
    Shuffle or sort array and locate reference_value afterwards.

    Returns:
        First position of reference_value in the reordered array, or 0 when
        it is not present.
    """
    with array.lock:
        if shuffled:
            shuffle(array, rng)
        else:
            restore_order(array)
        if reference_value is None:
            return 0
        pos = array.find(reference_value)
    if pos is None:
        return 0
    return pos
