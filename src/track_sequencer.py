"""
Track Sequencer for playorder.

This module holds the sequencing state: the active mode, the subset of track
indices built for it, and a cursor into that subset. Navigation (advance,
retreat, random pick) works on the subset only; deciding when to rebuild it
is the controller's job.

All positions are 0-based. The cursor is a position in the subset, the values
it points at are host playlist indices.
"""

import random
import logging
from enum import Enum
from typing import Optional

from index_array import IndexArray
from selection import Mode

logger = logging.getLogger(__name__)


class SubsetStatus(Enum):
    """
    Freshness of the subset.

    EMPTY: nothing built yet
    FRESH: matches the active mode and playlist contents
    STALE: mode changed or the playlist was modified since the last build
    """
    EMPTY = 0
    FRESH = 1
    STALE = 2


class TrackSequencer:
    """
    Sequencing state with wraparound cursor navigation.

    Usage:
        sequencer = TrackSequencer()
        sequencer.adopt(subset, cursor=0)

        # Navigation
        index = sequencer.advance()  # Move to next and return its track index
        index = sequencer.retreat()  # Move to previous, wrapping at 0

    Invariant: when the subset is not empty, 0 <= cursor < len(subset).
    """

    def __init__(self, mode: Mode = Mode.PLAYLIST, lock=None):
        self.mode: Mode = mode
        self.enabled: bool = False
        self.status: SubsetStatus = SubsetStatus.EMPTY
        self._lock = lock
        self._subset: IndexArray = IndexArray(lock=lock)
        self._cursor: int = 0

    @property
    def subset(self) -> IndexArray:
        return self._subset

    @property
    def cursor(self) -> int:
        """Current position in the subset (0-based)."""
        return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        if 0 <= value < len(self._subset):
            self._cursor = value
            logger.debug(f"SEQUENCER: cursor set to {value}")
        else:
            logger.warning(f"SEQUENCER: invalid cursor {value} for {len(self._subset)} items")

    @property
    def is_empty(self) -> bool:
        return len(self._subset) == 0

    @property
    def is_fresh(self) -> bool:
        return self.status == SubsetStatus.FRESH and not self.is_empty

    def current(self) -> Optional[int]:
        """Track index under the cursor, or None when empty."""
        if self.is_empty:
            return None
        return self._subset[self._cursor]

    def adopt(self, subset: IndexArray, cursor: int = 0) -> None:
        """
        Replace the subset and mark it fresh.

        Args:
            subset: New subset; the sequencer takes ownership.
            cursor: Position to start from. Out of range falls back to 0.
        """
        old = self._subset
        self._subset = subset
        self._cursor = cursor if 0 <= cursor < len(subset) else 0
        self.status = SubsetStatus.FRESH
        if old is not subset:
            old.destroy()
        logger.debug(f"SEQUENCER: adopted {len(subset)} items ({self.mode.name}), cursor {self._cursor}")

    def mark_stale(self) -> None:
        """Drop the subset so the next use rebuilds it."""
        self._subset.reset()
        self._cursor = 0
        self.status = SubsetStatus.STALE
        logger.debug(f"SEQUENCER: subset stale ({self.mode.name})")

    def clear(self) -> None:
        self._subset.reset()
        self._cursor = 0
        self.status = SubsetStatus.EMPTY

    def locate(self, track_index: Optional[int]) -> bool:
        """
        Point the cursor at track_index.

        Keeps the cursor where it is if it already points at that track, so
        repeated entries in a weighted pool do not snap back to the first one.

        Returns:
            True if the track is in the subset.
        """
        if track_index is None or self.is_empty:
            return False
        if self._subset[self._cursor] == track_index:
            return True
        pos = self._subset.find(track_index)
        if pos is None:
            return False
        self._cursor = pos
        logger.debug(f"SEQUENCER: located track {track_index} at {pos}")
        return True

    def advance(self) -> Optional[int]:
        """
        Move to the next position, wrapping to 0 after the last one.

        Returns:
            Track index at the new position, or None when empty.
        """
        if self.is_empty:
            return None
        self._cursor = (self._cursor + 1) % len(self._subset)
        index = self._subset[self._cursor]
        logger.debug(f"SEQUENCER: advanced to {self._cursor} (track {index})")
        return index

    def retreat(self) -> Optional[int]:
        """
        Move to the previous position, wrapping to the last one from 0.

        Returns:
            Track index at the new position, or None when empty.
        """
        if self.is_empty:
            return None
        self._cursor = (self._cursor - 1) % len(self._subset)
        index = self._subset[self._cursor]
        logger.debug(f"SEQUENCER: retreated to {self._cursor} (track {index})")
        return index

    def pick_random(self, rng: random.Random) -> Optional[int]:
        """Uniform pick from the whole subset. The cursor does not move."""
        if self.is_empty:
            return None
        return self._subset[rng.randrange(len(self._subset))]
