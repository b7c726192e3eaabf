"""
Per-playlist cache of computed subsets.

One entry per playlist id seen. Entries are only reused while their mode is
the active mode. There is no eviction; the key space is the set of playlists
the user has open.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from host_player import ShuffleMode
from index_array import IndexArray
from selection import Mode

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    playlist_id: int
    subset: IndexArray
    mode: Mode
    shuffle: Optional[ShuffleMode] = None


class PlaylistCache:

    def __init__(self):
        self._entries: Dict[int, CacheEntry] = {}

    def lookup(self, playlist_id: int, mode: Mode) -> Optional[CacheEntry]:
        """
        Entry for playlist_id if it was built under mode.

        A mode mismatch counts as a miss.
        """
        entry = self._entries.get(playlist_id)
        if entry is None:
            logger.debug(f"CACHE: miss for playlist {playlist_id}")
            return None
        if entry.mode != mode:
            logger.debug(f"CACHE: playlist {playlist_id} built for {entry.mode.name}, want {mode.name}")
            return None
        logger.debug(f"CACHE: hit for playlist {playlist_id} ({mode.name}, {len(entry.subset)} items)")
        return entry

    def store(self, playlist_id: int, subset: IndexArray, mode: Mode,
              shuffle: Optional[ShuffleMode] = None) -> CacheEntry:
        """
        Create or replace the entry with a private copy of subset.

        shuffle records the host shuffle setting the subset was ordered for.
        """
        entry = self._entries.get(playlist_id)
        if entry is None:
            entry = CacheEntry(playlist_id, subset.copy(), mode, shuffle)
            self._entries[playlist_id] = entry
        else:
            fresh = subset.copy()
            entry.subset.destroy()
            entry.subset = fresh
            entry.mode = mode
            entry.shuffle = shuffle
        return entry

    def invalidate(self, playlist_id: int) -> None:
        entry = self._entries.pop(playlist_id, None)
        if entry is not None:
            entry.subset.destroy()
            logger.debug(f"CACHE: invalidated playlist {playlist_id}")

    def clear(self) -> None:
        for entry in self._entries.values():
            entry.subset.destroy()
        self._entries.clear()

    def __contains__(self, playlist_id) -> bool:
        return playlist_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
