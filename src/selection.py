"""
Sequencing modes and the selection builders behind them.

Each builder walks the playlist enumeration once, front to back, and returns
the indices eligible under its mode. The album and artist builders match on a
key derived from the reference track; those derivations are plain string
functions so they can be tested on their own.
"""

import re
import logging
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Tuple

import config
from host_player import TrackInfo
from index_array import IndexArray

logger = logging.getLogger(__name__)


class Mode(Enum):
    PLAYLIST = 0
    KEEP_ALBUM = 1
    KEEP_ARTIST = 2
    TOP_RATED = 3
    SELECTION = 4
    PURE_RANDOM = 5
    SMART_RANDOM = 6

    @property
    def label(self) -> str:
        return config.MODE_LABELS[self.name]

    @property
    def forces_shuffle(self) -> bool:
        """Random modes are reordered regardless of the host shuffle setting."""
        return self in (Mode.PURE_RANDOM, Mode.SMART_RANDOM)

    @classmethod
    def from_name(cls, name: str) -> 'Mode':
        key = name.strip().upper().replace(' ', '_').replace('-', '_')
        return cls[key]


_DISC_SUFFIX = re.compile(r'/CD\d+$')
_FEATURING_MARKERS = (' feat', ' feat.', ' featuring')


def folder_key(location: Optional[str]) -> str:
    """
    Album folder of a track location.

    Drops the file name, then a trailing disc folder such as "/CD2", then a
    trailing slash:

        "/music/Band/Album/CD2/01.flac" -> "/music/Band/Album"

    Returns "" when location is empty or has no "/" separator.
    """
    if not location:
        return ''
    cut = location.rfind('/')
    if cut < 0:
        return ''
    key = location[:cut]
    key = _DISC_SUFFIX.sub('', key)
    return key.rstrip('/')


def artist_key(artist: Optional[str]) -> str:
    """
    Main artist of an artist field.

    Cuts at the earliest featuring marker and trims trailing spaces:

        "Band feat. Singer" -> "Band"

    A field without a marker is returned with trailing spaces trimmed.
    """
    if not artist:
        return ''
    cut = len(artist)
    for marker in _FEATURING_MARKERS:
        pos = artist.find(marker)
        if 0 <= pos < cut:
            cut = pos
    return artist[:cut].rstrip(' ')


def _include(tracks: Iterable[Optional[TrackInfo]], predicate, lock) -> IndexArray:
    subset = IndexArray(lock=lock)
    for track in tracks:
        if track is None:
            continue
        if predicate(track):
            subset.append(track.index)
    return subset


def build_playlist(tracks, reference, lock=None) -> IndexArray:
    return _include(tracks, lambda t: True, lock)


def build_keep_album(tracks, reference, lock=None) -> IndexArray:
    key = folder_key(reference.location) if reference is not None else ''
    if not key:
        logger.debug("SELECTION: no album folder for reference track")
        return IndexArray(lock=lock)
    return _include(tracks, lambda t: t.location is not None and key in t.location, lock)


def build_keep_artist(tracks, reference, lock=None) -> IndexArray:
    key = artist_key(reference.artist) if reference is not None else ''
    if not key:
        logger.debug("SELECTION: no artist for reference track")
        return IndexArray(lock=lock)
    return _include(tracks, lambda t: t.artist is not None and key in t.artist, lock)


def build_top_rated(tracks, reference, lock=None) -> IndexArray:
    return _include(tracks, lambda t: (t.rating or 0) >= config.TOP_RATED_MIN_RATING, lock)


def build_selected(tracks, reference, lock=None) -> IndexArray:
    return _include(tracks, lambda t: t.selected, lock)


def build_smart_pool(tracks, reference, lock=None) -> IndexArray:
    """Weighted pool: every track appears rating + 1 times."""
    subset = IndexArray(lock=lock)
    for track in tracks:
        if track is None:
            continue
        weight = max(track.rating or 0, 0) + 1
        for _ in range(weight):
            subset.append(track.index)
    return subset


BUILDERS: Dict[Mode, Callable] = {
    Mode.PLAYLIST: build_playlist,
    Mode.KEEP_ALBUM: build_keep_album,
    Mode.KEEP_ARTIST: build_keep_artist,
    Mode.TOP_RATED: build_top_rated,
    Mode.SELECTION: build_selected,
    Mode.PURE_RANDOM: build_playlist,
    Mode.SMART_RANDOM: build_smart_pool,
}


def build_selection(mode: Mode, tracks: Iterable[Optional[TrackInfo]],
                    reference: Optional[TrackInfo], lock=None) -> Tuple[IndexArray, int]:
    """
    Build the unshuffled subset for mode.

    Args:
        mode: Active sequencing mode.
        tracks: Playlist enumeration, read lazily.
        reference: Track the cursor should point at, usually the playing one.
        lock: Lock shared with the returned array.

    Returns:
        (subset, cursor) where cursor is the reference track's first position
        in the subset, or 0 when it is absent.

    Raises:
        AllocationError: the subset could not grow.
    """
    subset = BUILDERS[mode](tracks, reference, lock)
    cursor = 0
    if reference is not None:
        pos = subset.find(reference.index)
        if pos is not None:
            cursor = pos
    logger.debug(f"SELECTION: {mode.name} -> {len(subset)} items, cursor {cursor}")
    return subset, cursor
