"""
Host Player Interface for playorder.

This module defines the interface (HostPlayer) the sequencing core needs from
the media player it is plugged into: playlist and metadata queries, playback
commands, a small integer key-value store, and notification delivery.

The enums give the core a fixed vocabulary for the host's shuffle, repeat and
play states regardless of how the host stores them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Callable, Iterator
import logging

logger = logging.getLogger(__name__)


class PlayState(Enum):
    """Output state reported by the host."""
    STOPPED = 0
    PLAYING = 1
    PAUSED = 2


class ShuffleMode(Enum):
    """
    Host shuffle setting.

    OFF: natural playlist order
    TRACKS: shuffle individual tracks
    ALBUMS: shuffle whole albums
    RANDOM: pick any track each time
    """
    OFF = 0
    TRACKS = 1
    ALBUMS = 2
    RANDOM = 3


class RepeatMode(Enum):
    """
    Host repeat setting.

    OFF: stop at end of playlist
    SINGLE: repeat current track
    ALL: loop the playlist
    """
    OFF = 0
    SINGLE = 1
    ALL = 2


class HostEvent(Enum):
    """Notifications delivered to subscribers as callback(event, param)."""
    SONG_CHANGED = 0
    PLAYLIST_CHANGED = 1
    PLAYLIST_SWITCHED = 2
    CONFIG_CHANGED = 3
    NEXT = 4
    PREV = 5


@dataclass(frozen=True)
class TrackInfo:
    """Already-parsed metadata of one playlist item."""
    index: int
    rating: int = 0
    artist: Optional[str] = None
    location: Optional[str] = None
    selected: bool = False


class HostPlayer(ABC):
    """
    Abstract boundary to the host media player.

    Implementations may be called from any thread. Track indices are 0-based
    positions in the playlist enumeration.
    """

    @abstractmethod
    def get_track_count(self) -> int:
        """Number of tracks in the current playlist."""
        pass

    @abstractmethod
    def get_play_state(self) -> PlayState:
        pass

    @abstractmethod
    def get_current_playlist(self) -> Optional[int]:
        """
        Identity of the playlist being played.

        Returns:
            Playlist id, or None when no playlist is active.
        """
        pass

    @abstractmethod
    def iter_tracks(self, playlist_id: int) -> Iterator[TrackInfo]:
        """
        Enumerate a playlist front to back.

        Items are read one at a time; an item removed while iterating is
        simply not yielded.
        """
        pass

    @abstractmethod
    def get_playing_track(self) -> Optional[TrackInfo]:
        """Metadata of the currently playing item, or None."""
        pass

    @abstractmethod
    def get_queue_count(self) -> int:
        """Number of tracks manually enqueued for playback."""
        pass

    @abstractmethod
    def get_shuffle(self) -> ShuffleMode:
        pass

    @abstractmethod
    def set_shuffle(self, mode: ShuffleMode) -> None:
        pass

    @abstractmethod
    def get_repeat(self) -> RepeatMode:
        pass

    @abstractmethod
    def set_repeat(self, mode: RepeatMode) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass

    @abstractmethod
    def play_index(self, index: int) -> None:
        """Start playback of the track at index in the current playlist."""
        pass

    @abstractmethod
    def broadcast_config_changed(self) -> None:
        """Notify all subscribers with HostEvent.CONFIG_CHANGED."""
        pass

    @abstractmethod
    def config_get_int(self, key: str, default: int) -> int:
        pass

    @abstractmethod
    def config_set_int(self, key: str, value: int) -> None:
        pass

    @abstractmethod
    def subscribe(self, callback: Callable[[HostEvent, Optional[int]], Optional[bool]]) -> None:
        """
        Register a notification callback.

        For NEXT and PREV the callback returns True when it started playback
        itself; otherwise the host applies its default ordering.
        """
        pass

    def is_playback_active(self) -> bool:
        """True when tracks are loaded and output is playing."""
        return self.get_track_count() > 0 and self.get_play_state() == PlayState.PLAYING

    def get_playing_index(self) -> Optional[int]:
        track = self.get_playing_track()
        return track.index if track is not None else None
