"""
In-process host player.

MemoryHost keeps playlists, playback state and settings in memory and
delivers notifications synchronously on the calling thread. The terminal
front-end drives it as a stand-in for a real player.
"""

import threading
import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from host_player import (
    HostEvent,
    HostPlayer,
    PlayState,
    RepeatMode,
    ShuffleMode,
    TrackInfo,
)

logger = logging.getLogger(__name__)


def make_tracks(entries: Iterable) -> List[TrackInfo]:
    """
    Build TrackInfo items from dicts or TrackInfo objects.

    Dict keys: rating, artist, location, selected. Indices are assigned from
    list position.
    """
    tracks = []
    for pos, entry in enumerate(entries):
        if isinstance(entry, TrackInfo):
            tracks.append(replace(entry, index=pos))
            continue
        tracks.append(TrackInfo(
            index=pos,
            rating=int(entry.get('rating', 0) or 0),
            artist=entry.get('artist'),
            location=entry.get('location'),
            selected=bool(entry.get('selected', False)),
        ))
    return tracks


class MemoryHost(HostPlayer):

    def __init__(self):
        self.playlists: Dict[int, List[TrackInfo]] = {}
        self.current_playlist: Optional[int] = None
        self.playing: Optional[int] = None
        self.state = PlayState.STOPPED
        self.shuffle = ShuffleMode.OFF
        self.repeat = RepeatMode.OFF
        self.queue: List[int] = []
        self.settings: Dict[str, int] = {}
        self.history: List[int] = []

        self._lock = threading.RLock()
        self._subscribers: List[Callable] = []

    # notifications

    def subscribe(self, callback: Callable) -> None:
        self._subscribers.append(callback)

    def _emit(self, event: HostEvent, param: Optional[int] = None) -> bool:
        handled = False
        for callback in list(self._subscribers):
            try:
                if callback(event, param):
                    handled = True
            except Exception as e:
                logger.error(f"HOST: subscriber failed on {event.name}: {e}")
        return handled

    def broadcast_config_changed(self) -> None:
        self._emit(HostEvent.CONFIG_CHANGED)

    # queries

    def get_track_count(self) -> int:
        with self._lock:
            return len(self.playlists.get(self.current_playlist, []))

    def get_play_state(self) -> PlayState:
        return self.state

    def get_current_playlist(self) -> Optional[int]:
        return self.current_playlist

    def iter_tracks(self, playlist_id: int) -> Iterator[TrackInfo]:
        pos = 0
        while True:
            with self._lock:
                tracks = self.playlists.get(playlist_id)
                if tracks is None or pos >= len(tracks):
                    return
                track = tracks[pos]
            yield track
            pos += 1

    def get_playing_track(self) -> Optional[TrackInfo]:
        with self._lock:
            tracks = self.playlists.get(self.current_playlist, [])
            if self.playing is None or not 0 <= self.playing < len(tracks):
                return None
            return tracks[self.playing]

    def get_queue_count(self) -> int:
        return len(self.queue)

    def get_shuffle(self) -> ShuffleMode:
        return self.shuffle

    def set_shuffle(self, mode: ShuffleMode) -> None:
        self.shuffle = mode

    def get_repeat(self) -> RepeatMode:
        return self.repeat

    def set_repeat(self, mode: RepeatMode) -> None:
        self.repeat = mode

    def config_get_int(self, key: str, default: int) -> int:
        return self.settings.get(key, default)

    def config_set_int(self, key: str, value: int) -> None:
        self.settings[key] = int(value)

    # playback

    def play_index(self, index: int) -> None:
        with self._lock:
            if not 0 <= index < self.get_track_count():
                logger.warning(f"HOST: no track {index} in playlist {self.current_playlist}")
                return
            self.playing = index
            self.state = PlayState.PLAYING
            self.history.append(index)
        logger.debug(f"HOST: playing {index}")
        self._emit(HostEvent.SONG_CHANGED)

    def play(self) -> None:
        self.play_index(self.playing if self.playing is not None else 0)

    def stop(self) -> None:
        self.state = PlayState.STOPPED

    def next(self) -> None:
        """Ask subscribers first, then the play queue, then linear order."""
        if self._emit(HostEvent.NEXT):
            return
        if self.queue:
            self.play_index(self.queue.pop(0))
            return
        self._step(1)

    def prev(self) -> None:
        if self._emit(HostEvent.PREV):
            return
        self._step(-1)

    def _step(self, step: int) -> None:
        count = self.get_track_count()
        if count == 0:
            return
        current = self.playing if self.playing is not None else -step
        self.play_index((current + step) % count)

    # playlist editing

    def add_playlist(self, playlist_id: int, entries: Iterable) -> None:
        with self._lock:
            self.playlists[playlist_id] = make_tracks(entries)
            if self.current_playlist is None:
                self.current_playlist = playlist_id

    def switch_playlist(self, playlist_id: int, play_index: int = 0) -> None:
        with self._lock:
            if playlist_id not in self.playlists:
                logger.warning(f"HOST: unknown playlist {playlist_id}")
                return
            self.current_playlist = playlist_id
            self.playing = play_index
        self._emit(HostEvent.PLAYLIST_SWITCHED, playlist_id)
        if self.state == PlayState.PLAYING:
            self._emit(HostEvent.SONG_CHANGED)

    def _edit(self, playlist_id: int, edit) -> None:
        with self._lock:
            tracks = list(self.playlists.get(playlist_id, []))
            edit(tracks)
            self.playlists[playlist_id] = make_tracks(tracks)
        self._emit(HostEvent.PLAYLIST_CHANGED, playlist_id)

    def insert_track(self, playlist_id: int, position: int, entry) -> None:
        self._edit(playlist_id, lambda tracks: tracks.insert(position, entry))

    def remove_track(self, playlist_id: int, position: int) -> None:
        def remove(tracks):
            if 0 <= position < len(tracks):
                del tracks[position]
        self._edit(playlist_id, remove)

    def set_rating(self, playlist_id: int, position: int, rating: int) -> None:
        def rate(tracks):
            if 0 <= position < len(tracks):
                tracks[position] = replace(tracks[position], rating=rating)
        self._edit(playlist_id, rate)

    def set_selected(self, playlist_id: int, positions: Iterable[int]) -> None:
        wanted = set(positions)

        def select(tracks):
            for pos, track in enumerate(tracks):
                tracks[pos] = replace(track, selected=pos in wanted)
        self._edit(playlist_id, select)

    def enqueue(self, index: int) -> None:
        self.queue.append(index)
