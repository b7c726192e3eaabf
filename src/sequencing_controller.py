"""
Sequencing controller for playorder.

Reacts to host notifications (song changed, playlist changed or switched,
config changed, next/previous requested), keeps the subset for the active
mode up to date through the playlist cache and the rate limiter, and decides
which track the host plays next.

Notifications arrive on the host's streaming and UI threads. All state is
guarded by one re-entrant lock, shared with the index arrays the controller
builds. A lock that cannot be taken in time turns the call into a logged
no-op.
"""

import random
import threading
import logging
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple

import config
import order_engine
from errors import LockError, SequencerError
from host_player import HostEvent, HostPlayer, RepeatMode, ShuffleMode
from playlist_cache import PlaylistCache
from rate_limiter import RateLimiter
from selection import Mode, build_selection
from track_sequencer import SubsetStatus, TrackSequencer

logger = logging.getLogger(__name__)

_UNSET = object()


class SequencingController:

    def __init__(self, host: HostPlayer, mode: Optional[Mode] = None,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], float]] = None,
                 interval: Optional[float] = None,
                 lock_timeout: Optional[float] = None):
        self.host = host
        self._lock = threading.RLock()
        self._lock_timeout = config.LOCK_TIMEOUT if lock_timeout is None else lock_timeout

        self.sequencer = TrackSequencer(mode or Mode[config.DEFAULT_MODE], lock=self._lock)
        self.cache = PlaylistCache()
        self.limiter = RateLimiter(interval, clock)
        self.rng = rng or order_engine.default_rng()

        self.running: bool = False
        self.build_count: int = 0
        self._subscribed: bool = False
        self._built_shuffle: Optional[ShuffleMode] = None
        self._thread_state = threading.local()

        self.on_mode_change: Optional[Callable[[Mode], None]] = None
        self.on_empty_selection: Optional[Callable[[Mode], None]] = None
        self.on_rebuild: Optional[Callable[[int], None]] = None

    @contextmanager
    def _locked(self):
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise LockError(f"sequencing lock not acquired within {self._lock_timeout}s")
        try:
            yield
        finally:
            self._lock.release()

    def _read(self, getter, default):
        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.critical("SEQUENCER: lock unavailable for a read, a rebuild is stuck or the lock leaked")
            return default
        try:
            return getter()
        finally:
            self._lock.release()

    @property
    def mode(self) -> Mode:
        return self._read(lambda: self.sequencer.mode, Mode.PLAYLIST)

    @property
    def cursor(self) -> int:
        return self._read(lambda: self.sequencer.cursor, 0)

    @property
    def subset(self) -> List[int]:
        return self._read(lambda: self.sequencer.subset.to_list(), [])

    @property
    def status(self) -> SubsetStatus:
        return self._read(lambda: self.sequencer.status, SubsetStatus.EMPTY)

    def snapshot(self) -> Tuple[List[int], int, Optional[int]]:
        """
        Subset, cursor and the track under the cursor, read under one lock.

        Returns:
            ([], 0, None) when the subset is empty or the lock is unavailable.
        """
        return self._read(
            lambda: (self.sequencer.subset.to_list(), self.sequencer.cursor, self.sequencer.current()),
            ([], 0, None))

    @property
    def remember_per_playlist(self) -> bool:
        return self._read(lambda: self.sequencer.enabled, False)

    def start(self) -> None:
        if not self._subscribed:
            self.host.subscribe(self.handle_event)
            self._subscribed = True
        self.running = True
        self.sequencer.enabled = bool(self.host.config_get_int(config.REMEMBER_PER_PLAYLIST_KEY, 0))
        self._built_shuffle = self.host.get_shuffle()
        logger.info(f"SEQUENCER: started in {self.sequencer.mode.name} mode")

    def stop(self) -> None:
        self.running = False
        try:
            with self._locked():
                self.cache.clear()
                self.sequencer.clear()
        except LockError as e:
            logger.error(f"SEQUENCER: stop could not clear state: {e}")
        logger.info("SEQUENCER: stopped")

    def handle_event(self, event: HostEvent, param: Optional[int] = None) -> bool:
        """
        Host notification entry point.

        Returns:
            For NEXT/PREV, True when playback was started here. False for
            everything else.
        """
        if not self.running:
            return False

        if event == HostEvent.SONG_CHANGED:
            self.on_song_changed()
        elif event == HostEvent.PLAYLIST_CHANGED:
            self.on_playlist_changed(param)
        elif event == HostEvent.PLAYLIST_SWITCHED:
            self.on_playlist_switched(param)
        elif event == HostEvent.CONFIG_CHANGED:
            self.on_config_changed()
        elif event == HostEvent.NEXT:
            return self.next()
        elif event == HostEvent.PREV:
            return self.prev()
        return False

    def set_mode(self, mode: Mode) -> bool:
        """
        Switch the sequencing mode and rebuild the subset.

        The rebuild is subject to rate limiting; when dropped, the subset
        stays stale until the next song change or navigation request.

        Returns:
            False if the switch could not be applied.
        """
        try:
            with self._locked():
                old = self.sequencer.mode
                self.sequencer.mode = mode
                self.sequencer.mark_stale()
                logger.info(f"SEQUENCER: mode {old.name} -> {mode.name}")
                if self.on_mode_change:
                    self.on_mode_change(mode)
                self._rebuild()
            return True
        except SequencerError as e:
            logger.error(f"SEQUENCER: mode switch to {mode.name} failed: {e}")
            return False

    def rebuild(self) -> bool:
        """Force the subset stale and try to rebuild it now."""
        try:
            with self._locked():
                self.sequencer.mark_stale()
                return self._rebuild()
        except SequencerError as e:
            logger.error(f"SEQUENCER: rebuild failed: {e}")
            return False

    def on_song_changed(self) -> None:
        playing = self.host.get_playing_index()
        if getattr(self._thread_state, 'last_playing', _UNSET) == playing:
            return
        logger.debug(f"SEQUENCER: playing track {playing}")

        try:
            with self._locked():
                if self.sequencer.is_fresh:
                    self._sync_cursor()
                else:
                    self._rebuild()
                # only a handled change counts as seen
                self._thread_state.last_playing = playing
        except SequencerError as e:
            logger.error(f"SEQUENCER: song change handling failed: {e}")

    def on_playlist_changed(self, playlist_id: Optional[int] = None) -> None:
        try:
            with self._locked():
                current = self.host.get_current_playlist()
                if playlist_id is not None and playlist_id != current:
                    self.cache.invalidate(playlist_id)
                    return
                if current is not None:
                    self.cache.invalidate(current)
                self.sequencer.mark_stale()
                logger.info(f"SEQUENCER: playlist {current} modified")
        except SequencerError as e:
            logger.error(f"SEQUENCER: playlist change handling failed: {e}")

    def on_playlist_switched(self, playlist_id: Optional[int] = None) -> None:
        if playlist_id is None:
            playlist_id = self.host.get_current_playlist()
        restored = False
        try:
            with self._locked():
                logger.info(f"SEQUENCER: switched to playlist {playlist_id}")
                if self.sequencer.enabled and playlist_id is not None:
                    restored = self._restore_playback_modes(playlist_id)

                mode = self.sequencer.mode
                entry = self.cache.lookup(playlist_id, mode) if playlist_id is not None else None
                if entry is not None and mode != Mode.PLAYLIST:
                    self.sequencer.adopt(entry.subset.copy(), 0)
                    self._built_shuffle = entry.shuffle
                    self._apply_shuffle_setting(self.host.get_shuffle())
                    self._sync_cursor()
                else:
                    self.sequencer.mark_stale()
                    self._rebuild()
        except SequencerError as e:
            logger.error(f"SEQUENCER: playlist switch handling failed: {e}")

        if restored:
            self.host.broadcast_config_changed()

    def on_config_changed(self) -> None:
        enabled = bool(self.host.config_get_int(config.REMEMBER_PER_PLAYLIST_KEY, 0))
        try:
            with self._locked():
                if enabled != self.sequencer.enabled:
                    logger.info(f"SEQUENCER: remember per playlist {'on' if enabled else 'off'}")
                self.sequencer.enabled = enabled

                shuffle = self.host.get_shuffle()
                playlist_id = self.host.get_current_playlist()
                if enabled and playlist_id is not None:
                    self._save_playback_modes(playlist_id)

                self._apply_shuffle_setting(shuffle)
        except SequencerError as e:
            logger.error(f"SEQUENCER: config change handling failed: {e}")

    def next(self) -> bool:
        return self._navigate(1)

    def prev(self) -> bool:
        return self._navigate(-1)

    def _navigate(self, step: int) -> bool:
        direction = 'next' if step > 0 else 'prev'
        try:
            if self.host.get_queue_count() > 0:
                logger.debug(f"SEQUENCER: {direction} left to the play queue")
                return False

            with self._locked():
                if self.sequencer.mode == Mode.PLAYLIST:
                    return False

                if not self.sequencer.is_fresh:
                    self._rebuild()
                if self.sequencer.is_empty:
                    logger.debug(f"SEQUENCER: {direction} declined, no subset")
                    return False

                if self.host.get_shuffle() == ShuffleMode.RANDOM:
                    index = self.sequencer.pick_random(self.rng)
                elif step > 0:
                    index = self.sequencer.advance()
                else:
                    index = self.sequencer.retreat()
                cursor = self.sequencer.cursor
        except SequencerError as e:
            logger.error(f"SEQUENCER: {direction} failed: {e}")
            return False

        logger.info(f"[{'>>' if step > 0 else '<<'}] track {index} (position {cursor})")
        self.host.play_index(index)
        return True

    def _wants_shuffle(self, mode: Mode, shuffle: Optional[ShuffleMode]) -> bool:
        return mode.forces_shuffle or shuffle in (ShuffleMode.TRACKS, ShuffleMode.ALBUMS)

    def _rebuild(self) -> bool:
        """
        Rebuild the subset for the active mode. Caller holds the lock.

        Returns:
            True if a builder ran.
        """
        mode = self.sequencer.mode
        if mode == Mode.PLAYLIST:
            self.sequencer.clear()
            return False

        if not self.host.is_playback_active():
            logger.debug("SEQUENCER: playback inactive, rebuild skipped")
            return False

        playlist_id = self.host.get_current_playlist()
        if playlist_id is None:
            logger.debug("SEQUENCER: no current playlist, rebuild skipped")
            return False

        if not self.limiter.try_acquire():
            return False

        reference = self.host.get_playing_track()
        self.build_count += 1
        subset, cursor = build_selection(mode, self.host.iter_tracks(playlist_id), reference, lock=self._lock)

        shuffle = self.host.get_shuffle()
        shuffled = self._wants_shuffle(mode, shuffle)
        if shuffled:
            reference_value = reference.index if reference is not None else None
            cursor = order_engine.reorder_preserving(subset, reference_value, True, self.rng)
        self._built_shuffle = shuffle

        if len(subset) == 0:
            subset.destroy()
            self._fall_back(mode, playlist_id)
            return True

        self.sequencer.adopt(subset, cursor)
        self._sync_cursor()
        self.cache.store(playlist_id, subset, mode, shuffle)
        logger.info(f"SEQUENCER: built {len(subset)} items for playlist {playlist_id} ({mode.name}{', shuffled' if shuffled else ''})")

        if self.on_rebuild:
            self.on_rebuild(len(subset))
        return True

    def _fall_back(self, mode: Mode, playlist_id: int) -> None:
        self.cache.invalidate(playlist_id)
        self.sequencer.mode = Mode.PLAYLIST
        self.sequencer.clear()
        logger.warning(f"SEQUENCER: {mode.name} selected no tracks, falling back to PLAYLIST")
        if self.on_empty_selection:
            self.on_empty_selection(mode)

    def _sync_cursor(self) -> None:
        self.sequencer.locate(self.host.get_playing_index())

    def _apply_shuffle_setting(self, shuffle: ShuffleMode) -> None:
        """Reorder the subset in place if the host shuffle setting flipped it."""
        built = self._built_shuffle
        self._built_shuffle = shuffle
        if not self.sequencer.is_fresh:
            return
        mode = self.sequencer.mode
        wanted = self._wants_shuffle(mode, shuffle)
        if wanted == self._wants_shuffle(mode, built):
            return

        subset = self.sequencer.subset
        cursor = order_engine.reorder_preserving(subset, self.host.get_playing_index(), wanted, self.rng)
        self.sequencer.cursor = cursor
        playlist_id = self.host.get_current_playlist()
        if playlist_id is not None:
            self.cache.store(playlist_id, subset, mode, shuffle)
        logger.info(f"SEQUENCER: subset {'shuffled' if wanted else 'restored to playlist order'}")

    def _save_playback_modes(self, playlist_id: int) -> None:
        self.host.config_set_int(config.playlist_key(config.SHUFFLE_KEY_PREFIX, playlist_id),
                                 self.host.get_shuffle().value)
        self.host.config_set_int(config.playlist_key(config.REPEAT_KEY_PREFIX, playlist_id),
                                 self.host.get_repeat().value)

    def _restore_playback_modes(self, playlist_id: int) -> bool:
        changed = False

        value = self.host.config_get_int(config.playlist_key(config.SHUFFLE_KEY_PREFIX, playlist_id), -1)
        if value >= 0:
            try:
                shuffle = ShuffleMode(value)
            except ValueError:
                logger.warning(f"SEQUENCER: stored shuffle {value} for playlist {playlist_id} is invalid")
            else:
                if shuffle != self.host.get_shuffle():
                    self.host.set_shuffle(shuffle)
                    changed = True

        value = self.host.config_get_int(config.playlist_key(config.REPEAT_KEY_PREFIX, playlist_id), -1)
        if value >= 0:
            try:
                repeat = RepeatMode(value)
            except ValueError:
                logger.warning(f"SEQUENCER: stored repeat {value} for playlist {playlist_id} is invalid")
            else:
                if repeat != self.host.get_repeat():
                    self.host.set_repeat(repeat)
                    changed = True

        if changed:
            logger.info(f"SEQUENCER: restored shuffle/repeat for playlist {playlist_id}")
        return changed
