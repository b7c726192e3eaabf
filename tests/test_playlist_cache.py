"""
python3 -m pytest tests/test_playlist_cache.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from host_player import ShuffleMode
from index_array import IndexArray
from playlist_cache import PlaylistCache
from rate_limiter import RateLimiter
from selection import Mode


def make_array(values):
    array = IndexArray()
    array.extend(values)
    return array


class FakeClock:

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestPlaylistCache:

    def test_miss(self):
        cache = PlaylistCache()
        assert cache.lookup(1, Mode.TOP_RATED) is None
        assert len(cache) == 0

    def test_hit_requires_same_mode(self):
        cache = PlaylistCache()
        cache.store(1, make_array([1, 3, 4]), Mode.TOP_RATED)
        entry = cache.lookup(1, Mode.TOP_RATED)
        assert entry is not None
        assert entry.subset.to_list() == [1, 3, 4]
        assert cache.lookup(1, Mode.KEEP_ALBUM) is None

    def test_store_keeps_private_copy(self):
        cache = PlaylistCache()
        subset = make_array([1, 3, 4])
        cache.store(1, subset, Mode.TOP_RATED)
        subset.reset()
        subset.append(9)
        assert cache.lookup(1, Mode.TOP_RATED).subset.to_list() == [1, 3, 4]

    def test_store_replaces_entry(self):
        cache = PlaylistCache()
        cache.store(1, make_array([1, 3, 4]), Mode.TOP_RATED)
        cache.store(1, make_array([0, 2]), Mode.KEEP_ARTIST, ShuffleMode.TRACKS)
        assert len(cache) == 1
        assert cache.lookup(1, Mode.TOP_RATED) is None
        entry = cache.lookup(1, Mode.KEEP_ARTIST)
        assert entry.subset.to_list() == [0, 2]
        assert entry.shuffle == ShuffleMode.TRACKS

    def test_store_same_array_twice(self):
        cache = PlaylistCache()
        entry = cache.store(1, make_array([5, 6]), Mode.TOP_RATED)
        cache.store(1, entry.subset, Mode.TOP_RATED)
        assert cache.lookup(1, Mode.TOP_RATED).subset.to_list() == [5, 6]

    def test_one_entry_per_playlist(self):
        cache = PlaylistCache()
        for playlist_id in range(5):
            cache.store(playlist_id, make_array([playlist_id]), Mode.SELECTION)
        assert len(cache) == 5
        assert 3 in cache

    def test_invalidate(self):
        cache = PlaylistCache()
        cache.store(1, make_array([1]), Mode.TOP_RATED)
        cache.invalidate(1)
        cache.invalidate(2)
        assert 1 not in cache

    def test_clear(self):
        cache = PlaylistCache()
        cache.store(1, make_array([1]), Mode.TOP_RATED)
        cache.store(2, make_array([2]), Mode.TOP_RATED)
        cache.clear()
        assert len(cache) == 0


class TestRateLimiter:

    def test_first_call_allowed(self):
        limiter = RateLimiter(2.0, FakeClock())
        assert limiter.try_acquire() is True

    def test_drops_inside_window(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock)
        assert limiter.try_acquire() is True
        clock.advance(1.9)
        assert limiter.try_acquire() is False
        clock.advance(0.1)
        assert limiter.try_acquire() is True

    def test_window_measured_from_last_start(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock)
        limiter.try_acquire()
        clock.advance(1.5)
        limiter.try_acquire()
        clock.advance(1.0)
        assert limiter.try_acquire() is True

    def test_remaining(self):
        clock = FakeClock()
        limiter = RateLimiter(2.0, clock)
        assert limiter.remaining() == 0.0
        limiter.try_acquire()
        clock.advance(0.5)
        assert limiter.remaining() == pytest.approx(1.5)

    def test_reset(self):
        limiter = RateLimiter(2.0, FakeClock())
        limiter.try_acquire()
        limiter.reset()
        assert limiter.try_acquire() is True

    def test_zero_interval(self):
        limiter = RateLimiter(0, FakeClock())
        assert all(limiter.try_acquire() for _ in range(3))


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
