"""
python3 -m pytest tests/test_selection.py -v
"""

import os
import sys
from collections import Counter

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from host_player import TrackInfo
from selection import Mode, artist_key, build_selection, folder_key


def tracks(*entries):
    return [TrackInfo(index=i, **entry) for i, entry in enumerate(entries)]


ALBUMS = tracks(
    {'artist': 'Low Tide', 'location': '/music/Low Tide/Shallows/CD1/01.mp3'},
    {'artist': 'Marrow', 'location': '/music/Marrow/Bones/01.ogg'},
    {'artist': 'Low Tide feat. Kelp', 'location': '/music/Low Tide/Shallows/CD2/01.mp3'},
    {'artist': None, 'location': None},
    {'artist': 'Low Tide', 'location': '/music/Low Tide/Shallows/bonus.mp3'},
)


class TestFolderKey:

    def test_strips_file_name(self):
        assert folder_key('/music/Band/Album/01.flac') == '/music/Band/Album'

    def test_strips_disc_folder(self):
        assert folder_key('/music/Band/Album/CD2/01.flac') == '/music/Band/Album'
        assert folder_key('/music/Band/Album/CD12/01.flac') == '/music/Band/Album'

    def test_disc_prefix_is_case_sensitive(self):
        assert folder_key('/music/Band/Album/cd2/01.flac') == '/music/Band/Album/cd2'

    def test_disc_folder_needs_digits(self):
        assert folder_key('/music/Band/CDs/01.flac') == '/music/Band/CDs'

    def test_trailing_slash(self):
        assert folder_key('/music/Band/Album//01.flac') == '/music/Band/Album'

    def test_no_separator(self):
        assert folder_key('track.flac') == ''

    def test_empty(self):
        assert folder_key('') == ''
        assert folder_key(None) == ''


class TestArtistKey:

    def test_plain(self):
        assert artist_key('Marrow') == 'Marrow'

    def test_feat(self):
        assert artist_key('Low Tide feat Kelp') == 'Low Tide'
        assert artist_key('Low Tide feat. Kelp') == 'Low Tide'
        assert artist_key('Low Tide featuring Kelp') == 'Low Tide'

    def test_earliest_marker_wins(self):
        assert artist_key('A feat. B featuring C') == 'A'

    def test_trailing_spaces(self):
        assert artist_key('Marrow   ') == 'Marrow'
        assert artist_key('Marrow  feat. X') == 'Marrow'

    def test_empty(self):
        assert artist_key('') == ''
        assert artist_key(None) == ''


class TestBuilders:

    def test_playlist_keeps_everything(self):
        subset, cursor = build_selection(Mode.PLAYLIST, ALBUMS, ALBUMS[2])
        assert subset.to_list() == [0, 1, 2, 3, 4]
        assert cursor == 2

    def test_keep_album(self):
        subset, cursor = build_selection(Mode.KEEP_ALBUM, ALBUMS, ALBUMS[2])
        assert subset.to_list() == [0, 2, 4]
        assert cursor == 1

    def test_keep_album_without_location(self):
        subset, cursor = build_selection(Mode.KEEP_ALBUM, ALBUMS, ALBUMS[3])
        assert len(subset) == 0
        assert cursor == 0

    def test_keep_artist(self):
        subset, cursor = build_selection(Mode.KEEP_ARTIST, ALBUMS, ALBUMS[4])
        assert subset.to_list() == [0, 2, 4]
        assert cursor == 2

    def test_keep_artist_without_artist(self):
        subset, _ = build_selection(Mode.KEEP_ARTIST, ALBUMS, ALBUMS[3])
        assert len(subset) == 0

    def test_keep_artist_without_reference(self):
        subset, _ = build_selection(Mode.KEEP_ARTIST, ALBUMS, None)
        assert len(subset) == 0

    def test_top_rated_scenario(self):
        items = tracks(*({'rating': r} for r in [2, 4, 0, 5, 4]))
        subset, cursor = build_selection(Mode.TOP_RATED, items, items[3])
        assert subset.to_list() == [1, 3, 4]
        assert cursor == 1

    def test_top_rated_reference_missing(self):
        items = tracks(*({'rating': r} for r in [2, 4, 0, 5, 4]))
        subset, cursor = build_selection(Mode.TOP_RATED, items, items[0])
        assert subset.to_list() == [1, 3, 4]
        assert cursor == 0

    def test_selection(self):
        items = tracks({'selected': True}, {}, {'selected': True}, {})
        subset, _ = build_selection(Mode.SELECTION, items, None)
        assert subset.to_list() == [0, 2]

    def test_pure_random_builds_everything_unshuffled(self):
        subset, cursor = build_selection(Mode.PURE_RANDOM, ALBUMS, ALBUMS[1])
        assert subset.to_list() == [0, 1, 2, 3, 4]
        assert cursor == 1

    def test_smart_random_weights(self):
        items = tracks(*({'rating': r} for r in [0, 4, 2]))
        subset, cursor = build_selection(Mode.SMART_RANDOM, items, items[2])
        counts = Counter(subset.to_list())
        assert counts == {0: 1, 1: 5, 2: 3}
        assert subset[cursor] == 2
        assert cursor == 6

    def test_vanished_items_are_skipped(self):
        items = [ALBUMS[0], None, ALBUMS[2]]
        subset, _ = build_selection(Mode.PLAYLIST, items, None)
        assert subset.to_list() == [0, 2]

    def test_builders_read_lazily(self):
        seen = []

        def enumerate_tracks():
            for track in ALBUMS:
                seen.append(track.index)
                yield track

        subset, _ = build_selection(Mode.PLAYLIST, enumerate_tracks(), None)
        assert seen == [0, 1, 2, 3, 4]
        assert len(subset) == 5

    @pytest.mark.parametrize("mode", [Mode.KEEP_ALBUM, Mode.KEEP_ARTIST, Mode.TOP_RATED, Mode.SELECTION])
    def test_filters_keep_playlist_order(self, mode):
        items = tracks(*(
            {'rating': 5, 'artist': 'Marrow', 'location': f'/m/Marrow/Bones/{i}.ogg', 'selected': True}
            for i in range(6)
        ))
        subset, _ = build_selection(mode, items, items[4])
        assert subset.to_list() == sorted(subset.to_list())
        assert len(subset) == 6


class TestMode:

    def test_from_name(self):
        assert Mode.from_name('top_rated') == Mode.TOP_RATED
        assert Mode.from_name('Keep Album') == Mode.KEEP_ALBUM
        assert Mode.from_name('smart-random') == Mode.SMART_RANDOM
        with pytest.raises(KeyError):
            Mode.from_name('loudest')

    def test_labels(self):
        assert Mode.PLAYLIST.label == 'Playlist'
        assert Mode.SMART_RANDOM.label == 'Smart Random'

    def test_forces_shuffle(self):
        assert Mode.PURE_RANDOM.forces_shuffle
        assert Mode.SMART_RANDOM.forces_shuffle
        assert not Mode.TOP_RATED.forces_shuffle


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
