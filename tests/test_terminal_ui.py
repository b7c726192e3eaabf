"""
python3 -m pytest tests/test_terminal_ui.py -v
"""

import os
import random
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

import config
from host_player import RepeatMode, ShuffleMode
from memory_host import MemoryHost
from selection import Mode
from sequencing_controller import SequencingController
from terminal_ui import TerminalUI


@pytest.fixture
def ui():
    host = MemoryHost()
    host.add_playlist(1, [{'rating': r} for r in (4, 0, 5, 4)])
    host.add_playlist(2, [{'rating': 5}])
    controller = SequencingController(host, interval=0, rng=random.Random(3))
    ui = TerminalUI(host, controller)
    ui.dispatch.bind_owner()
    controller.start()
    host.play_index(0)
    return ui


class TestCommands:

    def test_mode_command(self, ui):
        assert ui.handle_command("mode", ["top_rated"]) is True
        assert ui.controller.mode == Mode.TOP_RATED
        assert ui.controller.subset == [0, 2, 3]

    def test_mode_with_spaces(self, ui):
        ui.handle_command("mode", ["keep", "album"])
        assert ui.controller.mode == Mode.PLAYLIST

    def test_unknown_mode(self, ui, capsys):
        ui.handle_command("mode", ["loudest"])
        assert "unknown mode" in capsys.readouterr().out
        assert ui.controller.mode == Mode.PLAYLIST

    def test_next_follows_subset(self, ui):
        ui.handle_command("mode", ["top_rated"])
        ui.handle_command("next", [])
        assert ui.host.playing == 2
        ui.handle_command("prev", [])
        assert ui.host.playing == 0

    def test_shuffle_and_loop(self, ui):
        ui.handle_command("shuffle", [])
        ui.handle_command("loop", [])
        ui.dispatch.run_pending()
        assert ui.host.shuffle == ShuffleMode.TRACKS
        assert ui.host.repeat == RepeatMode.SINGLE
        assert ui.buttons.order_text == "Shuffle"
        assert ui.buttons.loop_text == "Loop Track"

    def test_random(self, ui):
        ui.handle_command("random", [])
        assert ui.host.shuffle == ShuffleMode.RANDOM

    def test_remember(self, ui):
        ui.handle_command("remember", ["on"])
        assert ui.host.config_get_int(config.REMEMBER_PER_PLAYLIST_KEY, 0) == 1
        assert ui.controller.remember_per_playlist
        ui.handle_command("remember", ["off"])
        assert not ui.controller.remember_per_playlist

    def test_rate_marks_subset_stale(self, ui):
        ui.handle_command("mode", ["top_rated"])
        ui.handle_command("rate", ["1", "5"])
        assert ui.host.playlists[1][1].rating == 5
        ui.handle_command("rebuild", [])
        assert ui.controller.subset == [0, 1, 2, 3]

    def test_invalid_numbers(self, ui, capsys):
        ui.handle_command("rate", ["x", "5"])
        assert "invalid" in capsys.readouterr().out

    def test_select(self, ui):
        ui.handle_command("select", ["1", "3"])
        ui.handle_command("mode", ["selection"])
        assert ui.controller.subset == [1, 3]

    def test_switch(self, ui):
        ui.handle_command("switch", ["2"])
        assert ui.host.get_current_playlist() == 2

    def test_quit(self, ui):
        assert ui.handle_command("quit", []) is False

    def test_status_and_tracks(self, ui, capsys):
        ui.handle_command("mode", ["top_rated"])
        ui.handle_command("status", [])
        ui.handle_command("tracks", [])
        out = capsys.readouterr().out
        assert "Top Rated" in out
        assert "3 items" in out
        assert "cursor     0 -> track 0" in out

    def test_status_without_subset(self, ui, capsys):
        ui.handle_command("status", [])
        out = capsys.readouterr().out
        assert "0 items" in out
        assert "cursor" not in out

    def test_rebuild_shown_on_ui_thread(self, ui, capsys):
        ui.handle_command("mode", ["top_rated"])
        assert "subset:" not in capsys.readouterr().out
        ui.dispatch.run_pending()
        assert "subset:\033[0m 3 items" in capsys.readouterr().out


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
