import time
import threading
import logging
from typing import Optional

import config
from host_player import PlayState, ShuffleMode
from memory_host import MemoryHost
from playback_buttons import PlaybackButtons, mode_choices
from selection import Mode
from sequencing_controller import SequencingController
from ui_dispatch import UIDispatchQueue

logger = logging.getLogger(__name__)


class TerminalUI:

    def __init__(self, host: MemoryHost, controller: Optional[SequencingController] = None,
                 auto_interval: Optional[float] = None):
        self.host = host
        self.controller = controller or SequencingController(host)
        self.dispatch = UIDispatchQueue()
        self.buttons = PlaybackButtons(host, self.dispatch, self.controller)
        self.running = False
        self.auto_interval = auto_interval
        self.auto_thread: Optional[threading.Thread] = None

        self.buttons.on_changed = self._on_button_changed
        self.controller.on_rebuild = self._on_rebuild
        self.host.subscribe(self.buttons.handle_event)

    def _on_button_changed(self, name, text):
        print(f"\033[0;36m{name}:\033[0m {text}")

    def _on_rebuild(self, count):
        # called with the sequencing lock held
        self.dispatch.post(self._show_rebuild, count)

    def _show_rebuild(self, count):
        print(f"\033[0;36msubset:\033[0m {count} items")

    def _auto_advance_loop(self):
        # stands in for the host streaming thread reaching the end of a track
        while self.running:
            time.sleep(self.auto_interval)
            if self.running and self.host.get_play_state() == PlayState.PLAYING:
                self.host.next()

    def print_help(self):
        print()
        print("  \033[2mcommands\033[0m")
        print()
        print("    play           start playback")
        print("    stop           stop playback")
        print("    next           next track")
        print("    prev           previous track")
        print()
        print("    mode NAME      sequencing mode")
        for mode in Mode:
            print(f"                     {mode.name.lower():<13} {mode.label}")
        print("    shuffle        toggle shuffle (linear/shuffle)")
        print("    random         host full random order")
        print("    loop           toggle loop (track/all)")
        print("    remember on|off  keep shuffle/loop per playlist")
        print()
        print("    select N..     select tracks")
        print("    rate N R       set rating of track N")
        print("    enqueue N      queue track N")
        print("    switch ID      switch playlist")
        print("    rebuild        rebuild subset now")
        print()
        print("    tracks         list tracks")
        print("    status         show sequencing state")
        print("    help           show help")
        print("    quit           exit")
        print()

    def print_tracks(self):
        playlist_id = self.host.get_current_playlist()
        if playlist_id is None:
            print("\033[0;31m✗\033[0m no playlist")
            return
        subset = set(self.controller.subset)
        playing = self.host.get_playing_index()
        print()
        print(f"  \033[2mplaylist {playlist_id}\033[0m   {self.host.get_track_count()} tracks")
        print()
        for track in self.host.iter_tracks(playlist_id):
            marker = "\033[0;32m▸\033[0m" if track.index == playing else " "
            member = "•" if track.index in subset else " "
            selected = "*" if track.selected else " "
            print(f"  {marker}{member}{selected} {track.index:03d}  {'★' * track.rating:<5}  "
                  f"{track.artist or '':<24} \033[2m{track.location or ''}\033[0m")
        print()

    def print_status(self):
        subset, cursor, current = self.controller.snapshot()
        print()
        print(f"  mode       {self.controller.mode.label}")
        print(f"  order      {self.buttons.order_text}   {self.buttons.loop_text}")
        print(f"  subset     {len(subset)} items ({self.controller.status.name.lower()})")
        if current is not None:
            print(f"  cursor     {cursor} -> track {current}")
        print(f"  playing    {self.host.get_playing_index()}")
        print(f"  cached     {len(self.controller.cache)} playlists, {self.controller.build_count} builds")
        print()

    def _parse_ints(self, args):
        try:
            return [int(a) for a in args]
        except ValueError:
            print("\033[0;31m✗\033[0m invalid")
            return None

    def handle_command(self, cmd, args):
        """
        Run one command.

        Returns:
            False when the ui should exit.
        """
        playlist_id = self.host.get_current_playlist()

        if cmd == "play":
            self.host.play()

        elif cmd == "stop":
            self.host.stop()

        elif cmd == "next":
            self.host.next()

        elif cmd == "prev":
            self.host.prev()

        elif cmd == "mode":
            if not args:
                print("  " + ", ".join(mode_choices()))
            else:
                try:
                    mode = Mode.from_name(" ".join(args))
                except KeyError:
                    print(f"\033[0;31m✗\033[0m unknown mode \033[2m'{' '.join(args)}'\033[0m")
                else:
                    self.buttons.on_mode_selected(list(Mode).index(mode))

        elif cmd == "shuffle":
            self.buttons.on_order_clicked()

        elif cmd == "random":
            if self.host.get_shuffle() != ShuffleMode.RANDOM:
                self.host.set_shuffle(ShuffleMode.RANDOM)
                self.host.broadcast_config_changed()

        elif cmd == "loop":
            self.buttons.on_loop_clicked()

        elif cmd == "remember":
            enabled = bool(args) and args[0] in ("on", "1", "yes")
            self.host.config_set_int(config.REMEMBER_PER_PLAYLIST_KEY, 1 if enabled else 0)
            self.host.broadcast_config_changed()
            print(f"\033[0;36mremember:\033[0m {'on' if enabled else 'off'}")

        elif cmd == "select":
            positions = self._parse_ints(args)
            if positions is not None and playlist_id is not None:
                self.host.set_selected(playlist_id, positions)

        elif cmd == "rate":
            values = self._parse_ints(args)
            if values is not None and len(values) == 2 and playlist_id is not None:
                self.host.set_rating(playlist_id, values[0], values[1])
            elif values is not None:
                print("\033[2mrate N R\033[0m")

        elif cmd == "enqueue":
            values = self._parse_ints(args)
            if values:
                for value in values:
                    self.host.enqueue(value)

        elif cmd == "switch":
            values = self._parse_ints(args)
            if values:
                self.host.switch_playlist(values[0])

        elif cmd == "rebuild":
            if not self.controller.rebuild():
                print(f"\033[1;33m~\033[0m not rebuilt \033[2m(next allowed in {self.controller.limiter.remaining():.1f}s)\033[0m")

        elif cmd == "tracks":
            self.print_tracks()

        elif cmd == "status":
            self.print_status()

        elif cmd == "help":
            self.print_help()

        elif cmd in ["quit", "exit", "q"]:
            return False

        else:
            print(f"\033[0;31m✗\033[0m unknown \033[2m'{cmd}'\033[0m")

        return True

    def run(self):
        self.running = True
        self.dispatch.bind_owner()
        self.controller.start()
        self.buttons.refresh()

        print("\n")
        print("  ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
        print()
        print("  playorder")
        print("  \033[2mmode-driven playback order\033[0m")
        print()
        print("  ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
        print()
        print(f"  playlists       \033[2m{len(self.host.playlists)}\033[0m")
        print(f"  mode            \033[2m{self.controller.mode.label}\033[0m")
        print()
        print("  \033[2mtype 'help' for commands\033[0m")
        print()

        if self.auto_interval:
            self.auto_thread = threading.Thread(target=self._auto_advance_loop, daemon=True)
            self.auto_thread.start()

        try:
            while self.running:
                try:
                    self.dispatch.run_pending()
                    cmd_input = input("> ").strip().lower()
                    if not cmd_input:
                        continue

                    parts = cmd_input.split()
                    if not self.handle_command(parts[0], parts[1:]):
                        print("\n\033[2m—\033[0m")
                        self.running = False
                        break
                    self.dispatch.run_pending()

                except KeyboardInterrupt:
                    print("\n\n\033[2m(use 'quit' to exit)\033[0m")
                    continue
                except EOFError:
                    self.running = False
                    break
                except Exception as e:
                    logger.error(f"unexpected error: {e}")
                    print(f"\n\033[0;31m✗\033[0m {e}")
                    continue

        finally:
            self.cleanup()

    def cleanup(self):
        self.running = False
        if self.auto_thread:
            self.auto_thread.join(timeout=1)
        self.controller.stop()
        self.host.stop()
        print("\n\033[2m—\033[0m\n")
