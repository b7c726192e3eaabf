"""
Shuffle/loop buttons and the mode selector.

PlaybackButtons is the toolkit-independent state behind the widget: label
texts and the selected mode entry. Click handlers may run on any thread;
every visible change is posted to the UI dispatch queue and applied when the
UI thread drains it.
"""

import logging
from typing import Callable, List, Optional

import config
from host_player import HostEvent, HostPlayer, RepeatMode, ShuffleMode
from selection import Mode
from ui_dispatch import UIDispatchQueue

logger = logging.getLogger(__name__)


def order_label(mode: ShuffleMode) -> str:
    return config.SHUFFLE_LABELS[mode.name]


def loop_label(mode: RepeatMode) -> str:
    return config.REPEAT_LABELS[mode.name]


def mode_choices() -> List[str]:
    """Mode selector entries, in Mode order."""
    return [mode.label for mode in Mode]


class PlaybackButtons:

    def __init__(self, host: HostPlayer, dispatch: UIDispatchQueue, controller=None):
        self.host = host
        self.dispatch = dispatch
        self.controller = controller

        self.order_text: str = ""
        self.loop_text: str = ""
        self.mode_index: int = 0

        self.on_changed: Optional[Callable[[str, str], None]] = None

        if controller is not None:
            controller.on_mode_change = self.show_mode
            controller.on_empty_selection = self._on_empty_selection

    def refresh(self) -> None:
        """Queue label updates from the host's shuffle and repeat state."""
        self.dispatch.post(self._set_order_text, order_label(self.host.get_shuffle()))
        self.dispatch.post(self._set_loop_text, loop_label(self.host.get_repeat()))

    def handle_event(self, event: HostEvent, param=None):
        if event == HostEvent.CONFIG_CHANGED:
            self.refresh()
        return None

    def on_order_clicked(self) -> None:
        old = self.host.get_shuffle()
        new = ShuffleMode.TRACKS if old == ShuffleMode.OFF else ShuffleMode.OFF
        if new != old:
            self.host.set_shuffle(new)
            logger.info(f"BUTTONS: shuffle {old.name} -> {new.name}")
            self.host.broadcast_config_changed()

    def on_loop_clicked(self) -> None:
        old = self.host.get_repeat()
        new = RepeatMode.ALL if old == RepeatMode.SINGLE else RepeatMode.SINGLE
        if new != old:
            self.host.set_repeat(new)
            logger.info(f"BUTTONS: repeat {old.name} -> {new.name}")
            self.host.broadcast_config_changed()

    def on_mode_selected(self, index: int) -> None:
        modes = list(Mode)
        if not 0 <= index < len(modes):
            logger.warning(f"BUTTONS: no mode at {index}")
            return
        if self.controller is not None:
            self.controller.set_mode(modes[index])

    def show_mode(self, mode: Mode) -> None:
        self.dispatch.post(self._set_mode_index, list(Mode).index(mode))

    def _on_empty_selection(self, mode: Mode) -> None:
        logger.info(f"BUTTONS: {mode.name} selected nothing, selector back to {Mode.PLAYLIST.label}")
        self.show_mode(Mode.PLAYLIST)

    # runs on the ui thread

    def _set_order_text(self, text: str) -> None:
        if text != self.order_text:
            self.order_text = text
            self._notify('order', text)

    def _set_loop_text(self, text: str) -> None:
        if text != self.loop_text:
            self.loop_text = text
            self._notify('loop', text)

    def _set_mode_index(self, index: int) -> None:
        if index != self.mode_index:
            self.mode_index = index
            self._notify('mode', mode_choices()[index])

    def _notify(self, name: str, text: str) -> None:
        if self.on_changed:
            self.on_changed(name, text)
