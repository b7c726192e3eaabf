#!/usr/bin/env python3

import sys
import json
import logging
import argparse
import config


DEMO_PLAYLIST = [
    {'artist': 'The Comets', 'location': '/music/The Comets/Orbit/01 Launch.flac', 'rating': 4},
    {'artist': 'The Comets', 'location': '/music/The Comets/Orbit/02 Drift.flac', 'rating': 2},
    {'artist': 'The Comets feat. Nova', 'location': '/music/The Comets/Orbit/03 Flare.flac', 'rating': 5},
    {'artist': 'Low Tide', 'location': '/music/Low Tide/Shallows/CD1/01 Pier.mp3', 'rating': 0},
    {'artist': 'Low Tide', 'location': '/music/Low Tide/Shallows/CD2/01 Reef.mp3', 'rating': 3},
    {'artist': 'Low Tide featuring Kelp', 'location': '/music/Low Tide/Shallows/CD2/02 Current.mp3', 'rating': 4},
    {'artist': 'Marrow', 'location': '/music/Marrow/Bones/01 Femur.ogg', 'rating': 1},
    {'artist': None, 'location': '/music/untagged/field-recording.wav', 'rating': 0},
]


def setup_logging(debug: bool = False):
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    use_debug = debug or config.LOG_LEVEL == 'DEBUG'
    log_level = logging.DEBUG if use_debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    root_logger.handlers.clear()

    if config.LOG_FILE:
        try:
            file_handler = logging.FileHandler(config.LOG_FILE)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"\033[1;33m~\033[0m cannot open log file {config.LOG_FILE}: {e}", file=sys.stderr)

    if debug:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)


def load_playlists(path: str) -> dict:
    """
    Read playlists from a json file.

    The file holds either a list of track objects (one playlist, id 0) or an
    object mapping playlist ids to such lists.
    """
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, list):
        return {0: data}
    if isinstance(data, dict):
        return {int(key): value for key, value in data.items()}
    raise ValueError(f"{path}: expected a list or an object of lists")


def main():
    parser = argparse.ArgumentParser(
        description='playorder - mode-driven playback order',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s                          demo playlist
  %(prog)s --playlist music.json    load playlists from json
  %(prog)s --mode top_rated         start in top rated mode
  %(prog)s --auto 3                 advance every 3 seconds
        """
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='enable debug logging'
    )

    parser.add_argument(
        '--playlist',
        metavar='FILE',
        help='json file with tracks'
    )

    parser.add_argument(
        '--mode',
        default=config.DEFAULT_MODE,
        help='initial sequencing mode'
    )

    parser.add_argument(
        '--auto',
        type=float,
        metavar='SECS',
        help='request the next track every SECS seconds'
    )

    args = parser.parse_args()

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    from memory_host import MemoryHost
    from selection import Mode
    from sequencing_controller import SequencingController
    from terminal_ui import TerminalUI

    try:
        mode = Mode.from_name(args.mode)
    except KeyError:
        print(f"\033[0;31m✗\033[0m unknown mode '{args.mode}'")
        print(f"\033[2m  modes: {', '.join(m.name.lower() for m in Mode)}\033[0m")
        sys.exit(1)

    try:
        playlists = load_playlists(args.playlist) if args.playlist else {0: DEMO_PLAYLIST}
    except (OSError, ValueError) as e:
        print(f"\033[0;31m✗\033[0m {e}")
        sys.exit(1)

    host = MemoryHost()
    for playlist_id, entries in sorted(playlists.items()):
        host.add_playlist(playlist_id, entries)

    try:
        ui = TerminalUI(host, SequencingController(host, mode=mode), auto_interval=args.auto)
        ui.run()
    except KeyboardInterrupt:
        print("\n\n\033[2minterrupted\033[0m\n")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
