import os
import json
import logging

logger = logging.getLogger(__name__)

_SETTINGS_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'config', 'settings.json')

def _load_settings():
    try:
        with open(_SETTINGS_PATH) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


# minimum seconds between two subset rebuilds
REGENERATE_INTERVAL = 2.0

# seconds to wait for the sequencing lock before giving up
LOCK_TIMEOUT = 2.0

TOP_RATED_MIN_RATING = 4

INDEX_ARRAY_INITIAL_CAPACITY = 64
# below this capacity arrays double, above it they grow by half
INDEX_ARRAY_GROWTH_THRESHOLD = 65536

DEFAULT_MODE = 'PLAYLIST'

# host key-value store
REMEMBER_PER_PLAYLIST_KEY = 'playback_buttons.remember_per_playlist'
SHUFFLE_KEY_PREFIX = 'playback_buttons.shuffle'
REPEAT_KEY_PREFIX = 'playback_buttons.repeat'

MODE_LABELS = {
    'PLAYLIST': 'Playlist',
    'KEEP_ALBUM': 'Keep Album',
    'KEEP_ARTIST': 'Keep Artist',
    'TOP_RATED': 'Top Rated',
    'SELECTION': 'Selection',
    'PURE_RANDOM': 'Pure Random',
    'SMART_RANDOM': 'Smart Random',
}

SHUFFLE_LABELS = {
    'OFF': 'Linear',
    'TRACKS': 'Shuffle',
    'ALBUMS': 'RND Album',
    'RANDOM': 'Random',
}

REPEAT_LABELS = {
    'OFF': 'Loop Off',
    'SINGLE': 'Loop Track',
    'ALL': 'Loop All',
}

LOG_LEVEL = 'INFO'
LOG_FILE = None

# override defaults from config/settings.json
_settings = _load_settings()
for _key, _val in _settings.items():
    _upper = _key.upper()
    if _upper in globals():
        globals()[_upper] = _val
        logger.debug(f"config: {_upper} = {_val} (from settings.json)")


def playlist_key(prefix: str, playlist_id: int) -> str:
    """Host config key for a per-playlist value."""
    return f"{prefix}_{playlist_id}"
