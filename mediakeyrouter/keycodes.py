# mediakeyrouter/keycodes.py

from .engine.sources import MediaKey

# Key codes for media keys (subset)
# Full list can be found in IOKit/hidsystem/ev_keymap.h
NX_KEYTYPE_PLAY = 16
NX_KEYTYPE_NEXT = 17
NX_KEYTYPE_PREVIOUS = 18
NX_KEYTYPE_FAST = 19  # Fast Forward
NX_KEYTYPE_REWIND = 20

NX_SYSDEFINED = 14
# NSSystemDefined subtypes carrying media keys (NX_SUBTYPE_AUX_CONTROL_BUTTONS and friends)
MEDIA_KEY_SUBTYPES = (7, 8)

KEY_STATE_DOWN = 0xA
KEY_STATE_UP = 0xB

_MEDIA_KEYS = {
    NX_KEYTYPE_PLAY: MediaKey.PLAY_PAUSE,
    NX_KEYTYPE_NEXT: MediaKey.NEXT,
    NX_KEYTYPE_FAST: MediaKey.NEXT,
    NX_KEYTYPE_PREVIOUS: MediaKey.PREVIOUS,
    NX_KEYTYPE_REWIND: MediaKey.PREVIOUS,
}


def decode_media_key(data1: int) -> tuple[int, bool, bool]:
    """Splits NSEvent data1 of a system-defined event into (key_code, pressed, repeat)."""
    key_code = (data1 & 0xFFFF0000) >> 16
    key_flags = data1 & 0x0000FFFF
    key_state = (key_flags & 0xFF00) >> 8
    key_repeat = bool(key_flags & 0x1)
    return key_code, key_state == KEY_STATE_DOWN, key_repeat


def media_key_for(key_code: int) -> MediaKey | None:
    return _MEDIA_KEYS.get(key_code)


def key_code_for(key: MediaKey) -> int:
    return {
        MediaKey.PLAY_PAUSE: NX_KEYTYPE_PLAY,
        MediaKey.NEXT: NX_KEYTYPE_NEXT,
        MediaKey.PREVIOUS: NX_KEYTYPE_PREVIOUS,
    }[key]
