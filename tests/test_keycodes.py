from mediakeyrouter.engine.sources import MediaKey
from mediakeyrouter.keycodes import (
    KEY_STATE_DOWN,
    KEY_STATE_UP,
    NX_KEYTYPE_PLAY,
    NX_KEYTYPE_PREVIOUS,
    decode_media_key,
    key_code_for,
    media_key_for,
)


def test_decode_key_down():
    assert decode_media_key((NX_KEYTYPE_PLAY << 16) | (KEY_STATE_DOWN << 8)) == (NX_KEYTYPE_PLAY, True, False)


def test_decode_key_up_with_repeat():
    data1 = (NX_KEYTYPE_PREVIOUS << 16) | (KEY_STATE_UP << 8) | 0x1
    assert decode_media_key(data1) == (NX_KEYTYPE_PREVIOUS, False, True)


def test_media_key_mapping():
    assert media_key_for(16) is MediaKey.PLAY_PAUSE
    assert media_key_for(17) is MediaKey.NEXT
    assert media_key_for(18) is MediaKey.PREVIOUS
    assert media_key_for(19) is MediaKey.NEXT
    assert media_key_for(20) is MediaKey.PREVIOUS
    assert media_key_for(0) is None  # volume up


def test_key_code_round_trip():
    for key in MediaKey:
        assert media_key_for(key_code_for(key)) is key
