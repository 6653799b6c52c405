# mediakeyrouter/native_host.py
"""Native messaging host for the browser extension.

The browser starts this process and talks to it over stdin/stdout using
native messaging framing: a 4-byte little-endian length followed by that
many bytes of UTF-8 JSON. Tab-state reports from the extension are
re-published as distributed notifications for the daemon; media key actions
posted by the daemon are written back to the extension.
"""

import json
import logging
import struct
from threading import Lock
from typing import Any, BinaryIO, Mapping

from .control.extension import TAB_STATE_NOTIFICATION, Poster, TabState
from .engine.sources import Source

_LENGTH = struct.Struct("<I")
MAX_MESSAGE_BYTES = 1024 * 1024  # browsers cap host-bound messages at 1 MB


class NativeMessageError(ValueError):
    pass


def encode_message(message: Mapping[str, Any]) -> bytes:
    payload = json.dumps(message, separators=(",", ":")).encode("utf-8")
    return _LENGTH.pack(len(payload)) + payload


def read_message(stream: BinaryIO) -> dict[str, Any] | None:
    """Reads one framed message. Returns None at end of stream."""
    header = stream.read(_LENGTH.size)
    if len(header) != _LENGTH.size:
        return None
    (length,) = _LENGTH.unpack(header)
    if length > MAX_MESSAGE_BYTES:
        raise NativeMessageError(f"Message of {length} bytes exceeds the {MAX_MESSAGE_BYTES} byte limit")
    payload = stream.read(length)
    if len(payload) != length:
        return None
    try:
        message = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise NativeMessageError(f"Invalid message payload: {e}") from e
    if not isinstance(message, dict):
        raise NativeMessageError(f"Expected a JSON object, got {type(message).__name__}")
    return message


def parse_tab_state(message: Mapping[str, Any]) -> TabState | None:
    if message.get("type") == "tabState":
        return TabState.from_user_info({
            "hasTabs": message.get("hasTabs", False),
            "isPlaying": message.get("isPlaying", False),
            "service": message.get("activeTabService") or message.get("service"),
        })
    if isinstance(message.get("success"), bool):
        # Older extension builds only answer commands with {success, message}
        success = message["success"]
        return TabState(Source.BANDCAMP, has_tabs=success, is_playing=False, success=success)
    return None


class NativeMessagingHost:
    def __init__(self, stdin: BinaryIO, stdout: BinaryIO, post: Poster):
        self._stdin = stdin
        self._stdout = stdout
        self._post = post
        self._write_lock = Lock()

    def relay_incoming(self) -> None:
        """Reads extension messages until end of stream, publishing tab states."""
        while True:
            try:
                message = read_message(self._stdin)
            except NativeMessageError as e:
                logging.error(f"NativeHost: {e}")
                break
            if message is None:
                logging.info("NativeHost: input closed")
                break
            logging.debug(f"NativeHost: received {message}")
            state = parse_tab_state(message)
            if state is None:
                continue
            self._post(TAB_STATE_NOTIFICATION, state.to_user_info())

    def send_action(self, info: Mapping[str, Any]) -> bool:
        action = info.get("action")
        if not isinstance(action, str):
            logging.warning(f"NativeHost: notification without action: {dict(info)}")
            return False
        message: dict[str, Any] = {"action": action}
        if info.get("service"):
            message["service"] = info["service"]
        with self._write_lock:
            self._stdout.write(encode_message(message))
            self._stdout.flush()
        logging.debug(f"NativeHost: sent {message}")
        return True
