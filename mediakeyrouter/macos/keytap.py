# mediakeyrouter/macos/keytap.py

import logging
from typing import Callable

from AppKit import NSEvent
from Quartz import (
    CFMachPortCreateRunLoopSource,
    CFMachPortInvalidate,
    CFRunLoopAddSource,
    CFRunLoopGetCurrent,
    CFRunLoopRemoveSource,
    CGEventTapCreate,
    CGEventTapEnable,
    kCFRunLoopCommonModes,
    kCGEventTapDisabledByTimeout,
    kCGEventTapDisabledByUserInput,
    kCGEventTapOptionDefault,
    kCGHeadInsertEventTap,
    kCGSessionEventTap,
)

from ..keycodes import MEDIA_KEY_SUBTYPES, NX_SYSDEFINED, decode_media_key

# Returns True to consume the event
KeyHandler = Callable[[int, bool], bool]


class MediaKeyTap:
    """Session event tap that hands media key events to a handler.

    The handler runs inside the tap callback; if it is slow macOS disables
    the tap, which the callback detects and undoes.
    """

    def __init__(self, handler: KeyHandler):
        self._handler = handler
        self._tap = None
        self._source = None

    def start(self) -> bool:
        self._tap = CGEventTapCreate(
            kCGSessionEventTap,
            kCGHeadInsertEventTap,
            kCGEventTapOptionDefault,
            1 << NX_SYSDEFINED,
            self._callback,
            None,
        )
        if self._tap is None:
            logging.error("KeyTap: ❌ Failed to create event tap - check Accessibility permissions")
            return False

        self._source = CFMachPortCreateRunLoopSource(None, self._tap, 0)
        CFRunLoopAddSource(CFRunLoopGetCurrent(), self._source, kCFRunLoopCommonModes)
        CGEventTapEnable(self._tap, True)
        logging.info("KeyTap: ✅ Media key listener started")
        return True

    def stop(self) -> None:
        if self._tap is not None:
            CGEventTapEnable(self._tap, False)
        if self._source is not None:
            CFRunLoopRemoveSource(CFRunLoopGetCurrent(), self._source, kCFRunLoopCommonModes)
        if self._tap is not None:
            CFMachPortInvalidate(self._tap)
        self._tap = None
        self._source = None
        logging.info("KeyTap: media key listener stopped")

    def _callback(self, proxy, event_type, event, refcon):
        if event_type in (kCGEventTapDisabledByTimeout, kCGEventTapDisabledByUserInput):
            logging.warning(f"KeyTap: tap disabled by the system (type {event_type}), re-enabling")
            if self._tap is not None:
                CGEventTapEnable(self._tap, True)
            return event

        if event_type != NX_SYSDEFINED:
            return event

        try:
            ns_event = NSEvent.eventWithCGEvent_(event)
            if ns_event is None or ns_event.subtype() not in MEDIA_KEY_SUBTYPES:
                return event
            key_code, pressed, _repeat = decode_media_key(ns_event.data1())
            consume = self._handler(key_code, pressed)
        except Exception as e:
            logging.error(f"KeyTap: error processing media key: {e}")
            return event

        return None if consume else event
