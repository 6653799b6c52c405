# mediakeyrouter/engine/state.py

import logging
import time
from typing import Callable, Protocol

from ..keycodes import media_key_for
from .debouncer import DispatchDebouncer
from .dispatcher import CommandDispatcher
from .observations import ObservationStore
from .poller import ObservationPoller
from .resolver import Resolution
from .sources import FocusSignal, MediaKey


class Switch(Protocol):
    @property
    def enabled(self) -> bool:
        ...


def safe_focus(query: Callable[[], FocusSignal]) -> FocusSignal:
    """Runs a focus query, treating any failure as no relevant application in front."""
    try:
        return query()
    except Exception as e:
        logging.warning(f"Focus: query failed, assuming neither app is frontmost: {e}")
        return FocusSignal.NEITHER


class EngineState:
    """The routing engine as one owned object: store, debouncer, dispatcher and poller.

    handle_key_event() runs inside the OS event tap callback. It only touches
    memory and a queue; anything slow happens on the dispatcher and poller
    threads.
    """

    def __init__(self, store: ObservationStore, debouncer: DispatchDebouncer, dispatcher: CommandDispatcher,
                 focus_query: Callable[[], FocusSignal], switch: Switch,
                 poller: ObservationPoller | None = None, clock: Callable[[], float] = time.time):
        self.store = store
        self.debouncer = debouncer
        self.dispatcher = dispatcher
        self.poller = poller
        self._focus_query = focus_query
        self._switch = switch
        self._clock = clock

    def start(self) -> None:
        self.dispatcher.start()
        if self.poller is not None:
            self.poller.poll_once()
            self.poller.start()

    def stop(self) -> None:
        if self.poller is not None:
            self.poller.stop()
        self.dispatcher.stop()

    def route(self, key: MediaKey) -> Resolution:
        """Resolves a key press to a target and dispatches it."""
        now = self._clock()
        focus = safe_focus(self._focus_query)
        resolution = self.debouncer.resolve(now, key, focus)
        if resolution.target is None:
            logging.info(f"Engine: ⚠️ {key.value}: {resolution.reason}, doing nothing")
            return resolution
        logging.info(f"Engine: 🎯 {key.value} → {resolution.target.value} [{resolution.rule.value}] {resolution.reason}")
        self.dispatcher.dispatch(resolution.target, key, now)
        return resolution

    def handle_key_event(self, key_code: int, pressed: bool) -> bool:
        """Returns True when the event should be consumed instead of passed to the system."""
        key = media_key_for(key_code)
        if key is None:
            return False
        if not self._switch.enabled:
            logging.debug("Engine: media key capture disabled, passing through")
            return False
        if not pressed:
            return True
        try:
            self.route(key)
        except Exception as e:
            # Never raise into the event tap; consume so the default player does not launch
            logging.error(f"Engine: failed to route {key.value}: {e}", exc_info=True)
        return True
