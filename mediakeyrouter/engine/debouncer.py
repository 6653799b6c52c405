# mediakeyrouter/engine/debouncer.py

import logging

from .observations import ObservationStore
from .resolver import Resolution, ResolverPolicy, Rule, resolve
from .sources import FocusSignal, MediaKey

DEFAULT_STICKY_WINDOW = 1.0  # seconds


class DispatchDebouncer:
    """Pins bursts of key presses to the target of the previous dispatch.

    Observation pushes lag behind the commands we send, so a quick run of
    "next" presses would otherwise flap between sources while the state of
    the first command is still in flight.
    """

    def __init__(self, store: ObservationStore, policy: ResolverPolicy,
                 sticky_window: float = DEFAULT_STICKY_WINDOW):
        self._store = store
        self._policy = policy
        self._sticky_window = sticky_window

    @property
    def sticky_window(self) -> float:
        return self._sticky_window

    def resolve(self, now: float, key: MediaKey, focus: FocusSignal) -> Resolution:
        snapshot = self._store.snapshot(now)
        history = self._store.history()

        last = history.last_target
        if last is not None and history.last_dispatch_at is not None:
            elapsed = now - history.last_dispatch_at
            if elapsed < self._sticky_window and snapshot[last].available:
                return Resolution(last, Rule.STICKY, f"Recently commanded {last.value} ({elapsed:.1f}s ago)")

        logging.debug(
            "Resolver: state "
            + ", ".join(f"{s.value}(avail={o.available}, playing={o.playing})" for s, o in snapshot.items())
            + f", focus={focus.value}, last={last.value if last else None}"
        )
        return resolve(snapshot, focus, history, key, self._policy)
