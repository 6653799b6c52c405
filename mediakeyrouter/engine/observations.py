# mediakeyrouter/engine/observations.py

import logging
import time
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable

from .sources import Source

DEFAULT_STALENESS_WINDOW = 5.0  # seconds


@dataclass(frozen=True)
class Observation:
    available: bool = False
    playing: bool = False
    observed_at: float | None = None  # None means never observed


@dataclass(frozen=True)
class DispatchHistory:
    last_target: Source | None = None
    last_dispatch_at: float | None = None
    last_confirmed_success_at: float | None = None


UNKNOWN = Observation()


class ObservationStore:
    """Last-known state of every source plus the dispatch history.

    Records are immutable and replaced whole under a lock, so a concurrent
    snapshot never sees a half-written observation. Staleness is applied in
    snapshot() and nowhere else.
    """

    def __init__(self, staleness_window: float = DEFAULT_STALENESS_WINDOW,
                 clock: Callable[[], float] = time.time):
        self._staleness_window = staleness_window
        self._clock = clock
        self._lock = Lock()
        self._observations: dict[Source, Observation] = {source: UNKNOWN for source in Source}
        self._history = DispatchHistory()

    @property
    def staleness_window(self) -> float:
        return self._staleness_window

    def update(self, source: Source, available: bool, playing: bool, observed_at: float | None = None) -> None:
        record = Observation(
            available=bool(available),
            playing=bool(playing),
            observed_at=self._clock() if observed_at is None else observed_at,
        )
        with self._lock:
            self._observations[source] = record
        logging.debug(f"Observations: {source.value} available={record.available} playing={record.playing}")

    def raw(self, source: Source) -> Observation:
        """The last pushed record for source, without staleness applied."""
        with self._lock:
            return self._observations[source]

    def snapshot(self, now: float | None = None) -> dict[Source, Observation]:
        """Every source's observation with stale records forced to unavailable/not playing."""
        if now is None:
            now = self._clock()
        with self._lock:
            records = dict(self._observations)
        return {source: self._freshen(record, now) for source, record in records.items()}

    def _freshen(self, record: Observation, now: float) -> Observation:
        if record.observed_at is None or now - record.observed_at >= self._staleness_window:
            return replace(record, available=False, playing=False)
        return record

    def history(self) -> DispatchHistory:
        with self._lock:
            return self._history

    def record_dispatch(self, source: Source, at: float | None = None) -> None:
        at = self._clock() if at is None else at
        with self._lock:
            self._history = replace(self._history, last_target=source, last_dispatch_at=at)

    def confirm_success(self, source: Source, at: float | None = None) -> None:
        """A sink reported that a command reached source. Never moves last_target."""
        at = self._clock() if at is None else at
        with self._lock:
            self._history = replace(self._history, last_confirmed_success_at=at)
        logging.debug(f"Observations: confirmed successful control of {source.value}")

    def adopt_confirmed_target(self, source: Source, at: float | None = None) -> None:
        """The player itself reported being controlled, e.g. an extension tab push.

        Makes source the last target for recency. last_dispatch_at is left
        alone since no dispatch happened here.
        """
        at = self._clock() if at is None else at
        with self._lock:
            self._history = replace(self._history, last_target=source, last_confirmed_success_at=at)
        logging.debug(f"Observations: {source.value} confirmed control from its own side")
