# mediakeyrouter/engine/poller.py

import logging
from threading import Event, Thread
from typing import Mapping

from ..control.base import SourceMonitor
from .observations import ObservationStore
from .sources import Source

DEFAULT_POLL_INTERVAL = 2.0  # seconds


class ObservationPoller:
    """Periodically probes source monitors and pushes the results into the store.

    Each monitor gets its own thread so a probe that hangs only lets its own
    source go stale.
    """

    def __init__(self, store: ObservationStore, monitors: Mapping[Source, SourceMonitor],
                 interval: float = DEFAULT_POLL_INTERVAL):
        self._store = store
        self._monitors = dict(monitors)
        self._interval = interval
        self._stop = Event()
        self._threads: list[Thread] = []

    def poll_once(self) -> None:
        for source, monitor in self._monitors.items():
            self._poll(source, monitor)

    def _poll(self, source: Source, monitor: SourceMonitor) -> None:
        try:
            available, playing = monitor.probe()
        except Exception as e:
            logging.error(f"Poller: {monitor.name} probe failed: {e}", exc_info=True)
            return
        self._store.update(source, available, playing)

    def start(self) -> None:
        if self._threads or not self._monitors:
            return
        self._stop.clear()
        for source, monitor in self._monitors.items():
            thread = Thread(target=self._run, args=(source, monitor), name=f"poller-{source.value}", daemon=True)
            thread.start()
            self._threads.append(thread)
        names = ", ".join(m.name for m in self._monitors.values())
        logging.info(f"Poller: started ({self._interval:.1f}s interval) for {names}")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if not self._threads:
            return
        for thread in self._threads:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logging.warning(f"Poller: {thread.name} still busy in a probe, leaving it behind")
        self._threads = []
        logging.info("Poller: stopped")

    def _run(self, source: Source, monitor: SourceMonitor) -> None:
        while not self._stop.is_set():
            self._poll(source, monitor)
            self._stop.wait(self._interval)
