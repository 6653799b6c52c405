# mediakeyrouter/engine/dispatcher.py

import logging
import queue
import time
from threading import Thread
from typing import Callable, Mapping

from ..control.base import CommandSink
from .observations import ObservationStore
from .sources import Command, MediaKey, Source, command_for

_STOP = object()


class CommandDispatcher:
    """Hands commands to per-source sinks on a worker thread.

    dispatch() only records history and enqueues, so it is safe to call from
    the key event callback. Commands run one at a time in press order.
    """

    def __init__(self, store: ObservationStore, sinks: Mapping[Source, CommandSink],
                 clock: Callable[[], float] = time.time):
        self._store = store
        self._sinks = dict(sinks)
        self._clock = clock
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread: Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = Thread(target=self._worker, name="command-dispatcher", daemon=True)
        self._thread.start()
        logging.info("Dispatcher: worker started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Runs every command already queued, then stops the worker."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logging.warning("Dispatcher: worker did not finish within timeout")
        else:
            logging.info("Dispatcher: worker stopped")
        self._thread = None

    def dispatch(self, source: Source, key: MediaKey, now: float | None = None) -> Command:
        command = command_for(key)
        self._store.record_dispatch(source, self._clock() if now is None else now)
        self._queue.put((source, command))
        logging.debug(f"Dispatcher: queued {command.value} for {source.value}")
        return command

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            source, command = item
            try:
                self._execute(source, command)
            except Exception as e:
                logging.error(f"Dispatcher: unexpected error sending {command.value} to {source.value}: {e}",
                              exc_info=True)

    def _execute(self, source: Source, command: Command) -> None:
        sink = self._sinks.get(source)
        if sink is None:
            logging.warning(f"Dispatcher: no sink registered for {source.value}, dropping {command.value}")
            success = False
        else:
            started = self._clock()
            try:
                success = sink.send(command)
            except Exception as e:
                logging.error(f"Dispatcher: {sink.name} raised while sending {command.value}: {e}", exc_info=True)
                success = False
            logging.debug(f"Dispatcher: {sink.name} took {(self._clock() - started) * 1000:.0f}ms")

        if success:
            logging.info(f"Dispatcher: ✅ {command.value} → {source.value}")
            self._store.confirm_success(source, self._clock())
        else:
            logging.warning(f"Dispatcher: {command.value} → {source.value} failed, marking it unavailable")
            self._store.update(source, available=False, playing=False, observed_at=self._clock())
