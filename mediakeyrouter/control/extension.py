# mediakeyrouter/control/extension.py

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from typing_extensions import override

from ..engine.observations import ObservationStore
from ..engine.sources import Command, Source
from .base import CommandSink

# Distributed notification names shared with the native messaging host
TAB_STATE_NOTIFICATION = "com.mediakeycontrols.tabstate"
MEDIA_KEY_NOTIFICATION = "com.mediakeycontrols.mediakey"

Poster = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class TabState:
    """One tab-state report from the browser extension."""
    service: Source
    has_tabs: bool
    is_playing: bool
    success: bool | None = None

    @classmethod
    def from_user_info(cls, info: Mapping[str, Any]) -> "TabState | None":
        if "hasTabs" not in info:
            return None
        try:
            service = Source.parse(str(info.get("service") or Source.BANDCAMP.value))
        except ValueError as e:
            logging.warning(f"Extension: ignoring tab state: {e}")
            return None
        success = info.get("success")
        return cls(
            service=service,
            has_tabs=bool(info["hasTabs"]),
            is_playing=bool(info.get("isPlaying", False)),
            success=None if success is None else bool(success),
        )

    def to_user_info(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            "service": self.service.value,
            "hasTabs": self.has_tabs,
            "isPlaying": self.is_playing,
        }
        if self.success is not None:
            info["success"] = self.success
        return info


class TabStateListener:
    """Feeds tab-state pushes from the extension into the observation store."""

    def __init__(self, store: ObservationStore):
        self._store = store

    def handle(self, info: Mapping[str, Any]) -> None:
        state = TabState.from_user_info(info)
        if state is None:
            logging.debug(f"Extension: ignoring notification without tab state: {dict(info)}")
            return
        self._store.update(state.service, state.has_tabs, state.is_playing)
        if state.success:
            self._store.adopt_confirmed_target(state.service)
        logging.info(f"Extension: {state.service.value} tab state hasTabs={state.has_tabs}, isPlaying={state.is_playing}")


class ExtensionRelaySink(CommandSink):
    """Asks the browser extension to run a command, via the native messaging host.

    The result comes back later as a tab-state push, so send() only reports
    whether the request was posted.
    """

    def __init__(self, source: Source, post: Poster):
        self._source = source
        self._post = post

    @property
    @override
    def name(self) -> str:
        return f"Extension:{self._source.value}"

    @override
    def send(self, command: Command) -> bool:
        self._post(MEDIA_KEY_NOTIFICATION, {"action": command.value, "service": self._source.value})
        logging.debug(f"{self.name}: posted {command.value}")
        return True
