from typing import Protocol

from ..engine.sources import Command


class CommandSink(Protocol):
    """Executes transport commands against one media source."""

    @property
    def name(self) -> str:
        """Returns the unique name of the sink (e.g., 'AppleScript:Spotify', 'SpotifyAPI')."""
        ...

    def send(self, command: Command) -> bool:
        """Sends command to the source. Returns True on success, False otherwise.

        May block for as long as the underlying automation call takes; the
        dispatcher only calls it from its worker thread.
        """
        ...


class SourceMonitor(Protocol):
    """Reports whether a media source exists and whether it is playing."""

    @property
    def name(self) -> str:
        ...

    def probe(self) -> tuple[bool, bool]:
        """Returns (available, playing). May block; only the poller thread calls it."""
        ...
