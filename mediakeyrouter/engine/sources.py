# mediakeyrouter/engine/sources.py

from enum import Enum


class Source(str, Enum):
    """A controllable media target. Declaration order is the default tie-break order."""
    YOUTUBE = "youtube"
    BANDCAMP = "bandcamp"
    SPOTIFY = "spotify"

    @classmethod
    def parse(cls, value: str) -> "Source":
        try:
            return cls(value.strip().lower())
        except ValueError:
            known = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown source '{value}' (expected one of: {known})") from None


class MediaKey(Enum):
    PLAY_PAUSE = "play"
    NEXT = "next"
    PREVIOUS = "previous"


class Command(str, Enum):
    # Values double as the browser extension's action names
    TOGGLE_PLAY_PAUSE = "playPause"
    SKIP_FORWARD = "next"
    SKIP_BACKWARD = "previous"


class FocusSignal(Enum):
    NATIVE_APP = "native-app"
    BROWSER = "browser"
    NEITHER = "neither"


_KEY_COMMANDS: dict[MediaKey, Command] = {
    MediaKey.PLAY_PAUSE: Command.TOGGLE_PLAY_PAUSE,
    MediaKey.NEXT: Command.SKIP_FORWARD,
    MediaKey.PREVIOUS: Command.SKIP_BACKWARD,
}

# Which frontmost-application category owns each source
SOURCE_FOCUS: dict[Source, FocusSignal] = {
    Source.YOUTUBE: FocusSignal.BROWSER,
    Source.BANDCAMP: FocusSignal.BROWSER,
    Source.SPOTIFY: FocusSignal.NATIVE_APP,
}

NATIVE_APP_BUNDLE_IDS = frozenset({"com.spotify.client"})
BROWSER_BUNDLE_IDS = frozenset({
    "com.google.Chrome",
    "com.google.Chrome.canary",
    "org.chromium.Chromium",
    "com.brave.Browser",
    "com.microsoft.edgemac",
    "com.apple.Safari",
})


def command_for(key: MediaKey) -> Command:
    return _KEY_COMMANDS[key]


def classify_bundle_id(bundle_id: str | None) -> FocusSignal:
    """Collapses a frontmost application's bundle identifier to a focus category."""
    if bundle_id in NATIVE_APP_BUNDLE_IDS:
        return FocusSignal.NATIVE_APP
    if bundle_id in BROWSER_BUNDLE_IDS:
        return FocusSignal.BROWSER
    return FocusSignal.NEITHER


def sources_owned_by(focus: FocusSignal) -> list[Source]:
    return [source for source in Source if SOURCE_FOCUS[source] is focus]
