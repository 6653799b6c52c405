# mediakeyrouter/macos/focus.py

from AppKit import NSWorkspace

from ..engine.sources import FocusSignal, classify_bundle_id


def frontmost_bundle_id() -> str | None:
    app = NSWorkspace.sharedWorkspace().frontmostApplication()
    if app is None:
        return None
    return app.bundleIdentifier()


def query_focus() -> FocusSignal:
    """Live frontmost-application category. Cheap enough for the event tap callback."""
    return classify_bundle_id(frontmost_bundle_id())
