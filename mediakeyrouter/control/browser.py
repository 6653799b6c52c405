# mediakeyrouter/control/browser.py

import logging
from dataclasses import dataclass
from typing_extensions import override

from ..engine.sources import Command
from .applescript import applescript_string, is_process_running, run_applescript_capture_output
from .base import CommandSink, SourceMonitor

NOT_FOUND = "not found"

SAFARI = "Safari"
# AppleScript application name -> process name
CHROME_FAMILY = {
    "Google Chrome": "Google Chrome",
    "Chromium": "Chromium",
    "Brave Browser": "Brave Browser",
}


@dataclass(frozen=True)
class SiteProfile:
    """How to find a site's tabs and drive its player with page JavaScript."""
    name: str
    url_fragment: str
    commands: dict[Command, str]
    playing_state: str


YOUTUBE = SiteProfile(
    name="YouTube",
    url_fragment="youtube.com/watch",
    commands={
        Command.TOGGLE_PLAY_PAUSE: """(function() {
    var btn = document.querySelector('.ytp-play-button');
    if (btn) { btn.click(); return 'dispatched'; }
    return 'not found';
})();""",
        Command.SKIP_FORWARD: """(function() {
    var btn = document.querySelector('.ytp-next-button');
    if (btn && btn.offsetParent !== null) { btn.click(); return 'dispatched next'; }
    return 'next not available';
})();""",
        Command.SKIP_BACKWARD: """(function() {
    var btn = document.querySelector('.ytp-prev-button');
    if (btn && btn.offsetParent !== null) { btn.click(); return 'dispatched prev'; }
    var video = document.querySelector('video');
    if (video) { video.currentTime = 0; return 'restarted video'; }
    return 'prev not available';
})();""",
    },
    playing_state="""(function() {
    var video = document.querySelector('video');
    if (video) { return video.paused ? 'paused' : 'playing'; }
    return 'not found';
})();""",
)

BANDCAMP = SiteProfile(
    name="Bandcamp",
    url_fragment="bandcamp.com",
    commands={
        Command.TOGGLE_PLAY_PAUSE: """(function() {
    var btn = document.querySelector('.playbutton');
    if (btn) {
        btn.dispatchEvent(new MouseEvent('click', { bubbles: true, cancelable: true, view: window }));
        return 'dispatched';
    }
    return 'not found';
})();""",
        Command.SKIP_FORWARD: """(function() {
    var btn = document.querySelector('.nextbutton');
    if (btn && !btn.classList.contains('hiddenelem')) {
        btn.dispatchEvent(new MouseEvent('click', { bubbles: true, cancelable: true, view: window }));
        return 'dispatched next';
    }
    return 'next not available';
})();""",
        Command.SKIP_BACKWARD: """(function() {
    var btn = document.querySelector('.prevbutton');
    if (btn && !btn.classList.contains('hiddenelem')) {
        btn.dispatchEvent(new MouseEvent('click', { bubbles: true, cancelable: true, view: window }));
        return 'dispatched prev';
    }
    var bar = document.querySelector('.progbar_empty');
    if (bar) {
        var r = bar.getBoundingClientRect();
        bar.dispatchEvent(new MouseEvent('click', { view: window, bubbles: true, cancelable: true,
                                                    clientX: r.left + 5, clientY: r.top + 5 }));
        return 'restarted track';
    }
    return 'prev not available';
})();""",
    },
    playing_state="""(function() {
    var btn = document.querySelector('.playbutton');
    if (btn) { return btn.classList.contains('playing') ? 'playing' : 'paused'; }
    return 'not found';
})();""",
)


def safari_script(url_fragment: str, javascript: str) -> str:
    return f"""
    tell application "{SAFARI}"
        repeat with w in windows
            repeat with t in tabs of w
                if URL of t contains {applescript_string(url_fragment)} then
                    set jsResult to (do JavaScript {applescript_string(javascript)} in t)
                    return jsResult as text
                end if
            end repeat
        end repeat
        return "{NOT_FOUND}"
    end tell
    """


def chrome_script(browser: str, url_fragment: str, javascript: str) -> str:
    return f"""
    tell application "{browser}"
        repeat with w in windows
            repeat with t in tabs of w
                if URL of t contains {applescript_string(url_fragment)} then
                    set jsResult to (execute t javascript {applescript_string(javascript)})
                    return jsResult as text
                end if
            end repeat
        end repeat
        return "{NOT_FOUND}"
    end tell
    """


def has_tab_script(browser: str, url_fragment: str) -> str:
    return f"""
    tell application "{browser}"
        repeat with w in windows
            repeat with t in tabs of w
                if URL of t contains {applescript_string(url_fragment)} then
                    return true
                end if
            end repeat
        end repeat
        return false
    end tell
    """


class BrowserTabControl(CommandSink, SourceMonitor):
    """Drives a site's player by running JavaScript in its first open tab.

    Safari is tried first, then the Chrome family; browsers that are not
    running are skipped so AppleScript never launches them.
    """

    def __init__(self, profile: SiteProfile):
        self._profile = profile

    @property
    @override
    def name(self) -> str:
        return f"Browser:{self._profile.name}"

    def _running_browsers(self) -> list[str]:
        browsers: list[str] = []
        if is_process_running(SAFARI):
            browsers.append(SAFARI)
        browsers.extend(app for app, process in CHROME_FAMILY.items() if is_process_running(process))
        return browsers

    def _script_for(self, browser: str, javascript: str) -> str:
        if browser == SAFARI:
            return safari_script(self._profile.url_fragment, javascript)
        return chrome_script(browser, self._profile.url_fragment, javascript)

    def run_in_tab(self, javascript: str) -> str | None:
        """Runs javascript in the first matching tab. Returns its result, or None if no tab ran it."""
        for browser in self._running_browsers():
            stdout, _ = run_applescript_capture_output(self._script_for(browser, javascript), browser)
            if stdout is not None and stdout != NOT_FOUND:
                logging.debug(f"{self.name}: executed on {browser}: {stdout}")
                return stdout
        return None

    def has_tabs(self) -> bool:
        for browser in self._running_browsers():
            stdout, _ = run_applescript_capture_output(has_tab_script(browser, self._profile.url_fragment), browser)
            if stdout == "true":
                return True
        return False

    @override
    def probe(self) -> tuple[bool, bool]:
        if not self.has_tabs():
            return False, False
        return True, self.run_in_tab(self._profile.playing_state) == "playing"

    @override
    def send(self, command: Command) -> bool:
        result = self.run_in_tab(self._profile.commands[command])
        if result is None:
            logging.info(f"{self.name}: no {self._profile.name} tab found for {command.value}")
            return False
        return True
