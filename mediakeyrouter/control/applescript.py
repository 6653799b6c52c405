# mediakeyrouter/control/applescript.py

import subprocess
import logging
import psutil # For is_process_running
from typing_extensions import override

from ..engine.sources import Command
from .base import CommandSink, SourceMonitor

SPOTIFY_APP_NAME = "Spotify"
APPLESCRIPT_TIMEOUT = 5.0  # seconds

_SPOTIFY_VERBS = {
    Command.TOGGLE_PLAY_PAUSE: "playpause",
    Command.SKIP_FORWARD: "next track",
    Command.SKIP_BACKWARD: "previous track",
}

# Module-level helper functions for AppleScript execution
def run_applescript_capture_output(script: str, app_name_for_log: str) -> tuple[str | None, str | None]:
    """Runs an AppleScript and captures its output. Returns (stdout, stderr)."""
    try:
        result = subprocess.run(["osascript", "-e", script], capture_output=True, text=True, check=False,
                                timeout=APPLESCRIPT_TIMEOUT)
        stdout = result.stdout.strip() if result.stdout else None
        stderr = result.stderr.strip() if result.stderr else None
        if result.returncode != 0:
            logging.warning(f"AppleScript for {app_name_for_log} exited with code {result.returncode}. Stderr: {stderr}")
            return None, stderr
        return stdout, stderr
    except subprocess.TimeoutExpired:
        logging.warning(f"AppleScript for {app_name_for_log} timed out after {APPLESCRIPT_TIMEOUT:.0f}s.")
        return None, "timed out"
    except FileNotFoundError: # pragma: no cover
        logging.error("osascript command not found. AppleScript execution is not possible.")
        return None, "osascript not found"
    except Exception as e: # pragma: no cover
        logging.error(f"Unexpected error running AppleScript for {app_name_for_log}: {e}")
        return None, str(e)

def run_applescript_no_capture(script: str, app_name_for_log: str) -> bool:
    """Runs an AppleScript without keeping its output. Returns True on success (exit code 0)."""
    try:
        result = subprocess.run(["osascript", "-e", script], capture_output=True, text=True, check=False,
                                timeout=APPLESCRIPT_TIMEOUT)
        if result.returncode != 0:
            logging.warning(f"AppleScript for {app_name_for_log} (no capture) exited with code {result.returncode}.")
            return False
        return True
    except subprocess.TimeoutExpired:
        logging.warning(f"AppleScript for {app_name_for_log} timed out after {APPLESCRIPT_TIMEOUT:.0f}s.")
        return False
    except FileNotFoundError: # pragma: no cover
        logging.error("osascript command not found. AppleScript execution is not possible.")
        return False
    except Exception as e: # pragma: no cover
        logging.error(f"Unexpected error running AppleScript for {app_name_for_log} (no capture): {e}")
        return False

def applescript_string(text: str) -> str:
    """Quotes text as an AppleScript string literal."""
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'

def is_process_running(app_name: str) -> bool:
    """Check if there is any running process whose name matches app_name."""
    try:
        for process in psutil.process_iter(['name']):
            name = process.info['name']
            if name and name.lower() == app_name.lower():
                return True
    except psutil.Error as e:
        logging.debug(f"Error accessing process list for '{app_name}': {e}")
    return False

class SpotifyAppleScriptControl(CommandSink, SourceMonitor):
    """Controls the Spotify desktop app through its AppleScript dictionary."""

    def __init__(self, app_name: str = SPOTIFY_APP_NAME):
        self._app_name = app_name

    @property
    @override
    def name(self) -> str:
        return f"AppleScript:{self._app_name}"

    def is_running(self) -> bool:
        return is_process_running(self._app_name)

    @override
    def probe(self) -> tuple[bool, bool]:
        if not self.is_running():
            return False, False

        script = f"""
        tell application "{self._app_name}"
            if it is running then
                return player state as string
            end if
        end tell
        """
        stdout, _ = run_applescript_capture_output(script, self._app_name)
        return True, stdout == "playing"

    @override
    def send(self, command: Command) -> bool:
        if not self.is_running():
            logging.debug(f"AppleScript: {self._app_name} is not running, cannot send {command.value}.")
            return False

        script = f"""
        tell application "{self._app_name}"
            {_SPOTIFY_VERBS[command]}
        end tell
        """
        success = run_applescript_no_capture(script, self._app_name)
        if success:
            logging.debug(f"AppleScript: {command.value} command sent to {self._app_name}.")
        return success
