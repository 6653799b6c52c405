import sys
import getopt
import time
import logging
from threading import Thread

from dotenv import load_dotenv
from PyObjCTools import AppHelper

from .config import ConfigError, EngineConfig, load_config, setup_logging
from .control import browser
from .control.applescript import SpotifyAppleScriptControl
from .control.base import CommandSink, SourceMonitor
from .control.extension import MEDIA_KEY_NOTIFICATION, TAB_STATE_NOTIFICATION, ExtensionRelaySink, TabStateListener
from .control.spotify_api import SpotifyApiSink, create_spotify_client
from .engine.debouncer import DispatchDebouncer
from .engine.dispatcher import CommandDispatcher
from .engine.observations import ObservationStore
from .engine.poller import ObservationPoller
from .engine.sources import MediaKey, Source
from .engine.state import EngineState
from .keycodes import key_code_for
from .macos.focus import query_focus
from .macos.keytap import MediaKeyTap
from .macos.notifications import observe, post_notification
from .macos.permissions import check_accessibility
from .native_host import NativeMessagingHost
from .settings import EnableSwitch

SETTINGS_CHANGED_NOTIFICATION = "com.mediakeycontrols.settings"

TAP_START_ATTEMPTS = 3
TAP_RETRY_DELAY = 2.0  # seconds

LONG_OPTIONS = [
    "log-level=", "sticky-window=", "staleness-window=", "poll-interval=", "tie-break=", "fallback=",
    "spotify-api", "bandcamp-transport=", "settings=",
    "toggle", "status", "test-key=", "native-host",
]

def process_command_line_args(argv: list[str]) -> dict[str, str]:
    try:
        # The browser appends the extension origin as a positional argument in native host mode
        options, _ = getopt.getopt(argv, '', LONG_OPTIONS)
        options = dict(options)
        setup_logging(options.get("--log-level", "info"))
        logging.debug("Command line arguments processed successfully.")
        return options
    except getopt.GetoptError as e:
        setup_logging()
        logging.error(f"Command line error: {e}")
        sys.exit(1)

def build_engine(config: EngineConfig, switch: EnableSwitch) -> EngineState:
    store = ObservationStore(staleness_window=config.staleness_window)

    spotify = SpotifyAppleScriptControl()
    youtube = browser.BrowserTabControl(browser.YOUTUBE)
    sinks: dict[Source, CommandSink] = {Source.SPOTIFY: spotify, Source.YOUTUBE: youtube}
    monitors: dict[Source, SourceMonitor] = {Source.SPOTIFY: spotify, Source.YOUTUBE: youtube}

    if config.spotify_api:
        sp = create_spotify_client()
        if sp:
            sinks[Source.SPOTIFY] = SpotifyApiSink(sp)
        else:
            logging.warning("Spotify API client not available. Falling back to AppleScript for Spotify.")

    if config.bandcamp_transport == "applescript":
        bandcamp = browser.BrowserTabControl(browser.BANDCAMP)
        sinks[Source.BANDCAMP] = bandcamp
        monitors[Source.BANDCAMP] = bandcamp
    else:
        sinks[Source.BANDCAMP] = ExtensionRelaySink(Source.BANDCAMP, post_notification)

    logging.info("Sinks: " + ", ".join(f"{s.value}={sink.name}" for s, sink in sinks.items()))
    return EngineState(
        store=store,
        debouncer=DispatchDebouncer(store, config.policy, sticky_window=config.sticky_window),
        dispatcher=CommandDispatcher(store, sinks),
        focus_query=query_focus,
        switch=switch,
        poller=ObservationPoller(store, monitors, interval=config.poll_interval),
    )

def start_key_tap(tap: MediaKeyTap, attempts: int = TAP_START_ATTEMPTS, delay: float = TAP_RETRY_DELAY) -> bool:
    for attempt in range(1, attempts + 1):
        if tap.start():
            return True
        if attempt < attempts:
            logging.info(f"Retrying event tap in {delay:.0f}s (attempt {attempt + 1}/{attempts})")
            time.sleep(delay)
    return False

def run_daemon(config: EngineConfig, switch: EnableSwitch) -> int:
    check_accessibility(prompt=True)
    engine = build_engine(config, switch)
    engine.start()

    listener = TabStateListener(engine.store)
    observers = [
        observe(TAB_STATE_NOTIFICATION, listener.handle),
        observe(SETTINGS_CHANGED_NOTIFICATION, lambda _info: switch.reload()),
    ]

    tap = MediaKeyTap(engine.handle_key_event)
    if not start_key_tap(tap):
        logging.error("Could not start the media key listener. Exiting.")
        engine.stop()
        return 1

    logging.info(f"Routing media keys (enabled: {switch.enabled}). Press Ctrl+C to quit.")
    try:
        AppHelper.runConsoleEventLoop(installInterrupt=True)
    finally:
        tap.stop()
        for observer in observers:
            observer.stop()
        engine.stop()
    return 0

def run_test_key(config: EngineConfig, switch: EnableSwitch, key_name: str) -> int:
    try:
        key = MediaKey(key_name.lower())
    except ValueError:
        logging.error(f"Unknown key '{key_name}' (expected play, next or previous)")
        return 1
    engine = build_engine(config, switch)
    engine.start()
    try:
        consumed = engine.handle_key_event(key_code_for(key), True)
        if not consumed:
            logging.info("Media key capture is disabled; the key would pass through to the system.")
    finally:
        engine.stop()
    return 0

def run_native_host() -> int:
    host = NativeMessagingHost(sys.stdin.buffer, sys.stdout.buffer, post_notification)
    observer = observe(MEDIA_KEY_NOTIFICATION, host.send_action)

    def relay():
        host.relay_incoming()
        AppHelper.callAfter(AppHelper.stopEventLoop)

    Thread(target=relay, name="native-host-reader", daemon=True).start()
    logging.info("NativeHost: started")
    try:
        AppHelper.runConsoleEventLoop(installInterrupt=True)
    finally:
        observer.stop()
    return 0

def main(argv: list[str] | None = None) -> int:
    options = process_command_line_args(sys.argv[1:] if argv is None else argv)

    if "--native-host" in options:
        return run_native_host()

    # Load environment variables from .env file
    _ = load_dotenv()
    try:
        config = load_config(options)
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)

    switch = EnableSwitch(config.settings_path)
    if "--toggle" in options:
        enabled = switch.toggle()
        post_notification(SETTINGS_CHANGED_NOTIFICATION, {"enabled": enabled})
        return 0
    if "--status" in options:
        logging.info(f"Media key routing is {'enabled' if switch.enabled else 'disabled'} ({config.settings_path})")
        return 0
    if "--test-key" in options:
        return run_test_key(config, switch, options["--test-key"])
    return run_daemon(config, switch)
