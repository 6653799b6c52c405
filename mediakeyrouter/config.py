# mediakeyrouter/config.py

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .engine.debouncer import DEFAULT_STICKY_WINDOW
from .engine.observations import DEFAULT_STALENESS_WINDOW
from .engine.poller import DEFAULT_POLL_INTERVAL
from .engine.resolver import ResolverPolicy
from .engine.sources import Source

DEFAULT_SETTINGS_PATH = Path.home() / "Library" / "Application Support" / "MediaKeyRouter" / "settings.json"

BANDCAMP_TRANSPORTS = ("extension", "applescript")

# setting name -> (environment variable, command line option)
_SETTINGS = {
    "sticky_window": ("MEDIAKEYS_STICKY_WINDOW", "--sticky-window"),
    "staleness_window": ("MEDIAKEYS_STALENESS_WINDOW", "--staleness-window"),
    "poll_interval": ("MEDIAKEYS_POLL_INTERVAL", "--poll-interval"),
    "tie_break": ("MEDIAKEYS_TIE_BREAK", "--tie-break"),
    "fallback": ("MEDIAKEYS_FALLBACK", "--fallback"),
    "spotify_api": ("MEDIAKEYS_SPOTIFY_API", "--spotify-api"),
    "bandcamp_transport": ("MEDIAKEYS_BANDCAMP_TRANSPORT", "--bandcamp-transport"),
    "settings_path": ("MEDIAKEYS_SETTINGS_PATH", "--settings"),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class EngineConfig:
    sticky_window: float = DEFAULT_STICKY_WINDOW
    staleness_window: float = DEFAULT_STALENESS_WINDOW
    poll_interval: float = DEFAULT_POLL_INTERVAL
    tie_break: tuple[Source, ...] = field(default_factory=lambda: tuple(Source))
    fallback: Source = Source.SPOTIFY
    spotify_api: bool = False
    bandcamp_transport: str = "extension"
    settings_path: Path = DEFAULT_SETTINGS_PATH

    @property
    def policy(self) -> ResolverPolicy:
        return ResolverPolicy(tie_break=self.tie_break, fallback=self.fallback)


def _parse_seconds(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got '{raw}'")


def _parse_source(name: str, raw: str) -> Source:
    try:
        return Source.parse(raw)
    except ValueError as e:
        raise ConfigError(f"{name}: {e}") from None


def _parse_tie_break(name: str, raw: str) -> tuple[Source, ...]:
    order = [_parse_source(name, part) for part in raw.split(",") if part.strip()]
    if not order:
        raise ConfigError(f"{name} must list at least one source")
    if len(set(order)) != len(order):
        raise ConfigError(f"{name} lists a source more than once: '{raw}'")
    return tuple(order)


def _parse_transport(name: str, raw: str) -> str:
    transport = raw.strip().lower()
    if transport not in BANDCAMP_TRANSPORTS:
        raise ConfigError(f"{name} must be one of {', '.join(BANDCAMP_TRANSPORTS)}, got '{raw}'")
    return transport


_PARSERS = {
    "sticky_window": _parse_seconds,
    "staleness_window": _parse_seconds,
    "poll_interval": _parse_seconds,
    "tie_break": _parse_tie_break,
    "fallback": _parse_source,
    "spotify_api": _parse_bool,
    "bandcamp_transport": _parse_transport,
    "settings_path": lambda _name, raw: Path(raw).expanduser(),
}


def load_config(options: Mapping[str, str] | None = None,
                environ: Mapping[str, str] | None = None) -> EngineConfig:
    """Builds the engine configuration from environment variables and getopt options.

    Command line options win over environment variables, which win over the
    defaults. A flag option given without a value (``--spotify-api``) counts
    as true. Call load_dotenv() first to pick up a .env file.
    """
    options = options or {}
    environ = os.environ if environ is None else environ

    values = {}
    for setting, (env_name, option) in _SETTINGS.items():
        if option in options:
            raw, source_name = options[option], option
            if setting == "spotify_api" and raw == "":
                raw = "true"
        elif env_name in environ:
            raw, source_name = environ[env_name], env_name
        else:
            continue
        values[setting] = _PARSERS[setting](source_name, raw)
    return EngineConfig(**values)


def setup_logging(level='info'):
    """Configures root logging. Unknown level names fall back to INFO."""
    numeric_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(levelname)s - %(threadName)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.debug(f"Logging at {logging.getLevelName(numeric_level)}")
