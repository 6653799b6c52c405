import logging
from pathlib import Path

import pytest

from mediakeyrouter.config import ConfigError, EngineConfig, load_config, setup_logging
from mediakeyrouter.engine.sources import Source


def test_defaults():
    config = load_config({}, environ={})
    assert config == EngineConfig()
    assert config.sticky_window == 1.0
    assert config.staleness_window == 5.0
    assert config.policy.tie_break == (Source.YOUTUBE, Source.BANDCAMP, Source.SPOTIFY)
    assert config.policy.fallback is Source.SPOTIFY
    assert config.bandcamp_transport == "extension"
    assert not config.spotify_api


def test_environment_values():
    config = load_config({}, environ={
        "MEDIAKEYS_STICKY_WINDOW": "0.5",
        "MEDIAKEYS_TIE_BREAK": "spotify, bandcamp",
        "MEDIAKEYS_FALLBACK": "YouTube",
        "MEDIAKEYS_SPOTIFY_API": "yes",
        "MEDIAKEYS_SETTINGS_PATH": "/tmp/mk/settings.json",
    })
    assert config.sticky_window == 0.5
    assert config.tie_break == (Source.SPOTIFY, Source.BANDCAMP)
    assert config.policy.tie_break == (Source.SPOTIFY, Source.BANDCAMP, Source.YOUTUBE)
    assert config.fallback is Source.YOUTUBE
    assert config.spotify_api
    assert config.settings_path == Path("/tmp/mk/settings.json")


def test_command_line_overrides_environment():
    config = load_config(
        {"--staleness-window": "8", "--spotify-api": "", "--bandcamp-transport": "AppleScript"},
        environ={"MEDIAKEYS_STALENESS_WINDOW": "3", "MEDIAKEYS_SPOTIFY_API": "0"},
    )
    assert config.staleness_window == 8.0
    assert config.spotify_api
    assert config.bandcamp_transport == "applescript"


@pytest.mark.parametrize("options,message", [
    ({"--sticky-window": "soon"}, "number of seconds"),
    ({"--poll-interval": "0"}, "positive"),
    ({"--tie-break": "youtube,youtube"}, "more than once"),
    ({"--tie-break": " , "}, "at least one"),
    ({"--fallback": "winamp"}, "Unknown source"),
    ({"--bandcamp-transport": "carrier-pigeon"}, "must be one of"),
])
def test_invalid_values(options, message):
    with pytest.raises(ConfigError, match=message):
        load_config(options, environ={})


def test_invalid_boolean_names_its_variable():
    with pytest.raises(ConfigError, match="MEDIAKEYS_SPOTIFY_API"):
        load_config({}, environ={"MEDIAKEYS_SPOTIFY_API": "maybe"})


@pytest.mark.parametrize("name, level", [("debug", logging.DEBUG), ("WARNING", logging.WARNING),
                                         ("Error", logging.ERROR), ("loud", logging.INFO)])
def test_setup_logging_levels(monkeypatch, name, level):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    setup_logging(name)
    assert calls[0]["level"] == level
    assert "%(threadName)s" in calls[0]["format"]
