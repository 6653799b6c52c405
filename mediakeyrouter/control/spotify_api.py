# mediakeyrouter/control/spotify_api.py

import logging
from typing_extensions import override

import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth

from ..engine.sources import Command
from .base import CommandSink

SPOTIFY_SCOPE = "user-read-playback-state user-modify-playback-state"

def _is_auth_error(e: SpotifyException) -> bool:
    return "authentication credentials" in str(e).lower() or "token expired" in str(e).lower()

def create_spotify_client(open_browser: bool = True) -> spotipy.Spotify | None:
    """Builds an authenticated client from the SPOTIPY_* environment variables, or None on failure."""
    try:
        auth_manager = SpotifyOAuth(
            scope=SPOTIFY_SCOPE,
            # client_id, client_secret, redirect_uri will be picked up from env vars:
            # SPOTIPY_CLIENT_ID, SPOTIPY_CLIENT_SECRET, SPOTIPY_REDIRECT_URI
            open_browser=open_browser,
        )
        sp = spotipy.Spotify(auth_manager=auth_manager, retries=0)
        current_user = sp.current_user()
        if current_user:
            logging.info(f"Successfully authenticated with Spotify as {current_user['display_name']} ({current_user['id']}).")
        else:
            logging.warning("Spotify authentication seemed to pass but could not fetch current user.")
        return sp
    except SpotifyException as e:
        logging.error(f"Spotify authentication failed or token is invalid: {e}")
        logging.error("Please ensure SPOTIPY_CLIENT_ID, SPOTIPY_CLIENT_SECRET, and SPOTIPY_REDIRECT_URI are correctly set in your .env file.")
        return None
    except Exception as e:
        logging.error(f"Failed to initialize Spotify client: {e}")
        return None

class SpotifyApiSink(CommandSink):
    def __init__(self, sp_client: spotipy.Spotify | None):
        self._sp = sp_client

    @property
    @override
    def name(self) -> str:
        return "SpotifyAPI"

    def is_available(self) -> bool:
        if not self._sp:
            logging.debug("SpotifyAPI: Spotipy client not initialized.")
            return False
        return True

    def _toggle_play_pause(self) -> None:
        assert self._sp is not None
        playback = self._sp.current_playback()
        if playback and playback.get('is_playing'):
            _ = self._sp.pause_playback()
            logging.debug("SpotifyAPI: Paused playback.")
        else:
            # No playback info or paused on an active device: start/resume
            _ = self._sp.start_playback()
            logging.debug("SpotifyAPI: Started/Resumed playback.")

    @override
    def send(self, command: Command) -> bool:
        if not self.is_available():
            return False
        assert self._sp is not None

        try:
            if command is Command.TOGGLE_PLAY_PAUSE:
                self._toggle_play_pause()
            elif command is Command.SKIP_FORWARD:
                self._sp.next_track()
                logging.debug("SpotifyAPI: Skipped to next track.")
            else:
                self._sp.previous_track()
                logging.debug("SpotifyAPI: Skipped to previous track.")
            return True
        except SpotifyException as e:
            # Handle common issues like no active device
            if e.http_status == 404 and "No active device found" in str(e):
                logging.warning("SpotifyAPI: No active device. User might need to start playback manually on a device.")
            elif e.http_status == 429:
                logging.warning(f"SpotifyAPI: RATE LIMITED while sending {command.value}.")
            elif _is_auth_error(e):
                logging.error("SpotifyAPI: Token may be invalid or expired. Please check credentials/token.")
            else:
                logging.error(f"SpotifyAPI: SpotifyException sending {command.value}: {e}. HTTP: {e.http_status}, Code: {e.code}, Reason: {e.reason}")
            return False
        except Exception as e:
            logging.error(f"SpotifyAPI: Unexpected error sending {command.value}: {e}")
            return False
