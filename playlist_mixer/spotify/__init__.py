"""Public façade for the playlist_mixer.spotify package.

This module exposes the Spotify Web API integration: the authorization-code
handshake and the token-bound client handle. Callers should import these
symbols from this façade instead of the internal auth or client modules.
"""

from .auth import (
    CallbackListener,
    authorize,
    build_spotify_auth_url,
    exchange_code_for_token,
    generate_state,
)
from .client import SpotifyApiError, SpotifyClient, track_uri

__all__ = [
    "authorize",
    "build_spotify_auth_url",
    "exchange_code_for_token",
    "generate_state",
    "CallbackListener",
    "SpotifyClient",
    "SpotifyApiError",
    "track_uri",
]
