"""Thin Spotify Web API client bound to one access token.

Only the handful of endpoints the mixer needs are wrapped. Every call raises
SpotifyApiError on transport failure or an HTTP error status; callers decide
whether that is fatal (reads) or recoverable (batch writes).
"""

from typing import Any, Dict, List, Optional, Sequence

import requests

from playlist_mixer.config import PLAYLIST_DESCRIPTION, SPOTIFY_API_BASE
from playlist_mixer.core import AuthToken, MixerError


class SpotifyApiError(MixerError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def track_uri(track_id: str) -> str:
    return f"spotify:track:{track_id}"


class SpotifyClient:
    def __init__(
        self,
        token: AuthToken,
        *,
        session: Optional[requests.Session] = None,
        api_base: str = SPOTIFY_API_BASE,
        timeout: float = 30.0,
    ):
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"Authorization": f"{token.token_type or 'Bearer'} {token.access_token}"}
        )

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.api_base}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise SpotifyApiError(f"{method} {path} failed: {e}") from e

        if r.status_code >= 400:
            raise SpotifyApiError(
                f"{method} {path} failed (HTTP {r.status_code}): {_error_message(r)}",
                status_code=r.status_code,
            )

        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise SpotifyApiError(
                f"{method} {path} returned a non-JSON body", status_code=r.status_code
            ) from e

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/me")

    def get_user_playlists(self, user_id: str, limit: int = 50) -> Dict[str, Any]:
        """One page of the user's playlists (the API caps limit at 50)."""
        return self._request("GET", f"/users/{user_id}/playlists", params={"limit": limit})

    def get_playlist_items(
        self, playlist_id: str, offset: int = 0, limit: int = 100
    ) -> Dict[str, Any]:
        params = {
            "offset": offset,
            "limit": limit,
            "fields": "items(track(id,type)),next,total",
        }
        return self._request("GET", f"/playlists/{playlist_id}/tracks", params=params)

    def create_playlist(
        self,
        user_id: str,
        name: str,
        *,
        public: bool = True,
        collaborative: bool = False,
        description: str = PLAYLIST_DESCRIPTION,
    ) -> Dict[str, Any]:
        payload = {
            "name": name,
            "public": public,
            "collaborative": collaborative,
            "description": description,
        }
        return self._request("POST", f"/users/{user_id}/playlists", json=payload)

    def add_tracks_to_playlist(
        self, playlist_id: str, track_ids: Sequence[str]
    ) -> Dict[str, Any]:
        uris: List[str] = [track_uri(tid) for tid in track_ids]
        return self._request("POST", f"/playlists/{playlist_id}/tracks", json={"uris": uris})


def _error_message(r: requests.Response) -> str:
    """Spotify error bodies look like {"error": {"status": 400, "message": "..."}}."""
    try:
        data = r.json()
    except ValueError:
        return r.text or r.reason or ""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return data.get("error_description") or error
    return r.text
