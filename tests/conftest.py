from typing import Dict, List, Optional

import pytest

from playlist_mixer.core import AuthToken, PlaylistSummary
from playlist_mixer.spotify import SpotifyApiError


class FakeSpotifyClient:
    """
    In-memory stand-in for SpotifyClient.

    tracks_by_playlist maps playlist id -> track ids; a None entry stands for
    a playlist item whose track was removed.
    """

    def __init__(
        self,
        tracks_by_playlist: Optional[Dict[str, List[Optional[str]]]] = None,
        *,
        fail_list: bool = False,
        fail_pages: tuple = (),
        fail_batches: tuple = (),
        fail_create: bool = False,
        include_next: bool = True,
    ):
        self.tracks_by_playlist = tracks_by_playlist or {}
        self.fail_list = fail_list
        self.fail_pages = set(fail_pages)
        self.fail_batches = set(fail_batches)
        self.fail_create = fail_create
        self.include_next = include_next

        self.page_requests: List[tuple] = []
        self.created: List[dict] = []
        self.added: List[tuple] = []

    def get_current_user(self) -> dict:
        return {"id": "user1", "display_name": "Test User"}

    def get_user_playlists(self, user_id: str, limit: int = 50) -> dict:
        if self.fail_list:
            raise SpotifyApiError("server error", status_code=500)
        return {
            "items": [
                {"id": pid, "name": f"Playlist {pid}", "tracks": {"total": len(ids)}}
                for pid, ids in self.tracks_by_playlist.items()
            ]
        }

    def get_playlist_items(self, playlist_id: str, offset: int = 0, limit: int = 100) -> dict:
        self.page_requests.append((playlist_id, offset, limit))
        if playlist_id in self.fail_pages:
            raise SpotifyApiError("page failed", status_code=502)

        ids = self.tracks_by_playlist.get(playlist_id, [])
        page = [
            {"track": {"id": tid, "type": "track"}} if tid else {"track": None}
            for tid in ids[offset : offset + limit]
        ]
        data = {"items": page, "total": len(ids)}
        if self.include_next:
            data["next"] = "next-page" if offset + limit < len(ids) else None
        return data

    def create_playlist(
        self,
        user_id: str,
        name: str,
        *,
        public: bool = True,
        collaborative: bool = False,
        description: str = "",
    ) -> dict:
        self.created.append(
            {
                "user_id": user_id,
                "name": name,
                "public": public,
                "collaborative": collaborative,
                "description": description,
            }
        )
        if self.fail_create:
            raise SpotifyApiError("Invalid playlist name", status_code=400)
        return {
            "id": "mix1",
            "name": name,
            "external_urls": {"spotify": "https://open.spotify.com/playlist/mix1"},
        }

    def add_tracks_to_playlist(self, playlist_id: str, track_ids: List[str]) -> dict:
        call_index = len(self.added)
        self.added.append((playlist_id, list(track_ids)))
        if call_index in self.fail_batches:
            raise SpotifyApiError("rejected", status_code=400)
        return {"snapshot_id": f"snapshot{call_index}"}


@pytest.fixture
def fake_client():
    return FakeSpotifyClient


@pytest.fixture
def token() -> AuthToken:
    return AuthToken(
        access_token="access-123",
        token_type="Bearer",
        expires_at=4_000_000_000.0,
        refresh_token="refresh-456",
        scope="playlist-read-private",
    )


@pytest.fixture
def summaries():
    def _make(*counts: int) -> List[PlaylistSummary]:
        return [
            PlaylistSummary(id=f"p{i}", name=f"Playlist {i}", track_count=count)
            for i, count in enumerate(counts)
        ]

    return _make
