import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import WriteError


class Credentials(BaseModel):
    """
    Spotify application credentials.

    Loaded once from the config file and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str

    @field_validator("client_id", "client_secret")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


@dataclass(frozen=True)
class AuthToken:
    access_token: str
    token_type: str
    expires_at: float
    refresh_token: Optional[str] = None
    scope: Optional[str] = None

    @staticmethod
    def from_token_response(
        payload: Dict[str, Any], *, now: Optional[float] = None
    ) -> "AuthToken":
        """
        Convert the token endpoint JSON into an AuthToken.

        Spotify returns access_token, token_type, expires_in (seconds),
        refresh_token and a space-delimited scope string.
        """
        now_ts = float(time.time() if now is None else now)
        return AuthToken(
            access_token=str(payload.get("access_token") or ""),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_at=now_ts + float(payload.get("expires_in") or 0),
            refresh_token=payload.get("refresh_token"),
            scope=payload.get("scope"),
        )


@dataclass(frozen=True)
class CurrentUser:
    id: str
    display_name: str

    @staticmethod
    def from_api(data: Dict[str, Any]) -> "CurrentUser":
        user_id = str(data["id"])
        return CurrentUser(id=user_id, display_name=data.get("display_name") or user_id)


@dataclass(frozen=True)
class PlaylistSummary:
    """Read-only view over one item of the list-playlists response."""

    id: str
    name: str
    track_count: int

    @staticmethod
    def from_api(data: Dict[str, Any]) -> "PlaylistSummary":
        # Newer API payloads expose the count under "items" instead of "tracks"
        tracks = data.get("tracks") or data.get("items") or {}
        return PlaylistSummary(
            id=str(data["id"]),
            name=data.get("name") or "",
            track_count=int(tracks.get("total") or 0),
        )


@dataclass(frozen=True)
class PlaylistHandle:
    id: str
    name: str
    url: Optional[str] = None

    @staticmethod
    def from_api(data: Dict[str, Any]) -> "PlaylistHandle":
        return PlaylistHandle(
            id=str(data["id"]),
            name=data.get("name") or "",
            url=(data.get("external_urls") or {}).get("spotify"),
        )


@dataclass
class BatchWriteReport:
    """
    Outcome of write_tracks_in_batches().

    - attempted : number of add-tracks requests issued
    - succeeded : number of requests Spotify accepted
    - failures  : one WriteError per rejected batch, in write order
    """

    track_count: int = 0
    attempted: int = 0
    succeeded: int = 0
    failures: List[WriteError] = field(default_factory=list)

    @property
    def failed_batches(self) -> List[Tuple[int, int]]:
        return [(e.start, e.end) for e in self.failures]

    @property
    def written_tracks(self) -> int:
        lost = sum(e.end - e.start for e in self.failures)
        return self.track_count - lost

    @property
    def complete(self) -> bool:
        return not self.failures


@dataclass
class MixResult:
    playlist: PlaylistHandle
    selected: List[PlaylistSummary]
    track_count: int
    report: BatchWriteReport
