"""Playlist mixing steps: list, select, fetch, shuffle, create, write.

Each function does one remote operation (or one pure transformation) so the
orchestration can keep the fail-fast half (everything up to aggregation) apart
from the best-effort half (batch writes after the playlist exists).
"""

import random
import re
from typing import Any, Dict, List, Optional, Sequence

from playlist_mixer.config import DEFAULT_BATCH_SIZE, DEFAULT_PAGE_SIZE, PLAYLIST_DESCRIPTION
from playlist_mixer.core import (
    BatchWriteReport,
    CreateError,
    FetchError,
    PlaylistHandle,
    PlaylistSummary,
    SelectionError,
    WriteError,
    log_info,
    log_step,
    log_success,
    log_warning,
)
from playlist_mixer.spotify import SpotifyApiError, SpotifyClient

_INDEX_TOKEN = re.compile(r"\d+", re.ASCII)


def list_playlists(client: SpotifyClient, user_id: str) -> List[PlaylistSummary]:
    """
    Fetch the user's playlists (single page), in the order Spotify returns
    them. That order is the one the selection indices refer to.
    """
    try:
        data = client.get_user_playlists(user_id)
    except SpotifyApiError as e:
        raise FetchError(f"Could not list playlists for user {user_id}: {e}") from e

    playlists = [PlaylistSummary.from_api(p) for p in data.get("items") or [] if p]
    log_info(f"{len(playlists)} playlists found.")
    return playlists


def select_playlists(displayed: Sequence[PlaylistSummary], raw_selection: str) -> List[int]:
    """
    Parse "0, 2,3" into [0, 2, 3].

    Tokens are trimmed; each one must be a plain non-negative integer within
    range of `displayed`. The first bad token raises SelectionError and
    nothing is returned. Duplicates are kept.
    """
    selected: List[int] = []
    for raw_token in raw_selection.split(","):
        token = raw_token.strip()
        if not _INDEX_TOKEN.fullmatch(token):
            raise SelectionError(f"invalid index: {raw_token!r}")

        index = int(token)
        if index > len(displayed) - 1:
            raise SelectionError(
                f"invalid index: {index} (choose between 0 and {len(displayed) - 1})"
                if displayed
                else f"invalid index: {index} (no playlists to choose from)"
            )
        selected.append(index)
    return selected


def _item_track_id(item: Optional[Dict[str, Any]]) -> Optional[str]:
    """Track id of a playlist item, or None for removed/local tracks and episodes."""
    track = (item or {}).get("track")
    if not track:
        return None
    if track.get("type", "track") != "track":
        return None
    return track.get("id") or None


def fetch_playlist_track_ids(
    client: SpotifyClient, playlist: PlaylistSummary, page_size: int = DEFAULT_PAGE_SIZE
) -> List[str]:
    track_ids: List[str] = []
    offset = 0

    while True:
        try:
            data = client.get_playlist_items(playlist.id, offset=offset, limit=page_size)
        except SpotifyApiError as e:
            raise FetchError(
                f"Could not fetch tracks {offset}-{offset + page_size} of '{playlist.name}': {e}"
            ) from e

        items = data.get("items") or []
        for item in items:
            track_id = _item_track_id(item)
            if track_id:
                track_ids.append(track_id)

        # A short page is the last one; an explicit null cursor also ends paging
        if len(items) < page_size or ("next" in data and not data["next"]):
            break
        offset += page_size

    return track_ids


def fetch_all_tracks(
    client: SpotifyClient,
    playlists: Sequence[PlaylistSummary],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[str]:
    """
    Concatenate the track ids of every playlist, in selection order then
    playlist order. Any failed page raises FetchError and the partial
    aggregate is dropped with it.
    """
    tracks: List[str] = []
    for playlist in playlists:
        log_step(f"Fetching tracks of '{playlist.name}'...")
        playlist_tracks = fetch_playlist_track_ids(client, playlist, page_size=page_size)
        log_info(f"  {len(playlist_tracks)} tracks fetched from '{playlist.name}'.")
        tracks.extend(playlist_tracks)

    return tracks


def shuffle_tracks(tracks: List[str], rng: Optional[random.Random] = None) -> List[str]:
    """Uniform in-place shuffle (Fisher-Yates); returns the same list."""
    (rng or random).shuffle(tracks)
    return tracks


def create_destination_playlist(
    client: SpotifyClient,
    user_id: str,
    name: str,
    description: str = PLAYLIST_DESCRIPTION,
) -> PlaylistHandle:
    """Create a public, non-collaborative playlist for the mix."""
    name = (name or "").strip()
    if not name:
        raise CreateError("Playlist name must not be empty.")

    try:
        data = client.create_playlist(
            user_id,
            name,
            public=True,
            collaborative=False,
            description=description,
        )
    except SpotifyApiError as e:
        raise CreateError(f"Could not create playlist '{name}': {e}") from e

    playlist = PlaylistHandle.from_api(data)
    log_success(f"Playlist created: {playlist.name}")
    return playlist


def write_tracks_in_batches(
    client: SpotifyClient,
    playlist: PlaylistHandle,
    tracks: Sequence[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> BatchWriteReport:
    """
    Append `tracks` to the playlist, `batch_size` ids per request, in order.

    A rejected batch is logged and skipped; later batches are still sent.
    The report counts attempted and accepted requests separately.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    report = BatchWriteReport(track_count=len(tracks))
    for start in range(0, len(tracks), batch_size):
        end = min(start + batch_size, len(tracks))
        log_step(f"Adding tracks {start}-{end} to playlist...")

        report.attempted += 1
        try:
            client.add_tracks_to_playlist(playlist.id, list(tracks[start:end]))
        except SpotifyApiError as e:
            failure = WriteError(f"Error adding tracks {start}-{end} to playlist: {e}", start, end)
            log_warning(str(failure))
            report.failures.append(failure)
            continue
        report.succeeded += 1

    return report
