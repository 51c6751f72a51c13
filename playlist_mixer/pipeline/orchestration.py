"""Orchestration of one mixer run, used by the CLI entry point.

run_mixer() authorizes, then walks the mixer steps in order. Everything up to
the shuffled track list is fail-fast and touches nothing on Spotify; once the
destination playlist exists, writes are best effort and summarized in the
returned MixResult.

User interaction is injected as two callables so the flow can run against
scripted answers in tests.
"""

import random
from typing import Callable, List, Optional

from playlist_mixer.config import MixerConfig
from playlist_mixer.core import (
    CreateError,
    CurrentUser,
    FetchError,
    MixResult,
    PlaylistSummary,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from playlist_mixer.spotify import SpotifyApiError, SpotifyClient, authorize

from .mixer import (
    create_destination_playlist,
    fetch_all_tracks,
    list_playlists,
    select_playlists,
    shuffle_tracks,
    write_tracks_in_batches,
)

SelectionPrompt = Callable[[List[PlaylistSummary]], str]
NamePrompt = Callable[[], str]


def _get_current_user(client: SpotifyClient) -> CurrentUser:
    try:
        data = client.get_current_user()
    except SpotifyApiError as e:
        raise FetchError(f"Could not fetch the current Spotify user: {e}") from e
    try:
        return CurrentUser.from_api(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise FetchError(f"Spotify returned an unexpected user profile: {data!r}") from e


def run_mixer(
    config: MixerConfig,
    ask_selection: SelectionPrompt,
    ask_playlist_name: NamePrompt,
    *,
    rng: Optional[random.Random] = None,
) -> MixResult:
    # 1) Auth: nothing else runs unless the handshake succeeds
    log_section("Spotify authorization")
    token = authorize(config)
    client = SpotifyClient(token)

    # 2) User + playlists
    log_step("Fetching current Spotify user...")
    user = _get_current_user(client)
    log_info(f"Hello, {user.display_name}")

    log_step("Fetching your playlists...")
    playlists = list_playlists(client, user.id)

    # 3) Selection + destination name
    indices = select_playlists(playlists, ask_selection(playlists))
    selected = [playlists[i] for i in indices]
    log_info("Selected playlists:")
    for playlist in selected:
        log_info(f" - {playlist.name} (ID: {playlist.id})")

    name = ask_playlist_name().strip()
    if not name:
        raise CreateError("Playlist name must not be empty.")

    # 4) Aggregate + shuffle
    log_section("Mixing")
    tracks = fetch_all_tracks(client, selected, page_size=config.mixer.page_size)
    shuffle_tracks(tracks, rng)
    log_step(f"Mixing {len(tracks)} tracks...")

    # 5) Create + write (best effort from here on)
    playlist = create_destination_playlist(client, user.id, name)
    report = write_tracks_in_batches(
        client, playlist, tracks, batch_size=config.mixer.batch_size
    )

    if report.complete:
        log_success(f"{report.succeeded}/{report.attempted} batches written.")
    else:
        log_warning(
            f"{len(report.failures)}/{report.attempted} batches failed; "
            f"the playlist holds {report.written_tracks} of {report.track_count} tracks."
        )

    return MixResult(
        playlist=playlist,
        selected=selected,
        track_count=len(tracks),
        report=report,
    )
