"""Public façade for the playlist_mixer.pipeline package.

Exposes the individual mixer steps and the run_mixer() orchestration used by
the CLI.
"""

from .mixer import (
    create_destination_playlist,
    fetch_all_tracks,
    fetch_playlist_track_ids,
    list_playlists,
    select_playlists,
    shuffle_tracks,
    write_tracks_in_batches,
)
from .orchestration import run_mixer

__all__ = [
    "list_playlists",
    "select_playlists",
    "fetch_playlist_track_ids",
    "fetch_all_tracks",
    "shuffle_tracks",
    "create_destination_playlist",
    "write_tracks_in_batches",
    "run_mixer",
]
