import sys
from typing import List

from playlist_mixer.config import dump_example_config, load_config
from playlist_mixer.core import (
    ConfigError,
    MixerError,
    PlaylistSummary,
    ask,
    configure_logging,
    log_error,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from playlist_mixer.pipeline import run_mixer


def ask_selection(playlists: List[PlaylistSummary]) -> str:
    """Show the numbered playlist listing and read the comma-separated indices."""
    print_header("Playlists")
    print_info(f"Here are your playlists! You have {len(playlists)} playlists:")
    for index, playlist in enumerate(playlists):
        print_info(f"{index}) {playlist.name} ({playlist.track_count} tracks)")
    return ask("Select playlists to mix (comma-separated numbers):")


def ask_playlist_name() -> str:
    return ask("Enter a name for the new playlist:")


def main() -> int:
    try:
        config = load_config()
    except ConfigError as e:
        print_error(str(e))
        print_info(f"Expected a config.json like:\n{dump_example_config()}")
        return 1

    configure_logging(config.mixer.log_level)
    print_header("Spotify playlist mixer")

    try:
        result = run_mixer(config, ask_selection, ask_playlist_name)
    except MixerError as e:
        log_error(f"Run aborted ({type(e).__name__}): {e}")
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print_warning("Interrupted.")
        return 130

    if not result.report.complete:
        print_warning(
            f"Some tracks could not be added: {result.report.written_tracks} of "
            f"{result.report.track_count} made it into the playlist."
        )
    print_success(f"Successfully created your new playlist mix: {result.playlist.name}")
    if result.playlist.url:
        print_info(result.playlist.url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
