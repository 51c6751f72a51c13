"""Mix several Spotify playlists into a new, shuffled playlist."""

__version__ = "0.1.0"
