"""Error kinds raised across the mixer.

Everything up to track aggregation is fail-fast: ConfigError, AuthError,
FetchError, SelectionError and CreateError abort the run before (or instead
of) any playlist mutation. WriteError is the only recoverable kind; the batch
writer logs it and moves on to the next chunk.
"""


class MixerError(Exception):
    """Base class for all errors reported to the user by the mixer."""


class ConfigError(MixerError):
    """Configuration file is missing, unreadable, or fails validation."""


class AuthError(MixerError):
    """OAuth handshake failed (state mismatch, denied consent, bad code)."""


class FetchError(MixerError):
    """A read request against the Spotify API failed."""


class SelectionError(MixerError):
    """User-supplied playlist selection could not be parsed or is out of range."""


class CreateError(MixerError):
    """The destination playlist could not be created."""


class WriteError(MixerError):
    """A single add-tracks batch was rejected.

    start/end are the slice bounds of the batch within the shuffled track list.
    """

    def __init__(self, message: str, start: int, end: int):
        super().__init__(message)
        self.start = start
        self.end = end
