"""Public façade for the playlist_mixer.core package.

This module exposes logging helpers, console helpers, error kinds, and the
data model shared by the Spotify and pipeline packages. Callers should import
these cross-cutting concerns from this façade instead of the internal
submodules.
"""

from .cli_utils import (
    ask,
    print_error,
    print_header,
    print_info,
    print_question,
    print_success,
    print_warning,
)
from .errors import (
    AuthError,
    ConfigError,
    CreateError,
    FetchError,
    MixerError,
    SelectionError,
    WriteError,
)
from .fs_utils import read_json
from .logging_config import configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import (
    AuthToken,
    BatchWriteReport,
    Credentials,
    CurrentUser,
    MixResult,
    PlaylistHandle,
    PlaylistSummary,
)

__all__ = [
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "ask",
    "print_header",
    "print_info",
    "print_success",
    "print_warning",
    "print_error",
    "print_question",
    "read_json",
    "MixerError",
    "ConfigError",
    "AuthError",
    "FetchError",
    "SelectionError",
    "CreateError",
    "WriteError",
    "Credentials",
    "AuthToken",
    "CurrentUser",
    "PlaylistSummary",
    "PlaylistHandle",
    "BatchWriteReport",
    "MixResult",
]
