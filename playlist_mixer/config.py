import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from playlist_mixer.core.errors import ConfigError
from playlist_mixer.core.fs_utils import read_json
from playlist_mixer.core.models import Credentials

load_dotenv()

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_REDIRECT_URI = "http://localhost:8888/callback"

# Spotify API constants
SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

SCOPES = [
    "user-read-private",
    "playlist-read-private",
    "playlist-modify-public",
    "playlist-modify-private",
]

# Spotify caps both playlist-item pages and add-tracks bodies at 100 entries
SPOTIFY_MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 100
DEFAULT_BATCH_SIZE = 20

PLAYLIST_DESCRIPTION = "Playlist mixed by spotify-playlist-mixer"


class SpotifySettings(Credentials):
    redirect_uri: str = DEFAULT_REDIRECT_URI


class MixerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=SPOTIFY_MAX_PAGE_SIZE)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1, le=SPOTIFY_MAX_PAGE_SIZE)
    open_browser: bool = False
    log_level: str = "INFO"


class MixerConfig(BaseModel):
    """
    Whole configuration document.

    Built once at process entry by load_config() and passed explicitly to the
    authorizer and the mixer pipeline.
    """

    model_config = ConfigDict(frozen=True)

    spotify: SpotifySettings
    mixer: MixerSettings = Field(default_factory=MixerSettings)

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            client_id=self.spotify.client_id,
            client_secret=self.spotify.client_secret,
        )


def resolve_config_path(path: Optional[str | Path] = None) -> Path:
    """
    Config path precedence: explicit argument, then the PLAYLIST_MIXER_CONFIG
    environment variable (possibly coming from .env), then ./config.json.
    """
    if path:
        return Path(path)
    return Path(os.getenv("PLAYLIST_MIXER_CONFIG") or DEFAULT_CONFIG_FILE)


def load_config(path: Optional[str | Path] = None) -> MixerConfig:
    """
    Read and validate the JSON config file.

    Raises ConfigError when the file is missing, is not valid JSON, or lacks
    spotify.client_id / spotify.client_secret.
    """
    config_path = resolve_config_path(path)
    decode_errors: list[Exception] = []

    try:
        data = read_json(config_path, default=None, on_error=decode_errors.append)
    except OSError as e:
        raise ConfigError(f"Error loading config file {config_path}: {e}") from e
    if decode_errors:
        raise ConfigError(f"Error decoding config file {config_path}: {decode_errors[0]}")
    if data is None:
        raise ConfigError(f"Error loading config file: {config_path} not found")
    if not isinstance(data, dict):
        raise ConfigError(f"Error decoding config file {config_path}: expected a JSON object")

    redirect_override = os.getenv("SPOTIFY_REDIRECT_URI")
    if redirect_override and isinstance(data.get("spotify"), dict):
        data["spotify"]["redirect_uri"] = redirect_override

    try:
        return MixerConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config file {config_path}: {problems}") from e


def dump_example_config() -> str:
    """Return an example config document, used in the missing-config hint."""
    example = {
        "spotify": {
            "client_id": "<your client id>",
            "client_secret": "<your client secret>",
            "redirect_uri": DEFAULT_REDIRECT_URI,
        }
    }
    return json.dumps(example, indent=2)
