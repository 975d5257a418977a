"""
Configuration and constants for VibeCheck.

Secrets come from the environment (or a local ``.env`` file). The config
dataclasses read the environment when they are built, not at import time,
so tests and the CLI can change variables before creating clients.
"""
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# TABLE STORE (SUPABASE) CONFIGURATION
# =============================================================================
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "")

ROOMS_TABLE = "rooms"
ENTRIES_TABLE = "entries"

# PostgREST / Postgres codes for "relation does not exist"
MISSING_TABLE_CODES = ("42P01", "PGRST205")

# =============================================================================
# SPOTIFY API CONFIGURATION
# =============================================================================
SPOTIFY_CLIENT_ID = os.environ.get("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.environ.get("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_SEARCH_URL = "https://open.spotify.com/search/"
UNKNOWN_ARTIST = "Unknown Artist"

# =============================================================================
# GEMINI (AI ENRICHMENT) CONFIGURATION
# =============================================================================
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# =============================================================================
# ROOM RULES
# =============================================================================
# Room ids are int8 in the store; anything else never leaves the process
ROOM_ID_PATTERN = r"^\d+$"

# A fresh deployment always has this room, even before provisioning
BOOTSTRAP_ROOM_ID = "1"
BOOTSTRAP_ROOM_NAME = "The Main Stage"

RECENT_SUBMISSION_WINDOW_MINUTES = 60

PLAYLIST_SIZE = 3

# =============================================================================
# SEARCH CONFIGURATION
# =============================================================================
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_RESULT_LIMIT = 5
TOKEN_REFRESH_MARGIN_SECONDS = 60
SEARCH_DEBOUNCE_SECONDS = 0.2

REQUEST_TIMEOUT_SECONDS = 15

# =============================================================================
# LOCAL STATE
# =============================================================================
STATE_DIR = Path(os.environ.get("VIBECHECK_STATE_DIR", Path.home() / ".vibecheck"))
USER_ID_FILE = STATE_DIR / "identity.json"


@dataclass
class StoreConfig:
    """Connection settings for the hosted table store."""
    url: str = ""
    anon_key: str = ""
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            url=os.environ.get("SUPABASE_URL") or SUPABASE_URL,
            anon_key=os.environ.get("SUPABASE_ANON_KEY") or SUPABASE_ANON_KEY,
        )


@dataclass
class SpotifyConfig:
    """Client-credentials pair for Spotify search."""
    client_id: str = ""
    client_secret: str = ""
    token_url: str = SPOTIFY_TOKEN_URL
    timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls) -> "SpotifyConfig":
        # Accept spotipy's variable names too
        return cls(
            client_id=os.environ.get("SPOTIFY_CLIENT_ID") or os.environ.get("SPOTIPY_CLIENT_ID") or SPOTIFY_CLIENT_ID,
            client_secret=os.environ.get("SPOTIFY_CLIENT_SECRET") or os.environ.get("SPOTIPY_CLIENT_SECRET") or SPOTIFY_CLIENT_SECRET,
        )


@dataclass
class GeminiConfig:
    """Settings for the optional generative enrichment."""
    api_key: str = ""
    model: str = GEMINI_MODEL
    base_url: str = GEMINI_BASE_URL
    timeout: float = 30.0
    temperature: float = 0.4

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        return cls(
            api_key=os.environ.get("GEMINI_API_KEY") or GEMINI_API_KEY,
            model=os.environ.get("GEMINI_MODEL") or GEMINI_MODEL,
        )
