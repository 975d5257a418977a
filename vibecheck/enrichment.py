"""
AI Enrichment
=============

Optional Gemini-backed helpers:
- resolve free-text song guesses into title / artist / Spotify link
- describe a room's "vibe" and recommend songs that fit it

Both are decoration. Without GEMINI_API_KEY, or when the call fails in any
way, they return None and the caller carries on with what it has.
"""

import json
import logging
from typing import Dict, List, Optional, Union

import requests

from .config import GeminiConfig
from .models import RoomVibe, Song, SongEntry

logger = logging.getLogger(__name__)

SongInput = Union[Song, str]

QUIET_ROOM = RoomVibe(
    vibe_name="Quiet Room",
    description="It's a bit quiet here. Add some songs to get the vibe started!",
    playlist=[],
)

# ── Response schemas (Gemini structured output) ──
_SONG_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "artist": {"type": "STRING"},
        "spotifyUrl": {"type": "STRING"},
    },
    "required": ["title", "artist", "spotifyUrl"],
}

RESOLVE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "current": _SONG_SCHEMA,
        "favorite": _SONG_SCHEMA,
        "underrated": _SONG_SCHEMA,
    },
    "required": ["current", "favorite", "underrated"],
}

VIBE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "vibeName": {"type": "STRING"},
        "description": {"type": "STRING"},
        "playlist": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "artist": {"type": "STRING"},
                    "reason": {"type": "STRING"},
                    "spotifyUrl": {"type": "STRING"},
                },
                "required": ["title", "artist", "reason", "spotifyUrl"],
            },
        },
    },
    "required": ["vibeName", "description", "playlist"],
}


def _format_input(value: SongInput) -> str:
    return value if isinstance(value, str) else f"{value.title} by {value.artist}"


class VibeEnricher:
    """
    Thin client for Gemini's ``generateContent`` with JSON output.

    Attributes:
        config: API key, model and generation settings
    """

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        session: Optional[requests.Session] = None
    ):
        self.config = config or GeminiConfig.from_env()
        self.session = session or requests.Session()

        if not self.config.is_configured:
            logger.warning("Missing GEMINI_API_KEY. AI features will not work.")

    @property
    def enabled(self) -> bool:
        return self.config.is_configured

    def _generate_json(self, prompt: str, schema: Dict) -> Optional[Dict]:
        """
        Send one prompt and parse the structured reply.

        Returns:
            Parsed JSON object, or None on any failure
        """
        if not self.enabled:
            return None

        url = f"{self.config.base_url}/models/{self.config.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        try:
            response = self.session.post(
                url,
                params={"key": self.config.api_key},
                json=payload,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
            result = json.loads(text or "{}")
        except requests.RequestException as e:
            logger.warning("Gemini request failed: %s", e)
            return None
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("Gemini returned an unusable response: %s", e)
            return None

        if not isinstance(result, dict):
            logger.warning("Gemini returned %s instead of an object", type(result).__name__)
            return None
        return result

    def resolve_song_metadata(
        self,
        current: SongInput,
        favorite: SongInput,
        underrated: SongInput
    ) -> Optional[Dict[str, Song]]:
        """
        Identify three songs typed as free text.

        Returns:
            {"current": Song, "favorite": Song, "underrated": Song}, or None
        """
        prompt = f"""Identify the following songs and return them in a structured JSON format.
For each song, provide the correct Title, Artist, and a Spotify URL.
If you cannot find the exact Spotify URL, provide a Spotify Search URL (e.g. https://open.spotify.com/search/Title%20Artist).

1. Current Song: "{_format_input(current)}"
2. Favorite Song: "{_format_input(favorite)}"
3. Underrated Song: "{_format_input(underrated)}"
"""
        data = self._generate_json(prompt, RESOLVE_SCHEMA)
        if data is None:
            return None
        try:
            return {slot: Song.from_dict(data[slot]) for slot in ("current", "favorite", "underrated")}
        except (KeyError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Incomplete song resolution from Gemini: %s", e)
            return None

    def generate_room_vibe(self, entries: List[SongEntry]) -> Optional[RoomVibe]:
        """
        Name the room's vibe and recommend five songs for it.

        An empty room gets a fixed "Quiet Room" answer without calling the API.
        """
        if not entries:
            return QUIET_ROOM

        songs_list = "\n".join(
            f"{song.title} - {song.artist}"
            for entry in entries
            for song in entry.songs()
        )
        prompt = f"""Analyze the musical vibe of a room based on the following songs:
{songs_list}

Determine a creative "Vibe Name" and a short description.
Recommend 5 songs that fit this vibe.
For each recommendation, explain the reason and provide a Spotify URL (or search URL).
"""
        data = self._generate_json(prompt, VIBE_SCHEMA)
        if data is None:
            return None
        try:
            return RoomVibe.from_dict(data)
        except (AttributeError, TypeError) as e:
            logger.warning("Malformed room vibe from Gemini: %s", e)
            return None
