"""
Data models for VibeCheck.

Rows coming back from the table store are mapped into these types right at
the gateway, so the rest of the package never touches raw dictionaries.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from dateutil import parser as date_parser

from .config import SPOTIFY_SEARCH_URL, UNKNOWN_ARTIST


def parse_timestamp(value) -> datetime:
    """Parse a store timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds, as browsers used to write them
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Song:
    """A song as picked by a listener."""
    title: str
    artist: str
    source_url: str = ""

    def grouping_key(self) -> str:
        """Identity used by the playlist: trimmed, lowercased title and artist."""
        return f"{self.title.strip().lower()}|{self.artist.strip().lower()}"

    def display(self) -> str:
        return f"{self.title} - {self.artist}"

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "artist": self.artist,
            "spotifyUrl": self.source_url,
        }

    @classmethod
    def from_dict(cls, data) -> "Song":
        if isinstance(data, str):
            data = json.loads(data)
        return cls(
            title=data.get("title") or "",
            artist=data.get("artist") or "",
            source_url=data.get("spotifyUrl") or data.get("source_url") or "",
        )

    @classmethod
    def parse(cls, text: str) -> "Song":
        """
        Build a song from free text typed by a user.

        "Title - Artist" splits on the last " - "; anything else becomes a
        title by "Unknown Artist". Either way the link is a Spotify search
        for the typed text, since no exact track was picked.
        """
        text = text.strip()
        source_url = SPOTIFY_SEARCH_URL + quote(text, safe="!~*'()")
        if " - " in text:
            title, artist = text.rsplit(" - ", 1)
            if title.strip() and artist.strip():
                return cls(title=title.strip(), artist=artist.strip(), source_url=source_url)
        return cls(title=text, artist=UNKNOWN_ARTIST, source_url=source_url)


@dataclass(frozen=True)
class SongEntry:
    """One listener's three picks for a room. Never mutated after creation."""
    id: str
    room_id: str
    user_id: str
    current: Song
    favorite: Song
    underrated: Song
    created_at: datetime

    def songs(self) -> Tuple[Song, Song, Song]:
        return (self.current, self.favorite, self.underrated)

    @classmethod
    def from_row(cls, row: Dict) -> "SongEntry":
        return cls(
            id=str(row["id"]),
            room_id=str(row.get("room_id", "")),
            user_id=row.get("user_id") or "",
            current=Song.from_dict(row["current_song"]),
            favorite=Song.from_dict(row["favorite_song"]),
            underrated=Song.from_dict(row["underrated_song"]),
            created_at=parse_timestamp(row["created_at"]),
        )


@dataclass(frozen=True)
class Room:
    """A named room. Provisioned outside this package."""
    id: str
    name: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Dict) -> "Room":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or f"Room #{row['id']}",
            created_at=parse_timestamp(row["created_at"]) if row.get("created_at") else datetime.now(timezone.utc),
        )


@dataclass
class RoomData:
    """Everything the results view needs for one room."""
    room_id: str
    room_name: Optional[str] = None
    entries: List[SongEntry] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.room_name or f"Room #{self.room_id}"


@dataclass(frozen=True)
class AggregatedTrack:
    """A song ranked by how many times the room submitted it."""
    title: str
    artist: str
    source_url: str
    support_count: int

    @property
    def reason(self) -> str:
        suffix = "s" if self.support_count > 1 else ""
        return f"{self.support_count} listener{suffix}"

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "artist": self.artist,
            "spotifyUrl": self.source_url,
            "supportCount": self.support_count,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class RoomStats:
    total_entries: int
    unique_songs: int


@dataclass(frozen=True)
class RecommendedTrack:
    """AI recommendation with its one-line justification."""
    title: str
    artist: str
    reason: str
    source_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "RecommendedTrack":
        return cls(
            title=data.get("title", ""),
            artist=data.get("artist", ""),
            reason=data.get("reason", ""),
            source_url=data.get("spotifyUrl") or data.get("source_url") or "",
        )


@dataclass
class RoomVibe:
    """Narrative summary of a room's taste."""
    vibe_name: str
    description: str
    playlist: List[RecommendedTrack] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "RoomVibe":
        return cls(
            vibe_name=data.get("vibeName", ""),
            description=data.get("description", ""),
            playlist=[RecommendedTrack.from_dict(t) for t in data.get("playlist", [])],
        )

    def to_dict(self) -> Dict:
        return {
            "vibeName": self.vibe_name,
            "description": self.description,
            "playlist": [
                {
                    "title": t.title,
                    "artist": t.artist,
                    "reason": t.reason,
                    "spotifyUrl": t.source_url,
                }
                for t in self.playlist
            ],
        }


@dataclass(frozen=True)
class ConnectionStatus:
    """Result of probing the table store."""
    reachable: bool
    reason_code: Optional[str] = None
    message: Optional[str] = None


class AppState(Enum):
    SCANNING = "SCANNING"
    INPUT = "INPUT"
    RESULTS = "RESULTS"
