"""
Room Aggregation
================

Turns a room's entries into what the results view shows:
- the entry of "the person before you"
- the collective playlist (most submitted songs)
- room statistics

Everything here is a pure function of the entry list (newest first) and is
cheap enough to recompute on every refresh.

Note the two different notions of "same song":
- the playlist groups by trimmed, case-insensitive title AND artist
- the unique-song count uses the raw title only
They are kept apart on purpose so the numbers users already see do not
shift.
"""

from collections import OrderedDict
from typing import List, Optional, Sequence

from .config import PLAYLIST_SIZE
from .models import AggregatedTrack, RoomStats, Song, SongEntry


def pick_previous_entry(
    entries: Sequence[SongEntry],
    user_id: Optional[str] = None
) -> Optional[SongEntry]:
    """
    Entry of the person who submitted before the current user.

    Without ``user_id`` the newest entry is assumed to be the caller's own
    fresh submission and the one after it is returned. That assumption
    breaks when others submit between the write and the read, so callers
    that know their id should pass it.

    Args:
        entries: Room entries, newest first
        user_id: Current user's anonymous id, enables the identity lookup

    Returns:
        The previous entry, or None if there is nobody before the user
    """
    if user_id is None:
        return entries[1] if len(entries) > 1 else None

    own_index = next(
        (i for i, entry in enumerate(entries) if entry.user_id == user_id),
        None
    )
    start = own_index + 1 if own_index is not None else 0
    for entry in entries[start:]:
        if entry.user_id != user_id:
            return entry
    return None


def _flatten(entries: Sequence[SongEntry]) -> List[Song]:
    songs = []
    for entry in entries:
        songs.extend(entry.songs())
    return songs


def build_playlist(
    entries: Sequence[SongEntry],
    limit: int = PLAYLIST_SIZE
) -> List[AggregatedTrack]:
    """
    Rank the room's songs by how often they were submitted.

    Songs from all three slots count. Ties keep the order in which the songs
    first appear in ``entries``; each track carries the title, artist and
    link of its first occurrence.

    Args:
        entries: Room entries in display order
        limit: Maximum tracks to return

    Returns:
        Up to ``limit`` AggregatedTrack, most supported first
    """
    groups = OrderedDict()  # key -> [first song, count]
    for song in _flatten(entries):
        key = song.grouping_key()
        if key not in groups:
            groups[key] = [song, 0]
        groups[key][1] += 1

    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(groups.values(), key=lambda item: item[1], reverse=True)

    return [
        AggregatedTrack(
            title=song.title,
            artist=song.artist,
            source_url=song.source_url,
            support_count=count,
        )
        for song, count in ranked[:max(limit, 0)]
    ]


def count_unique_songs(entries: Sequence[SongEntry]) -> int:
    """Number of distinct titles across all slots. Artist is ignored."""
    return len({song.title for song in _flatten(entries)})


def room_stats(entries: Sequence[SongEntry]) -> RoomStats:
    return RoomStats(
        total_entries=len(entries),
        unique_songs=count_unique_songs(entries),
    )
