"""
Room Data Gateway
=================

All reads and writes of rooms and entries go through here. The gateway owns
two guards:
- room ids must be non-negative integer literals before any remote call
- the "submitted recently" check that sends returning users straight to
  the results view

Read paths never raise: they log and return an empty result. Submitting an
entry is the one operation that raises, since losing a user's picks
silently is worse than showing an error.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .config import (
    BOOTSTRAP_ROOM_ID,
    BOOTSTRAP_ROOM_NAME,
    ENTRIES_TABLE,
    MISSING_TABLE_CODES,
    RECENT_SUBMISSION_WINDOW_MINUTES,
    ROOM_ID_PATTERN,
    ROOMS_TABLE,
)
from .errors import InvalidRoomIdError, StoreError, SubmissionError
from .identity import IdentityProvider
from .models import ConnectionStatus, Room, RoomData, Song, SongEntry, parse_timestamp
from .store import TableStore, eq, gt

logger = logging.getLogger(__name__)

_ROOM_ID_RE = re.compile(ROOM_ID_PATTERN, re.ASCII)

MISSING_TABLE = "MISSING_TABLE"
CONNECTION_ERROR = "CONNECTION_ERROR"

SETUP_SQL = """-- Run this in your Supabase SQL Editor

-- 1. Create Rooms Table (Using BIGINT/int8 for IDs)
create table if not exists rooms (
  id bigint generated always as identity primary key,
  created_at timestamp with time zone default timezone('utc'::text, now()) not null,
  name text not null
);

-- 2. Create Entries Table
create table if not exists entries (
  id uuid default gen_random_uuid() primary key,
  created_at timestamp with time zone default timezone('utc'::text, now()) not null,
  room_id bigint not null,
  user_id text not null,
  current_song jsonb not null,
  favorite_song jsonb not null,
  underrated_song jsonb not null
);

create index if not exists entries_room_id_idx on entries (room_id);

alter table rooms enable row level security;
alter table entries enable row level security;

create policy "Enable read access for all users" on rooms for select using (true);
create policy "Enable insert access for all users" on rooms for insert with check (true);

create policy "Enable read access for all users" on entries for select using (true);
create policy "Enable insert access for all users" on entries for insert with check (true);

-- Seed rooms; ids auto-increment (1, 2, 3...)
insert into rooms (name) values ('The Main Stage');
insert into rooms (name) values ('The Chill Lounge');
"""


def validate_room_id(room_id) -> bool:
    """True iff ``room_id`` is made only of decimal digits ("0", "42")."""
    if room_id is None or isinstance(room_id, bool):
        return False
    # fullmatch so a trailing newline does not slip past "$"
    return _ROOM_ID_RE.fullmatch(str(room_id)) is not None


def is_recent(created_at: datetime, now: datetime,
              window_minutes: int = RECENT_SUBMISSION_WINDOW_MINUTES) -> bool:
    """
    Whether an entry falls inside the trailing window.

    Strictly greater-than: an entry exactly ``window_minutes`` old is not
    recent any more.
    """
    return created_at > now - timedelta(minutes=window_minutes)


class RoomGateway:
    """
    CRUD access to rooms and entries with validation guards.

    Usage:
        gateway = RoomGateway()
        data = gateway.get_room_data("1")
        data = gateway.submit_entry("1", current, favorite, underrated)
    """

    def __init__(
        self,
        store: Optional[TableStore] = None,
        identity: Optional[IdentityProvider] = None
    ):
        """
        Args:
            store: Table store client (creates one from the environment if None)
            identity: Source of the anonymous user id
        """
        self.store = store or TableStore()
        self.identity = identity or IdentityProvider()

    # =========================================================================
    # CONNECTIVITY
    # =========================================================================

    def check_connection(self) -> ConnectionStatus:
        """
        Probe the store with a lightweight count on the entries table.

        A missing table gets its own reason code so the caller can show the
        one-time setup instructions instead of an error banner.
        """
        try:
            self.store.count(ENTRIES_TABLE)
        except StoreError as e:
            logger.error("Table store connection check failed: %s", e)
            if e.code in MISSING_TABLE_CODES:
                return ConnectionStatus(
                    reachable=False,
                    reason_code=MISSING_TABLE,
                    message=f"The '{ENTRIES_TABLE}' table does not exist.",
                )
            if e.code == CONNECTION_ERROR:
                return ConnectionStatus(reachable=False, reason_code=CONNECTION_ERROR, message=e.message)
            return ConnectionStatus(
                reachable=False,
                reason_code=e.code,
                message=f"Database Error: {e.message}",
            )
        return ConnectionStatus(reachable=True)

    # =========================================================================
    # READS
    # =========================================================================

    def fetch_room_metadata(self, room_id: str) -> Optional[Room]:
        """
        Look up a room's name.

        Returns:
            Room, or None if it cannot be found. Room "1" always resolves so a
            fresh deployment has somewhere to start.
        """
        if not validate_room_id(room_id):
            return None

        room_id = str(room_id)
        try:
            rows = self.store.select(ROOMS_TABLE, filters={"id": eq(room_id)}, limit=1)
        except StoreError as e:
            logger.warning("Room lookup failed for %s: %s", room_id, e)
            rows = []

        if rows:
            try:
                return Room.from_row(rows[0])
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Malformed room row for %s: %s", room_id, e)

        if room_id == BOOTSTRAP_ROOM_ID:
            return Room(
                id=BOOTSTRAP_ROOM_ID,
                name=BOOTSTRAP_ROOM_NAME,
                created_at=datetime.now(timezone.utc),
            )
        return None

    def fetch_entries(self, room_id: str) -> List[SongEntry]:
        """
        All entries of a room, newest first.

        Never raises; invalid ids and store errors give an empty list.
        """
        if not validate_room_id(room_id):
            logger.warning("Invalid non-numeric Room ID provided: %r", room_id)
            return []

        try:
            rows = self.store.select(
                ENTRIES_TABLE,
                filters={"room_id": eq(room_id)},
                order="created_at.desc",
            )
        except StoreError as e:
            logger.error("Error fetching entries for room %s: %s", room_id, e)
            return []

        entries = []
        for row in rows:
            try:
                entries.append(SongEntry.from_row(row))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed entry row %s: %s", row.get("id") if isinstance(row, dict) else row, e)
        return entries

    def get_room_data(self, room_id: str) -> RoomData:
        """Room name plus entries, as shown on the results view."""
        if not validate_room_id(room_id):
            logger.warning("Invalid non-numeric Room ID provided: %r", room_id)
            return RoomData(room_id=str(room_id))

        room_id = str(room_id)
        room = self.fetch_room_metadata(room_id)
        room_name = room.name if room else f"Room #{room_id}"
        return RoomData(
            room_id=room_id,
            room_name=room_name,
            entries=self.fetch_entries(room_id),
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def submit_entry(
        self,
        room_id: str,
        current: Song,
        favorite: Song,
        underrated: Song
    ) -> RoomData:
        """
        Store one listener's picks and return the refreshed room.

        The room is re-read after the insert rather than merged locally, so
        the result reflects what the store actually holds.

        Raises:
            InvalidRoomIdError: room_id is not numeric (nothing is written)
            SubmissionError: the insert failed
        """
        if not validate_room_id(room_id):
            raise InvalidRoomIdError(room_id)

        room_id = str(room_id)
        row = {
            "room_id": int(room_id),
            "user_id": self.identity.get_or_create_user_id(),
            "current_song": current.to_dict(),
            "favorite_song": favorite.to_dict(),
            "underrated_song": underrated.to_dict(),
        }
        try:
            self.store.insert(ENTRIES_TABLE, row)
        except StoreError as e:
            logger.error("Error saving entry for room %s: %s", room_id, e)
            raise SubmissionError(str(e)) from e

        return self.get_room_data(room_id)

    def has_recent_submission(self, room_id: str, now: Optional[datetime] = None) -> bool:
        """
        Whether this user already submitted to the room within the last hour.

        This only decides which screen to show. It does not prevent a second
        submission; nothing in the store enforces uniqueness.
        """
        if not validate_room_id(room_id):
            return False

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(minutes=RECENT_SUBMISSION_WINDOW_MINUTES)
        try:
            rows = self.store.select(
                ENTRIES_TABLE,
                columns="id,created_at",
                filters={
                    "room_id": eq(room_id),
                    "user_id": eq(self.identity.get_or_create_user_id()),
                    "created_at": gt(cutoff.isoformat()),
                },
                limit=1,
            )
        except StoreError as e:
            logger.warning("Error checking recent submission: %s", e)
            return False

        for row in rows:
            try:
                created_at = parse_timestamp(row["created_at"])
            except (KeyError, ValueError, TypeError):
                # Row already passed the remote filter
                return True
            if is_recent(created_at, now):
                return True
        return False
