from datetime import datetime, timedelta, timezone
import uuid

import pytest

from vibecheck.errors import StoreError
from vibecheck.gateway import RoomGateway
from vibecheck.identity import IdentityProvider
from vibecheck.models import Song, SongEntry, parse_timestamp

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FakeTableStore:
    """In-memory stand-in for TableStore that understands eq./gt. filters."""

    def __init__(self):
        self.tables = {"rooms": [], "entries": []}
        self.calls = []
        self.inserts = []
        self.error = None
        self.insert_error = None
        self.now = NOW

    def _check(self):
        if self.error is not None:
            raise self.error

    @staticmethod
    def _matches(row, column, expr):
        op, value = expr.split(".", 1)
        actual = row.get(column)
        if op == "eq":
            return str(actual) == value
        if op == "gt":
            return parse_timestamp(actual) > parse_timestamp(value)
        raise AssertionError(f"unsupported filter {expr}")

    def select(self, table, columns="*", filters=None, order=None, limit=None):
        self.calls.append(("select", table, filters))
        self._check()
        if table not in self.tables:
            raise StoreError("relation does not exist", code="42P01")
        rows = [
            row for row in self.tables[table]
            if all(self._matches(row, col, expr) for col, expr in (filters or {}).items())
        ]
        if order:
            column, direction = order.split(".")
            rows.sort(key=lambda r: parse_timestamp(r[column]), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return [dict(row) for row in rows]

    def count(self, table):
        self.calls.append(("count", table, None))
        self._check()
        if table not in self.tables:
            raise StoreError("relation does not exist", code="42P01")
        return len(self.tables[table])

    def insert(self, table, row):
        self.calls.append(("insert", table, None))
        if self.insert_error is not None:
            raise self.insert_error
        self._check()
        stored = dict(row, id=str(uuid.uuid4()), created_at=self.now.isoformat())
        self.tables[table].append(stored)
        self.inserts.append(stored)

    # Helpers for arranging data
    def add_room(self, room_id, name):
        self.tables["rooms"].append({"id": int(room_id), "name": name, "created_at": NOW.isoformat()})

    def add_entry(self, room_id, user_id, songs, created_at):
        current, favorite, underrated = [Song(*s).to_dict() for s in songs]
        self.tables["entries"].append({
            "id": str(uuid.uuid4()),
            "room_id": int(room_id),
            "user_id": user_id,
            "current_song": current,
            "favorite_song": favorite,
            "underrated_song": underrated,
            "created_at": created_at.isoformat(),
        })


@pytest.fixture
def store():
    return FakeTableStore()


@pytest.fixture
def identity(tmp_path):
    return IdentityProvider(tmp_path / "identity.json")


@pytest.fixture
def gateway(store, identity):
    return RoomGateway(store=store, identity=identity)


@pytest.fixture
def make_entry():
    """Build SongEntry objects; songs are (title, artist) or (title, artist, url) tuples."""
    counter = {"n": 0}

    def _make(current, favorite, underrated, user_id=None, minutes_ago=None):
        counter["n"] += 1
        n = counter["n"]
        return SongEntry(
            id=f"entry-{n}",
            room_id="1",
            user_id=user_id or f"user-{n}",
            current=Song(*current),
            favorite=Song(*favorite),
            underrated=Song(*underrated),
            created_at=NOW - timedelta(minutes=minutes_ago if minutes_ago is not None else n),
        )

    return _make
