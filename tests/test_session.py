from datetime import datetime, timedelta, timezone

import pytest

from vibecheck.errors import StoreError, SubmissionError, SubmissionInProgressError, VibeCheckError
from vibecheck.models import AppState, Song
from vibecheck.session import RoomSession, parse_room_fragment

SONGS = [("Blue", "Artist A"), ("Red", "Artist B"), ("Green", "Artist C")]
PICKS = (Song("Blue", "Artist A"), Song("Red", "Artist B"), Song("Yellow", "Artist D"))


@pytest.fixture
def session(gateway):
    return RoomSession(gateway)


@pytest.mark.parametrize("fragment,expected", [
    ("#12", "12"),
    ("12", "12"),
    ("#0", "0"),
    ("", None),
    (None, None),
    ("#", None),
    ("#lobby", None),
    ("#-3", None),
])
def test_parse_room_fragment(fragment, expected):
    assert parse_room_fragment(fragment) == expected


def test_join_invalid_room_stays_scanning(session, store):
    assert session.join_room("abc") is AppState.SCANNING
    assert session.room_id is None
    assert store.calls == []


def test_first_visit_goes_to_input(session, store):
    store.add_room("2", "Lounge")

    assert session.join_room("2") is AppState.INPUT
    assert session.room_name == "Lounge"


def test_recent_submitter_goes_to_results(session, store, identity):
    store.add_entry("2", identity.get_or_create_user_id(), SONGS, datetime.now(timezone.utc) - timedelta(minutes=5))

    assert session.join_room("2") is AppState.RESULTS


def test_submit_moves_to_results(session, store):
    store.now = datetime.now(timezone.utc)
    store.add_entry("1", "before-you", SONGS, store.now - timedelta(minutes=3))
    session.join_room("1")

    data = session.submit(*PICKS)

    assert session.state is AppState.RESULTS
    assert len(data.entries) == 2
    assert session.previous_entry().user_id == "before-you"
    assert session.previous_entry(by_identity=True).user_id == "before-you"
    assert session.playlist()[0].support_count == 2
    assert session.stats().unique_songs == 4
    assert not session.is_submitting


def test_submit_requires_a_room(session):
    with pytest.raises(VibeCheckError):
        session.submit(*PICKS)


def test_no_concurrent_submissions(session, store, gateway, monkeypatch):
    session.join_room("1")
    save = gateway.submit_entry
    second_attempt = []

    def submit_twice(*args):
        # A second click arrives while the first insert is still running
        with pytest.raises(SubmissionInProgressError) as exc:
            session.submit(*PICKS)
        second_attempt.append(exc.value)
        return save(*args)

    monkeypatch.setattr(gateway, "submit_entry", submit_twice)

    session.submit(*PICKS)

    assert len(second_attempt) == 1
    assert len(store.inserts) == 1
    assert session.state is AppState.RESULTS
    assert not session.is_submitting


def test_failed_submit_keeps_form_open(session, store):
    session.join_room("1")
    store.insert_error = StoreError("insert denied", code="42501")

    with pytest.raises(SubmissionError):
        session.submit(*PICKS)

    assert session.state is AppState.INPUT
    assert not session.is_submitting


def test_add_another_and_leave(session, store, identity):
    store.add_entry("1", identity.get_or_create_user_id(), SONGS, datetime.now(timezone.utc))
    session.join_room("1")

    assert session.add_another() is AppState.INPUT
    assert session.leave_room() is AppState.SCANNING
    assert session.room_data is None
    assert session.playlist() == []


def test_refresh_rereads_room(session, store):
    session.join_room("1")
    store.add_entry("1", "late", SONGS, datetime.now(timezone.utc))

    data = session.refresh()

    assert [e.user_id for e in data.entries] == ["late"]
