import json
from unittest import mock

import pytest
import requests

from vibecheck.config import GeminiConfig
from vibecheck.enrichment import QUIET_ROOM, VibeEnricher
from vibecheck.models import Song


def gemini_reply(payload):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]
    }
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def enricher(session):
    return VibeEnricher(config=GeminiConfig(api_key="key", model="gemini-test"), session=session)


def test_disabled_without_api_key(session):
    enricher = VibeEnricher(config=GeminiConfig(api_key=""), session=session)

    assert enricher.resolve_song_metadata("blue", "red", "green") is None
    session.post.assert_not_called()


def test_empty_room_is_quiet_without_calling(enricher, session):
    assert enricher.generate_room_vibe([]) == QUIET_ROOM
    session.post.assert_not_called()


def test_resolve_song_metadata(enricher, session):
    song = {"title": "Blue Monday", "artist": "New Order", "spotifyUrl": "https://open.spotify.com/track/1"}
    session.post.return_value = gemini_reply({"current": song, "favorite": song, "underrated": song})

    resolved = enricher.resolve_song_metadata("blue monday", Song("Red", "Artist B"), "green")

    assert resolved["current"] == Song("Blue Monday", "New Order", "https://open.spotify.com/track/1")
    url = session.post.call_args.args[0]
    assert url.endswith("/models/gemini-test:generateContent")
    body = session.post.call_args.kwargs["json"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    prompt = body["contents"][0]["parts"][0]["text"]
    assert '"Red by Artist B"' in prompt
    assert '"blue monday"' in prompt


def test_resolve_with_missing_slot_returns_none(enricher, session):
    session.post.return_value = gemini_reply({"current": {"title": "A", "artist": "B", "spotifyUrl": ""}})

    assert enricher.resolve_song_metadata("a", "b", "c") is None


def test_generate_room_vibe(enricher, session, make_entry):
    session.post.return_value = gemini_reply({
        "vibeName": "Neon Nostalgia",
        "description": "Synth-heavy throwbacks.",
        "playlist": [
            {"title": "Nightcall", "artist": "Kavinsky", "reason": "Retro synths", "spotifyUrl": "u1"},
        ],
    })
    entries = [make_entry(("Blue", "A"), ("Red", "B"), ("Green", "C"))]

    vibe = enricher.generate_room_vibe(entries)

    assert vibe.vibe_name == "Neon Nostalgia"
    assert vibe.playlist[0].title == "Nightcall"
    prompt = session.post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
    assert "Blue - A" in prompt


def test_transport_failure_is_swallowed(enricher, session, make_entry):
    session.post.side_effect = requests.Timeout("slow")

    assert enricher.generate_room_vibe([make_entry(("Blue", "A"), ("Red", "B"), ("Green", "C"))]) is None


def test_unparseable_reply_is_swallowed(enricher, session):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"candidates": [{"content": {"parts": [{"text": "not json"}]}}]}
    session.post.return_value = response

    assert enricher.resolve_song_metadata("a", "b", "c") is None
