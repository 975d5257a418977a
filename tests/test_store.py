from unittest import mock

import pytest
import requests

from vibecheck.config import StoreConfig
from vibecheck.errors import StoreError
from vibecheck.store import TableStore, eq, gt


def make_response(status=200, body=None, headers=None, reason="OK"):
    response = mock.Mock()
    response.status_code = status
    response.reason = reason
    response.headers = headers or {}
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def table_store(session):
    config = StoreConfig(url="https://demo.supabase.co/", anon_key="anon-key")
    return TableStore(config=config, session=session)


def test_select_builds_postgrest_query(table_store, session):
    session.request.return_value = make_response(body=[{"id": 1}])

    rows = table_store.select(
        "entries",
        filters={"room_id": eq(1), "created_at": gt("2026-10-18T11:00:00+00:00")},
        order="created_at.desc",
        limit=1,
    )

    assert rows == [{"id": 1}]
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "GET"
    assert url == "https://demo.supabase.co/rest/v1/entries"
    assert kwargs["params"] == {
        "select": "*",
        "room_id": "eq.1",
        "created_at": "gt.2026-10-18T11:00:00+00:00",
        "order": "created_at.desc",
        "limit": 1,
    }
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["headers"]["Authorization"] == "Bearer anon-key"


def test_remote_error_carries_postgrest_code(table_store, session):
    session.request.return_value = make_response(
        status=404,
        body={"code": "42P01", "message": 'relation "public.entries" does not exist'},
        reason="Not Found",
    )

    with pytest.raises(StoreError) as exc:
        table_store.select("entries")

    assert exc.value.code == "42P01"
    assert exc.value.status == 404


def test_error_without_json_body_uses_status(table_store, session):
    session.request.return_value = make_response(status=503, body=ValueError("no json"), reason="Service Unavailable")

    with pytest.raises(StoreError) as exc:
        table_store.count("entries")

    assert exc.value.code == "503"
    assert exc.value.message == "Service Unavailable"


def test_transport_error_becomes_connection_error(table_store, session):
    session.request.side_effect = requests.ConnectionError("name resolution failed")

    with pytest.raises(StoreError) as exc:
        table_store.select("rooms")

    assert exc.value.code == "CONNECTION_ERROR"


def test_count_reads_content_range(table_store, session):
    session.request.return_value = make_response(body=[{"id": "x"}], headers={"Content-Range": "0-0/42"})

    assert table_store.count("entries") == 42
    assert session.request.call_args.kwargs["headers"]["Prefer"] == "count=exact"


def test_count_of_empty_table(table_store, session):
    session.request.return_value = make_response(body=[], headers={"Content-Range": "*/0"})

    assert table_store.count("entries") == 0


def test_insert_posts_row(table_store, session):
    session.request.return_value = make_response(status=201, body=None)

    table_store.insert("entries", {"room_id": 1, "user_id": "u"})

    method, url = session.request.call_args.args
    assert method == "POST"
    assert session.request.call_args.kwargs["json"] == {"room_id": 1, "user_id": "u"}


def test_unconfigured_store_fails_without_request(session):
    store = TableStore(config=StoreConfig(url="", anon_key=""), session=session)

    with pytest.raises(StoreError) as exc:
        store.select("rooms")

    assert exc.value.code == "NOT_CONFIGURED"
    session.request.assert_not_called()


def test_select_drops_null_and_non_object_rows(table_store, session):
    session.request.return_value = make_response(body=None)
    assert table_store.select("entries") == []

    session.request.return_value = make_response(body=[None, {"id": 1}, "junk"])
    assert table_store.select("entries") == [{"id": 1}]
