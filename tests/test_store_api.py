"""Tests for the Firestore and Realtime Database store modules."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fake_backend import FakeStoreBackend

from fleetrecon._api.firestore import FirestoreTimestamp, decode_value, fetch_ais_records, parse_document
from fleetrecon._api.realtime_db import (
    fetch_gps_records,
    parse_gps_tree,
    read_flag,
    watch_flag,
    write_flag,
)
from fleetrecon._transport import StreamEvent
from fleetrecon.config import ReconConfig
from fleetrecon.exceptions import PermissionDeniedError

# ------------------------------------------------------------------
# Firestore value decoding
# ------------------------------------------------------------------


def test_decode_scalar_values() -> None:
    assert decode_value({"doubleValue": 1.5}) == 1.5
    assert decode_value({"integerValue": "1700000000000"}) == 1_700_000_000_000
    assert decode_value({"stringValue": "u1"}) == "u1"
    assert decode_value({"booleanValue": True}) is True
    assert decode_value({"nullValue": None}) is None
    assert decode_value({"integerValue": "bogus"}) is None
    assert decode_value({}) is None


def test_decode_nested_values() -> None:
    value = {
        "mapValue": {
            "fields": {
                "position": {"geoPointValue": {"latitude": 1.0, "longitude": 2.0}},
                "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "2"}]}},
            }
        }
    }
    assert decode_value(value) == {"position": {"latitude": 1.0, "longitude": 2.0}, "tags": ["a", 2]}


def test_timestamp_value_is_structured() -> None:
    decoded = decode_value({"timestampValue": "2024-02-03T04:05:06.000000123Z"})
    assert isinstance(decoded, FirestoreTimestamp)
    assert decoded.to_datetime() == datetime(2024, 2, 3, 4, 5, 6, tzinfo=UTC)


def test_timestamp_without_fraction() -> None:
    assert FirestoreTimestamp("2024-02-03T04:05:06Z").to_datetime() == datetime(2024, 2, 3, 4, 5, 6, tzinfo=UTC)


def test_parse_document_takes_id_from_name() -> None:
    record = parse_document(
        {
            "name": "projects/p/databases/(default)/documents/ais_vessels/244123456",
            "fields": {
                "latitude": {"doubleValue": 52.0},
                "longitude": {"integerValue": "4"},
                "linkedUserId": {"stringValue": "u1"},
            },
        }
    )
    assert record is not None
    assert record.document_id == "244123456"
    assert record.longitude == 4.0
    assert record.linked_user_id == "u1"


def test_parse_document_without_fields() -> None:
    record = parse_document({"name": "x/y/doc"})
    assert record is not None
    assert not record.has_position


# ------------------------------------------------------------------
# Reads through the transport
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_ais_records_follows_pages(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.ais_documents = [{"latitude": float(i), "longitude": float(i)} for i in range(5)]

    records = await fetch_ais_records(config, backend)

    assert [r.latitude for r in records] == [0.0, 1.0, 2.0, 3.0, 4.0]
    # page_size=2 in the config fixture
    assert backend.count("GET", config.ais_collection_url) == 3


@pytest.mark.asyncio
async def test_fetch_ais_records_empty_collection(config: ReconConfig, backend: FakeStoreBackend) -> None:
    assert await fetch_ais_records(config, backend) == []


def test_parse_gps_tree_skips_non_objects() -> None:
    records = parse_gps_tree({"u1": {"latitude": 1, "longitude": 2}, "u2": None, "u3": "junk"})
    assert list(records) == ["u1"]


def test_parse_gps_tree_array_form() -> None:
    records = parse_gps_tree([None, {"latitude": 1, "longitude": 2}])
    assert list(records) == ["1"]


def test_parse_gps_tree_missing_path() -> None:
    assert parse_gps_tree(None) == {}


@pytest.mark.asyncio
async def test_fetch_gps_records(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.gps_tree = {"u1": {"latitude": 1, "longitude": 2, "privacyEnabled": True}}
    records = await fetch_gps_records(config, backend)
    assert records["u1"].privacy_enabled is True


@pytest.mark.asyncio
async def test_read_and_write_flag(config: ReconConfig, backend: FakeStoreBackend) -> None:
    assert await read_flag(config, backend) is False
    backend.flag = True
    assert await read_flag(config, backend) is True
    assert await write_flag(config, backend, False) is False
    assert backend.writes == [False]


@pytest.mark.asyncio
async def test_watch_flag_yields_values_and_skips_noise(config: ReconConfig, backend: FakeStoreBackend) -> None:
    backend.flag = True
    stream = watch_flag(config, backend)

    assert await anext(stream) is True

    backend.push_event(StreamEvent(event="keep-alive", data=None))
    backend.push_event(StreamEvent(event="put", data={"path": "/nested", "data": True}))
    backend.push_event(StreamEvent(event="put", data={"path": "/", "data": None}))
    assert await anext(stream) is False

    backend.push_event(None)
    with pytest.raises(StopAsyncIteration):
        await anext(stream)


@pytest.mark.asyncio
async def test_watch_flag_cancel_event_raises_permission_denied(
    config: ReconConfig,
    backend: FakeStoreBackend,
) -> None:
    backend.stream_initial = False
    backend.backlog.append(StreamEvent(event="cancel", data="Permission denied"))

    with pytest.raises(PermissionDeniedError):
        await anext(watch_flag(config, backend))
