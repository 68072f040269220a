"""
Tests for local persistence of last known state and the pending queue.
"""

import json
import os
from datetime import datetime
from unittest.mock import patch

import pytest
import pytz

from src.trackium_location.core.exceptions import PersistenceError
from src.trackium_location.models import PersistedRecord
from src.trackium_location.services.store import LocalStore, atomic_write_json


class TestLastKnownState:
    """Last-known-state file."""

    def test_save_and_load(self, store, london):
        record = PersistedRecord(
            device_id="TRACK-001",
            location=london,
            resolved_at=datetime(2024, 1, 1, 12, 0, 0, tzinfo=pytz.UTC),
        )

        store.save_last(record)

        assert store.load_last() == record

    def test_file_format(self, store, london):
        record = PersistedRecord(
            device_id="TRACK-001",
            location=london,
            resolved_at=datetime(2024, 1, 1, 12, 0, 0, 250000, tzinfo=pytz.UTC),
        )

        store.save_last(record)
        text = store.last_state_path.read_text(encoding="utf-8")
        data = json.loads(text)

        assert "\n  " in text  # pretty printed
        assert data == {
            "deviceId": "TRACK-001",
            "location": {
                "latitude": 51.5,
                "longitude": -0.12,
                "accuracy": 800.0,
                "source": "bigdatacloud",
                "city": "London",
                "country": "UK",
            },
            "timestamp": "2024-01-01T12:00:00.250Z",
            "uploaded": False,
        }

    def test_overwrites_previous_record(self, store, london):
        first = PersistedRecord("TRACK-001", london, datetime(2024, 1, 1, tzinfo=pytz.UTC))
        second = PersistedRecord("TRACK-001", london, datetime(2024, 1, 2, tzinfo=pytz.UTC), True)

        store.save_last(first)
        store.save_last(second)

        assert store.load_last() == second
        assert [p.name for p in store.data_dir.iterdir()] == ["location-data.json"]

    def test_load_missing(self, store):
        assert store.load_last() is None

    def test_failed_write_keeps_previous_state(self, store, london):
        first = PersistedRecord("TRACK-001", london, datetime(2024, 1, 1, tzinfo=pytz.UTC))
        store.save_last(first)

        with patch("src.trackium_location.services.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError, match="disk full"):
                store.save_last(
                    PersistedRecord("TRACK-001", london, datetime(2024, 1, 2, tzinfo=pytz.UTC))
                )

        assert store.load_last() == first
        # Temp file is cleaned up
        assert [p.name for p in store.data_dir.iterdir()] == ["location-data.json"]

    def test_unreadable_state(self, store):
        store.data_dir.mkdir(parents=True)
        store.last_state_path.write_text("{", encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.load_last()


class TestPendingQueue:
    """Pending-delivery queue blob."""

    def test_empty_when_missing(self, store):
        assert store.load_pending_queue() == []

    def test_round_trip_preserves_order(self, store, make_payload):
        entries = [make_payload(i) for i in range(5)]

        store.save_pending_queue(entries)

        assert store.load_pending_queue() == entries

    def test_serialize_round_trip(self, make_payload):
        entries = [make_payload(i) for i in range(3)]

        blob = LocalStore.serialize_queue(entries)

        assert LocalStore.deserialize_queue(blob) == entries

    def test_payload_shape(self, store, make_payload):
        store.save_pending_queue([make_payload(0)])

        data = json.loads(store.queue_path.read_text(encoding="utf-8"))

        assert data == [{
            "deviceId": "TRACK-001",
            "latitude": 40.0,
            "longitude": -74.0,
            "accuracy": 5000.0,
            "altitude": 0,
            "speed": 0,
            "timestamp": "2024-01-01T12:00:00.000Z",
            "source": "ip-api",
        }]

    def test_enqueue_appends(self, store, make_payload):
        assert store.enqueue(make_payload(0)) == 1
        assert store.enqueue(make_payload(1)) == 2

        assert [p.latitude for p in store.load_pending_queue()] == [40.0, 41.0]

    def test_duplicates_are_kept(self, store, make_payload):
        store.enqueue(make_payload(0))
        store.enqueue(make_payload(0))

        assert len(store.load_pending_queue()) == 2

    def test_corrupt_queue_is_moved_aside(self, store, make_payload):
        store.data_dir.mkdir(parents=True)
        store.queue_path.write_text("[{\"deviceId\": ", encoding="utf-8")

        assert store.load_pending_queue() == []
        corrupt = [p for p in store.data_dir.iterdir() if ".corrupt-" in p.name]
        assert len(corrupt) == 1

        # Queue is usable again
        assert store.enqueue(make_payload(0)) == 1

    def test_queue_of_wrong_type_is_corrupt(self, store):
        store.data_dir.mkdir(parents=True)
        store.queue_path.write_text("{\"a\": 1}", encoding="utf-8")

        assert store.load_pending_queue() == []
        assert not store.queue_path.exists()

    def test_save_failure(self, store, make_payload):
        with patch(
            "src.trackium_location.services.store.atomic_write_json",
            side_effect=PermissionError("read-only"),
        ):
            with pytest.raises(PersistenceError, match="read-only"):
                store.save_pending_queue([make_payload(0)])


class TestAtomicWriteJson:
    """Atomic file replacement helper."""

    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "state.json"

        atomic_write_json(target, {"ok": True})

        assert json.loads(target.read_text()) == {"ok": True}

    def test_unserializable_data_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "state.json"
        target.write_text("{\"old\": true}")

        with pytest.raises(TypeError):
            atomic_write_json(target, {"bad": object()})

        assert json.loads(target.read_text()) == {"old": True}
        assert os.listdir(tmp_path) == ["state.json"]
