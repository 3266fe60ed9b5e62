"""
Tests for the persisted contact window store.
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.models.contact_window import ContactWindow, ContactStatus
from storage.window_store import sortable_utc, window_to_row, row_to_window


def make_window(aos, seconds=300, sat="SAT-A", gs="GS-EQ", elevation=30.0):
    return ContactWindow(
        satellite_id=sat,
        ground_station_id=gs,
        scheduled_aos=aos,
        scheduled_los=aos + timedelta(seconds=seconds),
        elements_used_id="E1",
        max_elevation_deg=elevation,
    )


@pytest.fixture
def store(storage_manager):
    return storage_manager.windows


class TestSortableUtc:
    def test_fixed_width(self):
        whole = sortable_utc(datetime(2024, 1, 1, 0, 0, 5, tzinfo=timezone.utc))
        fractional = sortable_utc(datetime(2024, 1, 1, 0, 0, 4, 500000, tzinfo=timezone.utc))
        assert whole == "2024-01-01T00:00:05.000000Z"
        assert len(whole) == len(fractional)
        assert fractional < whole

    def test_offset_converted(self):
        plus8 = timezone(timedelta(hours=8))
        assert sortable_utc(datetime(2024, 1, 1, 8, 0, tzinfo=plus8)) == "2024-01-01T00:00:00.000000Z"


class TestRowMapping:
    def test_row_round_trip(self, scenario_start):
        window = make_window(scenario_start + timedelta(microseconds=250000))
        row = window_to_row(window)
        assert row['status'] == 'scheduled'
        assert row['duration_seconds'] == 300
        assert row_to_window(row) == window


class TestSQLiteWindowStore:
    """Test window persistence and queries"""

    def test_upsert_and_query(self, store, scenario_start):
        window = make_window(scenario_start)
        store.upsert(window)
        assert store.query_where("SAT-A", "GS-EQ") == [window]
        assert store.count() == 1

    def test_upsert_same_aos_updates(self, store, scenario_start):
        store.upsert(make_window(scenario_start, elevation=30.0))
        store.upsert(make_window(scenario_start, seconds=320, elevation=35.0))
        stored = store.query_where("SAT-A", "GS-EQ")
        assert len(stored) == 1
        assert stored[0].max_elevation_deg == 35.0
        assert stored[0].duration_seconds == 320

    def test_query_ordered_by_aos(self, store, scenario_start):
        """Mixed whole and fractional seconds still sort chronologically"""
        instants = [
            scenario_start + timedelta(seconds=3600),
            scenario_start + timedelta(seconds=9, microseconds=999999),
            scenario_start + timedelta(seconds=10),
        ]
        for instant in instants:
            store.upsert(make_window(instant, seconds=5))
        aos = [w.scheduled_aos for w in store.query_where("SAT-A", "GS-EQ")]
        assert aos == sorted(instants)

    def test_query_scoped_to_pair(self, store, scenario_start):
        store.upsert(make_window(scenario_start))
        store.upsert(make_window(scenario_start, gs="GS-17"))
        store.upsert(make_window(scenario_start, sat="SAT-B"))
        assert len(store.query_where("SAT-A", "GS-EQ")) == 1
        assert store.query_where("SAT-C", "GS-EQ") == []

    def test_delete_where(self, store, scenario_start):
        store.upsert(make_window(scenario_start))
        store.upsert(make_window(scenario_start + timedelta(hours=1)))
        store.upsert(make_window(scenario_start, gs="GS-17"))
        assert store.delete_where("SAT-A", "GS-EQ") == 2
        assert store.count() == 1

    def test_query_ending_after(self, store, scenario_start):
        first = make_window(scenario_start)
        second = make_window(scenario_start + timedelta(hours=1))
        store.upsert(second)
        store.upsert(first)

        assert store.query_ending_after("SAT-A", "GS-EQ", scenario_start - timedelta(days=1)) == [first, second]
        assert store.query_ending_after("SAT-A", "GS-EQ", scenario_start + timedelta(seconds=100)) == [first, second]
        assert store.query_ending_after("SAT-A", "GS-EQ", first.scheduled_los) == [second]
        assert store.query_ending_after("SAT-A", "GS-EQ", second.scheduled_los) == []

    def test_status_persisted(self, store, scenario_start):
        window = ContactWindow(
            satellite_id="SAT-A", ground_station_id="GS-EQ",
            scheduled_aos=scenario_start, scheduled_los=scenario_start + timedelta(seconds=60),
            elements_used_id="E1", max_elevation_deg=20.0, status=ContactStatus.COMPLETED,
        )
        store.upsert(window)
        assert store.query_where("SAT-A", "GS-EQ")[0].status is ContactStatus.COMPLETED

    def test_transaction_rolls_back(self, store, scenario_start):
        store.upsert(make_window(scenario_start))
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.delete_where("SAT-A", "GS-EQ")
                raise RuntimeError("abort")
        assert store.count() == 1
