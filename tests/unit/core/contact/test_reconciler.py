"""
窗口对账器测试
"""

import sqlite3
import threading
from datetime import timedelta

import pytest

from core.contact.errors import PairTimeoutError, PersistenceError
from core.contact.reconciler import WindowReconciler
from core.models.contact_window import ContactWindow


def make_window(start, aos_offset, los_offset, sat="SAT-A", gs="GS-EQ", elements="E1", elevation=45.0):
    return ContactWindow(
        satellite_id=sat,
        ground_station_id=gs,
        scheduled_aos=start + timedelta(seconds=aos_offset),
        scheduled_los=start + timedelta(seconds=los_offset),
        elements_used_id=elements,
        max_elevation_deg=elevation,
    )


class FailingUpsertStore:
    """第N次upsert时抛出sqlite3错误的存储包装"""

    def __init__(self, store, fail_on_call=1):
        self.store = store
        self.fail_on_call = fail_on_call
        self.upserts = 0

    def transaction(self):
        return self.store.transaction()

    def delete_where(self, satellite_id, ground_station_id):
        return self.store.delete_where(satellite_id, ground_station_id)

    def upsert(self, window):
        self.upserts += 1
        if self.upserts == self.fail_on_call:
            raise sqlite3.OperationalError("disk I/O error")
        return self.store.upsert(window)


@pytest.fixture
def store(storage_manager):
    return storage_manager.windows


@pytest.fixture
def reconciler(store):
    return WindowReconciler(store, lock_timeout=1.0)


class TestReconcile:
    """测试替换语义"""

    def test_writes_windows_sorted(self, reconciler, store, scenario_start):
        later = make_window(scenario_start, 3690, 4120)
        earlier = make_window(scenario_start, 90, 520)

        assert reconciler.reconcile("SAT-A", "GS-EQ", [later, earlier]) == 2
        assert store.query_where("SAT-A", "GS-EQ") == [earlier, later]

    def test_replaces_previous_set(self, reconciler, store, scenario_start):
        reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 90, 520, elements="E1")])
        replacement = make_window(scenario_start, 100, 530, elements="E2")

        reconciler.reconcile("SAT-A", "GS-EQ", [replacement])

        assert store.query_where("SAT-A", "GS-EQ") == [replacement]

    def test_empty_set_clears_pair(self, reconciler, store, scenario_start):
        """已计算但无过境：旧窗口被删除"""
        reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 90, 520)])

        assert reconciler.reconcile("SAT-A", "GS-EQ", []) == 0
        assert store.query_where("SAT-A", "GS-EQ") == []

    def test_other_pairs_untouched(self, reconciler, store, scenario_start):
        other = make_window(scenario_start, 90, 520, gs="GS-17")
        reconciler.reconcile("SAT-A", "GS-17", [other])

        reconciler.reconcile("SAT-A", "GS-EQ", [])

        assert store.query_where("SAT-A", "GS-17") == [other]

    def test_same_aos_collapses_to_one_row(self, reconciler, store, scenario_start):
        first = make_window(scenario_start, 90, 520, elevation=40.0)
        second = make_window(scenario_start, 90, 520, elevation=41.0)

        reconciler.reconcile("SAT-A", "GS-EQ", [first, second])

        stored = store.query_where("SAT-A", "GS-EQ")
        assert len(stored) == 1
        assert stored[0].max_elevation_deg == 41.0

    def test_repeated_reconcile_is_idempotent(self, reconciler, store, scenario_start):
        windows = [make_window(scenario_start, 90, 520), make_window(scenario_start, 3690, 4120)]
        reconciler.reconcile("SAT-A", "GS-EQ", windows)
        reconciler.reconcile("SAT-A", "GS-EQ", windows)

        assert store.count() == 2
        assert store.query_where("SAT-A", "GS-EQ") == windows


class TestReconcileErrors:
    """测试错误处理"""

    def test_foreign_window_rejected_before_write(self, reconciler, store, scenario_start):
        existing = make_window(scenario_start, 90, 520)
        reconciler.reconcile("SAT-A", "GS-EQ", [existing])

        with pytest.raises(ValueError):
            reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 600, 900, sat="SAT-B")])

        assert store.query_where("SAT-A", "GS-EQ") == [existing]

    def test_storage_failure_rolls_back(self, store, scenario_start):
        old = make_window(scenario_start, 90, 520)
        WindowReconciler(store).reconcile("SAT-A", "GS-EQ", [old])

        failing = FailingUpsertStore(store, fail_on_call=2)
        reconciler = WindowReconciler(failing)
        new_windows = [make_window(scenario_start, 100, 530), make_window(scenario_start, 3700, 4130)]

        with pytest.raises(PersistenceError, match="disk I/O error"):
            reconciler.reconcile("SAT-A", "GS-EQ", new_windows)

        assert store.query_where("SAT-A", "GS-EQ") == [old]
        assert not store.storage.in_transaction()

    def test_lock_released_after_failure(self, store, scenario_start):
        failing = FailingUpsertStore(store, fail_on_call=1)
        reconciler = WindowReconciler(failing, lock_timeout=0.1)
        with pytest.raises(PersistenceError):
            reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 90, 520)])

        assert reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 90, 520)]) == 1

    def test_lock_timeout(self, store, scenario_start):
        reconciler = WindowReconciler(store, lock_timeout=0.1)
        lock = reconciler._pair_lock(("SAT-A", "GS-EQ"))
        lock.acquire()
        try:
            with pytest.raises(PairTimeoutError) as exc_info:
                reconciler.reconcile("SAT-A", "GS-EQ", [make_window(scenario_start, 90, 520)])
        finally:
            lock.release()

        assert exc_info.value.satellite_id == "SAT-A"
        assert store.count() == 0

    def test_different_pairs_do_not_block(self, store, scenario_start):
        reconciler = WindowReconciler(store, lock_timeout=0.1)
        lock = reconciler._pair_lock(("SAT-A", "GS-EQ"))
        lock.acquire()
        try:
            assert reconciler.reconcile("SAT-A", "GS-17",
                                        [make_window(scenario_start, 90, 520, gs="GS-17")]) == 1
        finally:
            lock.release()


class TestConcurrentReconcile:
    """同一对的并发对账最终只保留某一次的完整结果"""

    def test_concurrent_same_pair(self, reconciler, store, scenario_start):
        sets = [
            [make_window(scenario_start, 90 + i, 520 + i, elements=f"E{i}"),
             make_window(scenario_start, 3690 + i, 4120 + i, elements=f"E{i}")]
            for i in range(8)
        ]
        threads = [
            threading.Thread(target=reconciler.reconcile, args=("SAT-A", "GS-EQ", windows))
            for windows in sets
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stored = store.query_where("SAT-A", "GS-EQ")
        assert stored in sets
