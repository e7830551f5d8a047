"""
tests/test_dataset.py

Record partitioning and snapshot validation.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from rental_analytics.dataset import AnalyticsSnapshot, partition_records
from rental_analytics.models import PaymentRecord, PaymentStatus
from rental_analytics.service import AnalyticsService
from rental_analytics.periods import resolve_period

from conftest import NOW, days_ago, make_payment, make_user


@pytest.fixture()
def windows():
    return resolve_period("30d", NOW)


class TestPartitionRecords:
    def test_buckets_by_created_at(self, windows) -> None:
        recent = make_payment(10, age_days=1)
        older = make_payment(20, age_days=45)
        ancient = make_payment(30, age_days=90)
        partition = partition_records([recent, older, ancient], windows)
        assert partition.current == (recent,)
        assert partition.previous == (older,)
        assert partition.all_time == (recent, older, ancient)

    def test_boundary_record_belongs_to_window_starting_there(self, windows) -> None:
        on_current_start = make_payment(1, age_days=30)
        on_previous_start = make_payment(2, age_days=60)
        partition = partition_records([on_current_start, on_previous_start], windows)
        assert partition.current == (on_current_start,)
        assert partition.previous == (on_previous_start,)

    def test_windows_are_disjoint_subsets_of_all_time(self, windows) -> None:
        records = [make_payment(i, age_days=i * 1.5) for i in range(80)]
        partition = partition_records(records, windows)
        current = {id(r) for r in partition.current}
        previous = {id(r) for r in partition.previous}
        assert not current & previous
        assert current | previous <= {id(r) for r in partition.all_time}

    def test_future_records_count_as_current(self, windows) -> None:
        future = make_payment(5, age_days=-2)
        assert partition_records([future], windows).current == (future,)

    def test_custom_timestamp_getter(self, windows) -> None:
        payment = make_payment(5, age_days=45, paid_at=NOW - timedelta(days=2))
        partition = partition_records([payment], windows, timestamp=lambda p: p.paid_at)
        assert partition.current == (payment,)

    def test_accepts_generators(self, windows) -> None:
        partition = partition_records((make_user(age_days=d) for d in (1, 2, 50)), windows)
        assert len(partition.current) == 2
        assert len(partition.all_time) == 3


class TestAnalyticsSnapshot:
    def test_freezes_collections(self) -> None:
        snapshot = AnalyticsSnapshot(payments=[make_payment(1)])
        assert isinstance(snapshot.payments, tuple)
        assert isinstance(snapshot.users, tuple)

    def test_rejects_wrong_record_type(self) -> None:
        with pytest.raises(TypeError):
            AnalyticsSnapshot(payments=[{"amount": 1, "status": PaymentStatus.PAID}])

    def test_rejects_records_in_wrong_collection(self) -> None:
        with pytest.raises(TypeError):
            AnalyticsSnapshot(users=[make_payment(1)])

    def test_empty(self) -> None:
        assert AnalyticsSnapshot().is_empty()
        assert not AnalyticsSnapshot(users=[make_user()]).is_empty()

    def test_rejects_raw_status_string(self) -> None:
        payment = PaymentRecord("paid", 100.0, "gcash", "rent", days_ago(1))
        with pytest.raises(TypeError, match="PaymentStatus"):
            AnalyticsSnapshot(payments=[payment])

    def test_rejects_raw_role_string(self) -> None:
        with pytest.raises(TypeError, match="UserRole"):
            AnalyticsSnapshot(users=[make_user(role="owner")])

    def test_enum_statuses_keep_revenue_and_counts_consistent(self) -> None:
        snapshot = AnalyticsSnapshot(payments=[make_payment(100.0, PaymentStatus.PAID)])
        data = AnalyticsService(snapshot, parallel=False).build("30d", now=NOW).as_dict()
        assert data["payments"]["successful"] == 1
        assert data["payments"]["averageAmount"] == 100.0
        assert data["revenue"]["monthly"] == 100.0
