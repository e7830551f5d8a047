from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from operator import attrgetter
from typing import Callable, Generic, Iterable, Sequence, Tuple, Type, TypeVar

from .models import (
    MaintenanceRecord,
    MaintenanceStatus,
    PaymentRecord,
    PaymentStatus,
    PropertyRecord,
    PropertyStatus,
    TenancyRecord,
    TenancyStatus,
    UserRecord,
    UserRole,
)
from .periods import PeriodWindows, ensure_utc

RecordT = TypeVar("RecordT")

_created_at = attrgetter("created_at")

# Field that must hold an enum member, never its raw string value.
_ENUM_FIELDS = {
    UserRecord: ("role", UserRole),
    PropertyRecord: ("status", PropertyStatus),
    TenancyRecord: ("status", TenancyStatus),
    PaymentRecord: ("status", PaymentStatus),
    MaintenanceRecord: ("status", MaintenanceStatus),
}


@dataclass(frozen=True)
class Partition(Generic[RecordT]):
    """
    One entity's rows split by the resolved windows.

    ``all_time`` keeps the unfiltered input for cumulative totals.
    """

    current: Tuple[RecordT, ...]
    previous: Tuple[RecordT, ...]
    all_time: Tuple[RecordT, ...]


def partition_records(
    records: Iterable[RecordT],
    windows: PeriodWindows,
    timestamp: Callable[[RecordT], datetime] = _created_at,
) -> Partition[RecordT]:
    """
    Bucket ``records`` into the current and previous windows.

    A record belongs to the current window when its timestamp is at or after
    the current start, and to the previous window when it falls in
    ``[previous.start, current.start)``. A record sitting exactly on the
    boundary lands only in the window that starts there.
    """

    all_time = tuple(records)
    current_start = windows.current.start
    previous_start = windows.previous.start
    current = []
    previous = []
    for record in all_time:
        moment = ensure_utc(timestamp(record))
        if moment >= current_start:
            current.append(record)
        elif moment >= previous_start:
            previous.append(record)
    return Partition(current=tuple(current), previous=tuple(previous), all_time=all_time)


def _freeze(records: Iterable[object], record_type: Type, name: str) -> Tuple:
    frozen = tuple(records)
    for record in frozen:
        if not isinstance(record, record_type):
            raise TypeError(f"{name} must contain {record_type.__name__} items, got {type(record).__name__}")
        field_name, enum_type = _ENUM_FIELDS[record_type]
        value = getattr(record, field_name)
        if not isinstance(value, enum_type):
            raise TypeError(
                f"{name} {field_name} must be a {enum_type.__name__}, got {type(value).__name__} {value!r}"
            )
    return frozen


@dataclass
class AnalyticsSnapshot:
    """
    The five collections fetched once per analytics call.

    Collections are frozen to tuples so calculators running on worker threads
    all read the same immutable data.
    """

    users: Sequence[UserRecord] = ()
    properties: Sequence[PropertyRecord] = ()
    tenancies: Sequence[TenancyRecord] = ()
    payments: Sequence[PaymentRecord] = ()
    maintenance: Sequence[MaintenanceRecord] = ()

    def __post_init__(self) -> None:
        self.users = _freeze(self.users, UserRecord, "users")
        self.properties = _freeze(self.properties, PropertyRecord, "properties")
        self.tenancies = _freeze(self.tenancies, TenancyRecord, "tenancies")
        self.payments = _freeze(self.payments, PaymentRecord, "payments")
        self.maintenance = _freeze(self.maintenance, MaintenanceRecord, "maintenance")

    def partition_users(self, windows: PeriodWindows) -> Partition[UserRecord]:
        return partition_records(self.users, windows)

    def partition_properties(self, windows: PeriodWindows) -> Partition[PropertyRecord]:
        return partition_records(self.properties, windows)

    def partition_payments(self, windows: PeriodWindows) -> Partition[PaymentRecord]:
        return partition_records(self.payments, windows)

    def is_empty(self) -> bool:
        return not (self.users or self.properties or self.tenancies or self.payments or self.maintenance)
