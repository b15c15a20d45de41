# carwash/domain.py

from datetime import date, datetime
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .core import overlaps, window_end
from .models import Appointment, AppointmentStatus


class WorkerRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class ScheduleConfig(BaseModel):
    """Immutable snapshot of the schedule settings, read once per request."""

    model_config = ConfigDict(frozen=True)

    work_start_hour: int
    work_end_hour: int
    work_days: FrozenSet[int]  # 0=Sun ... 6=Sat
    closed_dates: FrozenSet[str]  # exact "YYYY-MM-DD" matches
    max_concurrent_bookings: int = 1
    multi_worker_enabled: bool = False
    workers: Tuple[WorkerRef, ...] = ()

    def is_open_on(self, day: date) -> bool:
        # 0=Sun ... 6=Sat
        if day.isoweekday() % 7 not in self.work_days:
            return False
        return day.isoformat() not in self.closed_dates

    @property
    def capacity(self) -> int:
        # single-resource mode is strictly single occupancy
        if not self.multi_worker_enabled:
            return 1
        return self.max_concurrent_bookings

    def partition_worker(self, worker_id: Optional[int]) -> Optional[int]:
        # without multi-worker mode every booking competes for the one resource
        return worker_id if self.multi_worker_enabled else None

    @property
    def assigns_workers(self) -> bool:
        return self.multi_worker_enabled and len(self.workers) > 0


class AppointmentWindow(BaseModel):
    """The part of an appointment the overlap math needs."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    start: datetime
    duration_min: int
    worker_id: Optional[int] = None
    status: AppointmentStatus = AppointmentStatus.scheduled

    @property
    def end(self) -> datetime:
        return window_end(self.start, self.duration_min)

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.cancelled

    @classmethod
    def from_row(cls, row: Appointment) -> "AppointmentWindow":
        return cls(
            id=row.id,
            start=row.date,
            duration_min=row.duration_min,
            worker_id=row.worker_id,
            status=row.status,
        )


class ResourcePartition(BaseModel):
    """Either the shared pool or one worker's calendar.

    The pool counts every active appointment of the day, with or without a
    worker assigned.
    """

    model_config = ConfigDict(frozen=True)

    worker_id: Optional[int] = None

    @classmethod
    def for_worker(cls, worker_id: Optional[int]) -> "ResourcePartition":
        return POOL if worker_id is None else cls(worker_id=worker_id)

    @property
    def is_pool(self) -> bool:
        return self.worker_id is None

    def contains(self, window: AppointmentWindow) -> bool:
        return self.is_pool or window.worker_id == self.worker_id

    def __str__(self):
        return "pool" if self.is_pool else f"worker:{self.worker_id}"


POOL = ResourcePartition()


def count_overlapping(
    start: datetime,
    end: datetime,
    windows,
    partition: ResourcePartition = POOL,
    exclude_id: Optional[int] = None,
) -> int:
    count = 0
    for w in windows:
        if not w.is_active:
            continue
        if exclude_id is not None and w.id == exclude_id:
            continue
        if not partition.contains(w):
            continue
        if overlaps(start, end, w.start, w.end):
            count += 1
    return count
