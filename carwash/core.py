# carwash/core.py
"""Calendar math shared by availability, reservations and worker assignment.

Everything here is pure: datetimes in, datetimes out. Datetimes are naive
wall-clock times in the business timezone unless a function says otherwise.
"""

from datetime import datetime, date, time, timedelta, timezone
from typing import Iterator, Tuple

import pytz

from .config import BUSINESS_TIMEZONE, SLOT_STEP_MINUTES

SLOT_STEP = timedelta(minutes=SLOT_STEP_MINUTES)


def business_tz():
    return pytz.timezone(BUSINESS_TIMEZONE)


def local_now() -> datetime:
    return datetime.now(business_tz()).replace(tzinfo=None)


def utcnow() -> datetime:
    # naive UTC, for audit columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    """Aware datetimes are converted to the business zone; naive ones are kept."""
    if value.tzinfo is None:
        return value
    return value.astimezone(business_tz()).replace(tzinfo=None)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = business_tz().localize(value)
    return value.isoformat()


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open intervals: [a_start, a_end) and [b_start, b_end)
    return a_start < b_end and b_start < a_end


def day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def working_window(day: date, config) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time(hour=config.work_start_hour))
    end = datetime.combine(day, time(hour=config.work_end_hour))
    return start, end


class SlotGrid:
    """Candidate start times from ``start`` (inclusive) to ``end`` (exclusive).

    Iterating twice yields the same sequence. A window with ``start >= end``
    yields nothing.
    """

    def __init__(self, start: datetime, end: datetime, step: timedelta = SLOT_STEP):
        if step <= timedelta(0):
            raise ValueError("slot step must be positive")
        self.start = start
        self.end = end
        self.step = step

    def __iter__(self) -> Iterator[datetime]:
        current = self.start
        while current < self.end:
            yield current
            current += self.step

    def __len__(self) -> int:
        if self.start >= self.end:
            return 0
        span = self.end - self.start
        return -(-span // self.step)  # ceil

    def __repr__(self):
        return f"SlotGrid({self.start.isoformat()}, {self.end.isoformat()}, step={self.step})"


def slot_grid(working_start: datetime, working_end: datetime, step: timedelta = SLOT_STEP) -> SlotGrid:
    return SlotGrid(working_start, working_end, step)


def round_up_to_step(moment: datetime, step: timedelta = SLOT_STEP) -> datetime:
    """Next grid boundary strictly after ``moment``.

    With a 30 minute step: 13:05 -> 13:30, 13:36 -> 14:00, 13:00 -> 13:30.
    """
    midnight = datetime.combine(moment.date(), time.min)
    elapsed = moment - midnight
    completed_steps = elapsed // step
    return midnight + (completed_steps + 1) * step


def is_aligned(moment: datetime, step: timedelta = SLOT_STEP) -> bool:
    midnight = datetime.combine(moment.date(), time.min)
    return (moment - midnight) % step == timedelta(0)


def window_end(start: datetime, duration_min: int) -> datetime:
    return start + timedelta(minutes=duration_min)

