# carwash/availability.py
"""Bookable start times for a service on one day.

Reads here are advisory: they run with the default isolation level and every
booking re-checks its slot through ``reservations.reserve`` before writing.
"""

from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel
from sqlmodel import Session, select

from .core import day_window, local_now, round_up_to_step, slot_grid, window_end, working_window
from .domain import AppointmentWindow, ResourcePartition, ScheduleConfig, count_overlapping
from .errors import NotFound, ValidationError
from .models import Appointment, AppointmentStatus, Service, Worker
from .settings_store import get_schedule_config


class AvailabilityResult(BaseModel):
    working_hours: Optional[Tuple[datetime, datetime]] = None
    slots: List[datetime] = []
    service_duration: int


def compute_availability(
    day: date,
    service_duration: int,
    config: ScheduleConfig,
    appointments: Sequence[AppointmentWindow],
    worker_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AvailabilityResult:
    if service_duration <= 0:
        raise ValidationError("Service duration must be a positive number of minutes")

    # 1) Closed weekday or closed date: nothing to offer
    if not config.is_open_on(day):
        return AvailabilityResult(service_duration=service_duration)

    # 2) Working window and the earliest start allowed right now
    work_start, work_end = working_window(day, config)
    floor = round_up_to_step(now if now is not None else local_now())

    result = AvailabilityResult(
        working_hours=(work_start, work_end),
        service_duration=service_duration,
    )
    if floor >= work_end:
        return result

    partition = ResourcePartition.for_worker(config.partition_worker(worker_id))
    capacity = config.capacity

    # 3) Walk the grid; a slot must fit and have room left in its partition
    for slot_start in slot_grid(work_start, work_end):
        if slot_start < floor:
            continue
        slot_end = window_end(slot_start, service_duration)
        if slot_end > work_end:
            break
        used = count_overlapping(slot_start, slot_end, appointments, partition)
        if used < capacity:
            result.slots.append(slot_start)

    return result


def load_day_windows(session: Session, day: date) -> List[AppointmentWindow]:
    day_start, day_end = day_window(day)
    rows = session.exec(
        select(Appointment)
        .where(Appointment.date >= day_start)
        .where(Appointment.date < day_end)
        .where(Appointment.status != AppointmentStatus.cancelled)
        .order_by(Appointment.date, Appointment.id)
    ).all()
    return [AppointmentWindow.from_row(row) for row in rows]


def get_day_availability(
    session: Session,
    day: date,
    service_id: int,
    worker_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AvailabilityResult:
    service = session.get(Service, service_id)
    if service is None:
        raise NotFound("Service not found")

    if worker_id is not None:
        worker = session.get(Worker, worker_id)
        if worker is None or not worker.active:
            raise NotFound("Worker not found")

    config = get_schedule_config(session)
    windows = load_day_windows(session, day)
    return compute_availability(day, service.duration_min, config, windows, worker_id=worker_id, now=now)
