# carwash/settings_store.py

import logging

from sqlmodel import Session, select

from .data import DEFAULT_SCHEDULE, SETTINGS_ROW_ID
from .domain import ScheduleConfig, WorkerRef
from .errors import ValidationError
from .models import ScheduleSettings, Worker

logger = logging.getLogger(__name__)


def get_settings_row(session: Session) -> ScheduleSettings:
    """Return the settings row, adding one with defaults if it is missing.

    A newly added row is only flushed; it is persisted by whichever
    transaction the caller commits.
    """
    row = session.get(ScheduleSettings, SETTINGS_ROW_ID)
    if row is None:
        row = ScheduleSettings(id=SETTINGS_ROW_ID, **DEFAULT_SCHEDULE)
        session.add(row)
        session.flush()
        logger.info("Schedule settings initialized with defaults")
    return row


def ensure_schedule_settings(session: Session) -> None:
    get_settings_row(session)
    session.commit()


def list_active_workers(session: Session):
    return session.exec(
        select(Worker)
        .where(Worker.active == True)  # noqa: E712
        .order_by(Worker.position, Worker.id)
    ).all()


def get_schedule_config(session: Session) -> ScheduleConfig:
    # Re-read on every call: closures and worker lists change between requests
    row = get_settings_row(session)
    workers = list_active_workers(session)
    return ScheduleConfig(
        work_start_hour=row.work_start_hour,
        work_end_hour=row.work_end_hour,
        work_days=frozenset(row.work_days or []),
        closed_dates=frozenset(row.closed_dates or []),
        max_concurrent_bookings=row.max_concurrent_bookings,
        multi_worker_enabled=row.multi_worker_enabled,
        workers=tuple(WorkerRef(id=w.id, name=w.name) for w in workers),
    )


def update_schedule_settings(session: Session, changes: dict) -> ScheduleSettings:
    nulls = sorted(field for field, value in changes.items() if value is None)
    if nulls:
        raise ValidationError(f"Schedule settings cannot be null: {', '.join(nulls)}")

    row = get_settings_row(session)
    start = changes.get("work_start_hour", row.work_start_hour)
    end = changes.get("work_end_hour", row.work_end_hour)
    if start >= end:
        raise ValidationError("workStartHour must be before workEndHour")

    for field, value in changes.items():
        setattr(row, field, value)

    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info(f"Schedule settings updated: {sorted(changes)}")
    return row
