# carwash/jobs.py
"""Housekeeping jobs. Run daily, e.g. ``python -m carwash.jobs`` from cron."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from .core import day_window, local_now, utcnow
from .models import Appointment, AppointmentStatus, Client
from .notifications import notify_cancellation

logger = logging.getLogger(__name__)

UNFINISHED_STATUSES = (AppointmentStatus.scheduled, AppointmentStatus.in_progress)


def cancel_stale_appointments(session: Session, now: Optional[datetime] = None) -> int:
    """Cancel yesterday's appointments that were never delivered.

    Returns how many appointments were cancelled.
    """
    yesterday = (now or local_now()).date() - timedelta(days=1)
    day_start, day_end = day_window(yesterday)

    stale = session.exec(
        select(Appointment)
        .where(Appointment.date >= day_start)
        .where(Appointment.date < day_end)
        .where(Appointment.status.in_(UNFINISHED_STATUSES))
    ).all()

    for appointment in stale:
        appointment.status = AppointmentStatus.cancelled
        appointment.updated_at = utcnow()
        session.add(appointment)

    session.commit()
    logger.info(f"[Job] {len(stale)} unfinished appointment(s) from {yesterday} cancelled")

    for appointment in stale:
        client = session.get(Client, appointment.client_id)
        notify_cancellation(appointment.id, client.name, appointment.date)
    return len(stale)


if __name__ == "__main__":
    from .config import LOG_LEVEL
    from .db import engine

    logging.basicConfig(level=LOG_LEVEL)
    with Session(engine) as session:
        cancel_stale_appointments(session)
