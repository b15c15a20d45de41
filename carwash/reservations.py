# carwash/reservations.py
"""Slot reservation under concurrent bookings.

The check in ``reserve`` and the caller's insert must share one transaction
opened by ``reservation_transaction``:

    with reservation_transaction(session):
        result = reserve(session, start, 30, worker_id, capacity)
        if result.ok:
            session.add(Appointment(...))

On PostgreSQL (and other engines with real serializable isolation) the
transaction runs at SERIALIZABLE with bounded lock and statement timeouts, so
two overlapping check-then-insert sequences cannot both commit. SQLite has no
concurrent writers, so the transaction starts with ``BEGIN IMMEDIATE`` and
holds the database write lock from the read until commit; the connection's
busy timeout bounds the wait.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlmodel import Session

from .availability import load_day_windows
from .config import RESERVATION_TIMEOUT_SECONDS
from .core import window_end
from .domain import ResourcePartition, count_overlapping
from .errors import SYSTEM_BUSY_MESSAGE, ConcurrencyConflict, ReasonCode

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, query_canceled
RETRYABLE_PGCODES = {"40001", "40P01", "55P03", "57014"}
RETRYABLE_MESSAGES = (
    "could not serialize access",
    "deadlock detected",
    "database is locked",
    "database is busy",
    "lock timeout",
    "canceling statement due to statement timeout",
)


class ReservationResult(BaseModel):
    ok: bool
    reason: Optional[ReasonCode] = None
    message: Optional[str] = None
    conflicting_count: int = 0

    @property
    def retryable(self) -> bool:
        return self.reason == ReasonCode.system_busy


def is_retryable_error(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in RETRYABLE_PGCODES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in RETRYABLE_MESSAGES)


def _begin(session: Session, timeout_seconds: float) -> None:
    bind = session.get_bind()
    dialect = bind.dialect.name

    if dialect == "sqlite":
        conn = session.connection()
        conn.execute(text(f"PRAGMA busy_timeout = {int(timeout_seconds * 1000)}"))
        conn.execute(text("BEGIN IMMEDIATE"))
        return

    conn = session.connection(execution_options={"isolation_level": "SERIALIZABLE"})
    if dialect == "postgresql":
        timeout_ms = int(timeout_seconds * 1000)
        conn.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        conn.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))


@contextmanager
def reservation_transaction(session: Session, timeout_seconds: float = RESERVATION_TIMEOUT_SECONDS):
    """Run the body in one serializable transaction and commit it.

    Retryable data-layer failures (serialization conflicts, lock timeouts)
    are raised as ``ConcurrencyConflict``. Any failure rolls everything back.
    """
    if session.new or session.dirty or session.deleted:
        raise RuntimeError("reservation_transaction started with unflushed changes pending")
    if session.in_transaction():
        # isolation level can only be chosen before a transaction's first query
        session.commit()

    try:
        _begin(session, timeout_seconds)
        yield session
        session.commit()
    except DBAPIError as exc:
        session.rollback()
        if is_retryable_error(exc):
            logger.warning(f"Reservation transaction aborted, retryable: {exc.__class__.__name__}")
            raise ConcurrencyConflict() from exc
        raise
    except Exception:
        session.rollback()
        raise


def reserve(
    session: Session,
    start: datetime,
    duration_min: int,
    worker_id: Optional[int],
    max_concurrent: int,
    exclude_appointment_id: Optional[int] = None,
) -> ReservationResult:
    """Check that ``[start, start + duration_min)`` still has room.

    Performs no writes. Must be called inside ``reservation_transaction``
    right before the caller inserts or updates the appointment row.
    """
    partition = ResourcePartition.for_worker(worker_id)
    end = window_end(start, duration_min)

    try:
        windows = load_day_windows(session, start.date())
    except DBAPIError as exc:
        if not is_retryable_error(exc):
            raise
        logger.warning(f"Reservation check for {partition} at {start} hit a lock timeout")
        return ReservationResult(ok=False, reason=ReasonCode.system_busy, message=SYSTEM_BUSY_MESSAGE)

    count = count_overlapping(start, end, windows, partition, exclude_id=exclude_appointment_id)
    if count >= max_concurrent:
        logger.warning(f"Slot {start} for {partition} is full ({count}/{max_concurrent})")
        return ReservationResult(
            ok=False,
            reason=ReasonCode.slot_unavailable,
            message=f"Slot no longer available. There are already {count} appointment(s) at this time.",
            conflicting_count=count,
        )

    return ReservationResult(ok=True, conflicting_count=count)
