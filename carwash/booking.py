# carwash/booking.py

import logging
from datetime import datetime, date
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from .core import day_window, is_aligned, local_now, to_local, utcnow, window_end, working_window
from .domain import ScheduleConfig
from .errors import ConcurrencyConflict, NotFound, ReasonCode, SYSTEM_BUSY_MESSAGE, ValidationError
from .models import (
    Appointment,
    AppointmentStatus,
    Client,
    Payment,
    PaymentStatus,
    Service,
    TERMINAL_STATUSES,
    Worker,
)
from .reservations import ReservationResult, reservation_transaction, reserve
from .schemas import AppointmentCreate, AppointmentUpdate
from .settings_store import get_schedule_config
from .workers import resolve_worker

logger = logging.getLogger(__name__)

DAY_CLOSED_MESSAGE = "We are not open on that day."
NO_WORKER_MESSAGE = "No worker is available at this time."


class BookingOutcome(BaseModel):
    ok: bool
    reason: Optional[ReasonCode] = None
    message: Optional[str] = None
    conflicting_count: int = 0
    appointment_id: Optional[int] = None
    worker_id: Optional[int] = None
    auto_assigned: bool = False

    @property
    def retryable(self) -> bool:
        return self.reason == ReasonCode.system_busy

    @classmethod
    def failure(cls, reason: ReasonCode, message: str, **kwargs) -> "BookingOutcome":
        return cls(ok=False, reason=reason, message=message, **kwargs)

    @classmethod
    def from_reservation(cls, result: ReservationResult, auto_assigned: bool = False) -> "BookingOutcome":
        return cls(
            ok=False,
            reason=result.reason,
            message=result.message,
            conflicting_count=result.conflicting_count,
            auto_assigned=auto_assigned,
        )


def _validate_start(start: datetime, now: datetime) -> None:
    if start.second or start.microsecond or not is_aligned(start):
        raise ValidationError("Start time must be on a 30-minute boundary")
    if start < now:
        raise ValidationError("Cannot book an appointment in the past")


def _validate_working_hours(start: datetime, duration_min: int, config: ScheduleConfig) -> None:
    work_start, work_end = working_window(start.date(), config)
    if start < work_start or window_end(start, duration_min) > work_end:
        raise ValidationError("Appointment must be within working hours")


def _get_active_worker(session: Session, worker_id: int) -> Worker:
    worker = session.get(Worker, worker_id)
    if worker is None or not worker.active:
        raise NotFound("Worker not found")
    return worker


def _claim_slot(
    session: Session,
    config: ScheduleConfig,
    start: datetime,
    duration_min: int,
    worker_id: Optional[int],
    exclude_appointment_id: Optional[int] = None,
) -> BookingOutcome:
    """Pick a worker if needed and run the reservation check.

    On failure the transaction is rolled back so nothing partial is left.
    """
    if not config.is_open_on(start.date()):
        session.rollback()
        return BookingOutcome.failure(ReasonCode.day_closed, DAY_CLOSED_MESSAGE)

    _validate_working_hours(start, duration_min, config)

    auto_assigned = False
    if worker_id is None and config.assigns_workers:
        picked = resolve_worker(
            session, start, duration_min, config.workers, config.capacity, exclude_appointment_id
        )
        if picked is None:
            session.rollback()
            return BookingOutcome.failure(ReasonCode.no_worker_available, NO_WORKER_MESSAGE)
        worker_id = picked.id
        auto_assigned = True

    result = reserve(
        session,
        start,
        duration_min,
        config.partition_worker(worker_id),
        config.capacity,
        exclude_appointment_id=exclude_appointment_id,
    )
    if not result.ok:
        session.rollback()
        return BookingOutcome.from_reservation(result, auto_assigned)

    return BookingOutcome(ok=True, worker_id=worker_id, auto_assigned=auto_assigned)


def _book_once(session: Session, request: AppointmentCreate, start: datetime) -> BookingOutcome:
    # 1) Referenced rows
    service = session.get(Service, request.service_id)
    if service is None:
        raise NotFound("Service not found")
    if session.get(Client, request.client_id) is None:
        raise NotFound("Client not found")
    if request.worker_id is not None:
        _get_active_worker(session, request.worker_id)

    # 2) Capacity check for the resource
    config = get_schedule_config(session)
    outcome = _claim_slot(session, config, start, service.duration_min, request.worker_id)
    if not outcome.ok:
        return outcome

    # 3) Appointment and its pending payment, committed with the check
    appointment = Appointment(
        date=start,
        duration_min=service.duration_min,
        service_id=service.id,
        client_id=request.client_id,
        worker_id=outcome.worker_id,
        status=AppointmentStatus.scheduled,
        notes=request.notes,
    )
    session.add(appointment)
    session.flush()  # fills appointment.id

    session.add(
        Payment(
            appointment_id=appointment.id,
            status=PaymentStatus.pending,
            amount=service.price,
        )
    )
    outcome.appointment_id = appointment.id
    return outcome


def book_appointment(
    session: Session,
    request: AppointmentCreate,
    now: Optional[datetime] = None,
) -> BookingOutcome:
    """Reserve a slot and create the appointment with a pending payment.

    Expected "no availability" outcomes come back as a failed
    ``BookingOutcome``; invalid input raises ``ValidationError`` and unknown
    references raise ``NotFound``. When the worker was auto-assigned and the
    transaction lost a race, resolution is tried once more.
    """
    start = to_local(request.date)
    _validate_start(start, now or local_now())

    outcome = None
    for attempt in (1, 2):
        outcome = None
        try:
            with reservation_transaction(session):
                outcome = _book_once(session, request, start)
        except ConcurrencyConflict:
            auto_assigned = outcome.auto_assigned if outcome is not None else False
            outcome = BookingOutcome.failure(
                ReasonCode.system_busy, SYSTEM_BUSY_MESSAGE, auto_assigned=auto_assigned
            )

        if outcome.ok:
            logger.info(
                f"Appointment {outcome.appointment_id} booked at {start} "
                f"(worker={outcome.worker_id}, auto={outcome.auto_assigned})"
            )
            return outcome
        if not (outcome.retryable and outcome.auto_assigned) or attempt == 2:
            break
        logger.info(f"Retrying worker resolution for {start} after a concurrent booking")

    logger.warning(f"Booking at {start} rejected: {outcome.reason.value}")
    return outcome


def reschedule_appointment(
    session: Session,
    appointment_id: int,
    changes: AppointmentUpdate,
    now: Optional[datetime] = None,
) -> BookingOutcome:
    """Move an appointment (date, service or worker) after re-checking capacity.

    The appointment's own row is excluded from the overlap count.
    """
    fields = changes.model_dump(exclude_unset=True)
    new_start = to_local(changes.date) if changes.date is not None else None
    if new_start is not None:
        _validate_start(new_start, now or local_now())

    outcome = None
    try:
        with reservation_transaction(session):
            appointment = session.get(Appointment, appointment_id)
            if appointment is None:
                raise NotFound("Appointment not found")
            if appointment.status in TERMINAL_STATUSES:
                raise ValidationError(f"Cannot change a {appointment.status.value} appointment")

            start = new_start or appointment.date
            service_id = fields.get("service_id") or appointment.service_id
            service = session.get(Service, service_id)
            if service is None:
                raise NotFound("Service not found")
            duration = service.duration_min

            worker_id = fields["worker_id"] if "worker_id" in fields else appointment.worker_id
            if worker_id is not None:
                _get_active_worker(session, worker_id)

            moved = (
                start != appointment.date
                or duration != appointment.duration_min
                or worker_id != appointment.worker_id
            )
            if moved:
                config = get_schedule_config(session)
                # an explicit null worker asks for a fresh assignment
                outcome = _claim_slot(
                    session, config, start, duration, worker_id, exclude_appointment_id=appointment.id
                )
                if not outcome.ok:
                    return outcome
                worker_id = outcome.worker_id

            appointment.date = start
            appointment.duration_min = duration
            appointment.worker_id = worker_id
            if service.id != appointment.service_id:
                appointment.service_id = service.id
                _reprice_pending_payment(session, appointment.id, service)
            if "notes" in fields:
                appointment.notes = changes.notes
            appointment.updated_at = utcnow()
            session.add(appointment)

            outcome = BookingOutcome(ok=True, appointment_id=appointment.id, worker_id=worker_id)
    except ConcurrencyConflict:
        return BookingOutcome.failure(ReasonCode.system_busy, SYSTEM_BUSY_MESSAGE)

    logger.info(f"Appointment {appointment_id} rescheduled to {start}")
    return outcome


def _reprice_pending_payment(session: Session, appointment_id: int, service: Service) -> None:
    payment = get_payment(session, appointment_id)
    if payment is not None and payment.status == PaymentStatus.pending:
        payment.amount = service.price
        session.add(payment)


def update_status(session: Session, appointment_id: int, status: AppointmentStatus) -> Appointment:
    appointment = session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")

    if appointment.status == status:
        return appointment
    # leaving CANCELLED would need a new reservation; book again instead
    if appointment.status in TERMINAL_STATUSES:
        raise ValidationError(f"Cannot change a {appointment.status.value} appointment")

    appointment.status = status
    appointment.updated_at = utcnow()
    session.add(appointment)

    if status == AppointmentStatus.delivered:
        payment = get_payment(session, appointment.id)
        if payment is not None and payment.status != PaymentStatus.paid:
            payment.status = PaymentStatus.paid
            payment.paid_at = utcnow()
            session.add(payment)

    session.commit()
    session.refresh(appointment)
    logger.info(f"Appointment {appointment_id} is now {status.value}")
    return appointment


def get_payment(session: Session, appointment_id: int) -> Optional[Payment]:
    return session.exec(
        select(Payment).where(Payment.appointment_id == appointment_id)
    ).first()


def list_appointments(
    session: Session,
    on_date: Optional[date] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Appointment]:
    stmt = select(Appointment)

    if on_date is not None:
        day_start_dt, day_end_dt = day_window(on_date)
        stmt = stmt.where(Appointment.date >= day_start_dt).where(Appointment.date < day_end_dt)
    if start is not None:
        stmt = stmt.where(Appointment.date >= to_local(start))
    if end is not None:
        stmt = stmt.where(Appointment.date <= to_local(end))

    stmt = stmt.order_by(Appointment.date, Appointment.id)
    return session.exec(stmt).all()
