# carwash/routers/appointments_routes.py

from datetime import datetime, date
from typing import Optional, List

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse
from sqlmodel import Session

from carwash.availability import get_day_availability
from carwash.booking import (
    BookingOutcome,
    book_appointment,
    get_payment,
    list_appointments,
    reschedule_appointment,
    update_status,
)
from carwash.core import to_iso
from carwash.db import get_session
from carwash.deps import get_or_404
from carwash.errors import ReasonCode
from carwash.models import Appointment, Client, Service
from carwash.notifications import notify_new_appointment, notify_status_change
from carwash.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    AvailabilityResponse,
    BookingFailure,
)

router = APIRouter(
    tags=["appointments"],
)

BOOKING_ERROR_RESPONSES = {
    400: {"model": BookingFailure, "description": "No availability for the requested slot"},
    409: {"model": BookingFailure, "description": "System busy, retry"},
}


def appointment_public(session: Session, appt: Appointment) -> dict:
    payment = get_payment(session, appt.id)
    return {
        "id": appt.id,
        "date": to_iso(appt.date),
        "duration_min": appt.duration_min,
        "service_id": appt.service_id,
        "client_id": appt.client_id,
        "worker_id": appt.worker_id,
        "status": appt.status,
        "notes": appt.notes,
        "payment": None if payment is None else {
            "id": payment.id,
            "status": payment.status,
            "amount": float(payment.amount),
            "paid_at": to_iso(payment.paid_at) if payment.paid_at else None,
        },
    }


def booking_failure_response(outcome: BookingOutcome) -> JSONResponse:
    # "system busy" must not read as "slot taken" to the client
    busy = outcome.reason == ReasonCode.system_busy
    body = BookingFailure(
        message=outcome.message,
        reason=outcome.reason,
        conflicting_count=outcome.conflicting_count,
    )
    return JSONResponse(
        status_code=409 if busy else 400,
        content=body.model_dump(by_alias=True, mode="json"),
        headers={"Retry-After": "2"} if busy else None,
    )


@router.get("/appointments/availability", response_model=AvailabilityResponse)
def appointment_availability(
    service_id: int = Query(alias="serviceId"),
    on_date: date = Query(alias="date"),
    worker_id: Optional[int] = Query(default=None, alias="workerId"),
    session: Session = Depends(get_session),
):
    result = get_day_availability(session, on_date, service_id, worker_id=worker_id)

    working_hours = None
    if result.working_hours is not None:
        work_start, work_end = result.working_hours
        working_hours = {"start": to_iso(work_start), "end": to_iso(work_end)}

    return {
        "date": on_date,
        "service_id": service_id,
        "service_duration": result.service_duration,
        "working_hours": working_hours,
        "available_slots": [to_iso(slot) for slot in result.slots],
    }


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_all_appointments(
    on_date: Optional[date] = Query(default=None, alias="date"),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session: Session = Depends(get_session),
):
    appts = list_appointments(session, on_date=on_date, start=start, end=end)
    return [appointment_public(session, a) for a in appts]


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
):
    appt = get_or_404(session, Appointment, appt_id, "Appointment")
    return appointment_public(session, appt)


@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=201,
    responses=BOOKING_ERROR_RESPONSES,
)
def create_appointment(
    appt: AppointmentCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    outcome = book_appointment(session, appt)
    if not outcome.ok:
        return booking_failure_response(outcome)

    db_appt = session.get(Appointment, outcome.appointment_id)
    client = session.get(Client, db_appt.client_id)
    service = session.get(Service, db_appt.service_id)

    # fire-and-forget, after the commit
    background_tasks.add_task(
        notify_new_appointment, db_appt.id, client.name, service.name, db_appt.date
    )
    return appointment_public(session, db_appt)


@router.patch(
    "/appointments/{appt_id}",
    response_model=AppointmentPublic,
    responses=BOOKING_ERROR_RESPONSES,
)
def update_appointment(
    appt_id: int,
    changes: AppointmentUpdate,
    session: Session = Depends(get_session),
):
    outcome = reschedule_appointment(session, appt_id, changes)
    if not outcome.ok:
        return booking_failure_response(outcome)

    db_appt = session.get(Appointment, appt_id)
    return appointment_public(session, db_appt)


@router.patch("/appointments/{appt_id}/status", response_model=AppointmentPublic)
def update_appointment_status(
    appt_id: int,
    payload: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    target = update_status(session, appt_id, payload.status)
    client = session.get(Client, target.client_id)

    background_tasks.add_task(notify_status_change, target.id, client.name, target.status.value)
    return appointment_public(session, target)
