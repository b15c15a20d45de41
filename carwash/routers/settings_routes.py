# carwash/routers/settings_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from carwash.db import get_session
from carwash.schemas import ScheduleSettingsPublic, ScheduleSettingsUpdate
from carwash.settings_store import get_settings_row, update_schedule_settings

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
)


def settings_public(row) -> dict:
    return {
        "work_start_hour": row.work_start_hour,
        "work_end_hour": row.work_end_hour,
        "work_days": sorted(row.work_days or []),
        "closed_dates": sorted(row.closed_dates or []),
        "max_concurrent_bookings": row.max_concurrent_bookings,
        "multi_worker_enabled": row.multi_worker_enabled,
    }


@router.get("/schedule", response_model=ScheduleSettingsPublic)
def get_schedule(
    session: Session = Depends(get_session),
):
    return settings_public(get_settings_row(session))


@router.put("/schedule", response_model=ScheduleSettingsPublic)
def put_schedule(
    schedule: ScheduleSettingsUpdate,
    session: Session = Depends(get_session),
):
    changes = schedule.model_dump(exclude_unset=True)

    if "work_days" in changes:
        work_days = changes["work_days"]
        if not work_days:
            raise HTTPException(status_code=422, detail="workDays must contain at least one day")
        for day in work_days:
            if not (0 <= day <= 6):
                raise HTTPException(status_code=422, detail="workDays must be integers between 0 and 6")
        if len(work_days) != len(set(work_days)):
            raise HTTPException(status_code=422, detail="workDays cannot contain duplicates")

    if "closed_dates" in changes:
        changes["closed_dates"] = sorted({d.isoformat() for d in changes["closed_dates"] or []})

    # DB upsert: one settings row for the whole shop
    row = update_schedule_settings(session, changes)
    return settings_public(row)
