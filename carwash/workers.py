# carwash/workers.py

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlmodel import Session

from .availability import load_day_windows
from .core import window_end
from .domain import AppointmentWindow, ResourcePartition, WorkerRef, count_overlapping

logger = logging.getLogger(__name__)


def pick_worker(
    start: datetime,
    duration_min: int,
    workers: Sequence[WorkerRef],
    max_concurrent: int,
    appointments: Sequence[AppointmentWindow],
    exclude_appointment_id: Optional[int] = None,
) -> Optional[WorkerRef]:
    """Least-loaded worker with room for ``[start, start + duration_min)``.

    Ties go to the worker listed first. Returns None when every worker is
    full, which callers report as no availability.
    """
    end = window_end(start, duration_min)
    best = None
    best_load = None

    for worker in workers:
        load = count_overlapping(
            start,
            end,
            appointments,
            ResourcePartition.for_worker(worker.id),
            exclude_id=exclude_appointment_id,
        )
        if load >= max_concurrent:
            continue
        # strict "<" keeps the first listed worker on ties
        if best is None or load < best_load:
            best, best_load = worker, load

    return best


def resolve_worker(
    session: Session,
    start: datetime,
    duration_min: int,
    workers: Sequence[WorkerRef],
    max_concurrent: int,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[WorkerRef]:
    windows = load_day_windows(session, start.date())
    worker = pick_worker(start, duration_min, workers, max_concurrent, windows, exclude_appointment_id)
    if worker is None:
        logger.info(f"No worker free at {start} for {duration_min} min")
    else:
        logger.debug(f"Worker {worker.id} picked for {start}")
    return worker
