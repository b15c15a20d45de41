# carwash/routers/workers_routes.py

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from carwash.db import get_session
from carwash.deps import get_or_404
from carwash.models import Worker
from carwash.schemas import WorkerCreate, WorkerPublic
from carwash.settings_store import list_active_workers

router = APIRouter(
    prefix="/workers",
    tags=["workers"],
)


@router.post("", status_code=201, response_model=WorkerPublic)
def create_worker(
    worker: WorkerCreate,
    session: Session = Depends(get_session),
):
    db_worker = Worker(name=worker.name, position=worker.position, active=True)
    session.add(db_worker)
    session.commit()
    session.refresh(db_worker)  # fills db_worker.id
    return db_worker


@router.get("", response_model=List[WorkerPublic])
def list_workers(
    session: Session = Depends(get_session),
):
    # same order the worker resolver uses for tie-breaks
    return list_active_workers(session)


@router.patch("/{worker_id}/deactivate", response_model=WorkerPublic)
def deactivate_worker(
    worker_id: int,
    session: Session = Depends(get_session),
):
    db_worker = get_or_404(session, Worker, worker_id, "Worker")
    db_worker.active = False
    session.add(db_worker)
    session.commit()
    session.refresh(db_worker)
    return db_worker
