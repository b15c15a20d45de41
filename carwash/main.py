# carwash/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .config import LOG_LEVEL
from .db import create_db_and_tables, engine
from .errors import SYSTEM_BUSY_MESSAGE, ConcurrencyConflict, NotFound, ValidationError
from .routers import (
    appointments_routes,
    clients_routes,
    services_routes,
    settings_routes,
    workers_routes,
)
from .settings_store import ensure_schedule_settings

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    with Session(engine) as session:
        ensure_schedule_settings(session)
    logger.info("Car wash scheduling API started")
    yield


app = FastAPI(title="Car Wash Scheduling", lifespan=lifespan)

app.include_router(appointments_routes.router)
app.include_router(settings_routes.router)
app.include_router(services_routes.router)
app.include_router(clients_routes.router)
app.include_router(workers_routes.router)


@app.exception_handler(ValidationError)
def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConcurrencyConflict)
def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflict):
    return JSONResponse(
        status_code=409,
        content={"detail": SYSTEM_BUSY_MESSAGE, "reason": "system_busy"},
        headers={"Retry-After": "2"},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
