# carwash/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session

from .config import DATABASE_URL, DB_ECHO, RESERVATION_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def build_engine(url: str = DATABASE_URL, echo: bool = DB_ECHO):
    connect_args = {}
    if url.startswith("sqlite"):
        # check_same_thread: required for SQLite + FastAPI
        # timeout: default wait for the write lock
        connect_args = {
            "check_same_thread": False,
            "timeout": RESERVATION_TIMEOUT_SECONDS,
        }
    return create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)


# Engine = connection to the database
engine = build_engine()


def create_db_and_tables(bind=None):
    # models must be imported so their tables are registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
