"""Shared fixtures: a fresh SQLite database per test and a few catalog rows."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from carwash.db import build_engine, create_db_and_tables, get_session
from carwash.main import app
from carwash.models import Client, Service, Worker
from carwash.settings_store import ensure_schedule_settings, update_schedule_settings

MONDAY = date(2031, 3, 3)
SUNDAY = date(2031, 3, 9)
BEFORE_OPENING = datetime(2031, 3, 3, 7, 0)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


def configure(session: Session, **changes):
    update_schedule_settings(session, changes)


@pytest.fixture
def engine(tmp_path):
    # file-backed so that separate connections (threads) share the data
    engine = build_engine(f"sqlite:///{tmp_path / 'carwash.db'}")
    create_db_and_tables(engine)
    with Session(engine) as session:
        ensure_schedule_settings(session)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


def _add(session: Session, obj):
    session.add(obj)
    session.commit()
    return obj


@pytest.fixture
def wash(session) -> Service:
    return _add(session, Service(name="Simple wash", duration_min=30, price=Decimal("40.00")))


@pytest.fixture
def full_wash(session) -> Service:
    return _add(session, Service(name="Full wash", duration_min=60, price=Decimal("90.00")))


@pytest.fixture
def customer(session) -> Client:
    return _add(session, Client(name="Ana Souza", phone="+5511999990000"))


@pytest.fixture
def two_workers(session):
    first = _add(session, Worker(name="Bruno", position=0))
    second = _add(session, Worker(name="Carla", position=1))
    return [first, second]


@pytest.fixture
def api(engine):
    def override_get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
