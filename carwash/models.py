# carwash/models.py

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, Index
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from .core import utcnow


class AppointmentStatus(str, Enum):
    scheduled = "SCHEDULED"
    in_progress = "IN_PROGRESS"
    delivered = "DELIVERED"
    cancelled = "CANCELLED"


ACTIVE_STATUSES = (
    AppointmentStatus.scheduled,
    AppointmentStatus.in_progress,
    AppointmentStatus.delivered,
)
TERMINAL_STATUSES = (AppointmentStatus.delivered, AppointmentStatus.cancelled)


class PaymentStatus(str, Enum):
    pending = "PENDING"
    paid = "PAID"


class Service(SQLModel, table=True):
    __tablename__ = "services"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    duration_min: int
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)


class Client(SQLModel, table=True):
    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone: str
    email: Optional[str] = None


class Worker(SQLModel, table=True):
    __tablename__ = "workers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    position: int = 0  # ordering used for tie-breaks
    active: bool = True


class ScheduleSettings(SQLModel, table=True):
    __tablename__ = "schedule_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    work_start_hour: int
    work_end_hour: int
    work_days: List[int] = Field(sa_column=Column(JSON))  # 0=Sun ... 6=Sat
    closed_dates: List[str] = Field(sa_column=Column(JSON))  # "YYYY-MM-DD"
    max_concurrent_bookings: int = 1
    multi_worker_enabled: bool = False


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # overlap scan in reservations: one day x one resource x active rows
        Index("ix_appointments_date_worker_status", "date", "worker_id", "status"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    # naive wall-clock time in the business timezone
    date: datetime = Field(sa_column=Column(DateTime(timezone=False), nullable=False))
    duration_min: int
    service_id: int = Field(foreign_key="services.id")
    client_id: int = Field(foreign_key="clients.id")
    worker_id: Optional[int] = Field(default=None, foreign_key="workers.id")
    status: AppointmentStatus = AppointmentStatus.scheduled
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", unique=True)
    status: PaymentStatus = PaymentStatus.pending
    amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    paid_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False)))
