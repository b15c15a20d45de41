# carwash/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime, date
from typing import List, Optional

from .models import AppointmentStatus, PaymentStatus
from .errors import ReasonCode


class CamelModel(BaseModel):
    # JSON uses camelCase; snake_case is accepted on input too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentCreate(CamelModel):
    service_id: int
    client_id: int
    date: datetime  # ISO-8601, offset recommended
    worker_id: Optional[int] = None
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    service_id: Optional[int] = None
    date: Optional[datetime] = None
    worker_id: Optional[int] = None
    notes: Optional[str] = None


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus


class PaymentPublic(CamelModel):
    id: int
    status: PaymentStatus
    amount: float
    paid_at: Optional[str] = None


class AppointmentPublic(CamelModel):
    id: int
    date: str
    duration_min: int
    service_id: int
    client_id: int
    worker_id: Optional[int] = None
    status: AppointmentStatus
    notes: Optional[str] = None
    payment: Optional[PaymentPublic] = None


class BookingFailure(CamelModel):
    message: str
    reason: ReasonCode
    conflicting_count: int = 0


class WorkingHours(CamelModel):
    start: str
    end: str


class AvailabilityResponse(CamelModel):
    date: date
    service_id: int
    service_duration: int
    working_hours: Optional[WorkingHours] = None
    available_slots: List[str]


class ScheduleSettingsPublic(CamelModel):
    work_start_hour: int
    work_end_hour: int
    work_days: List[int]
    closed_dates: List[str]
    max_concurrent_bookings: int
    multi_worker_enabled: bool


class ScheduleSettingsUpdate(CamelModel):
    work_start_hour: Optional[int] = Field(default=None, ge=0, le=23)
    work_end_hour: Optional[int] = Field(default=None, ge=0, le=23)
    work_days: Optional[List[int]] = None  # 0=Sun, 1=Mon ... 6=Sat
    closed_dates: Optional[List[date]] = None
    max_concurrent_bookings: Optional[int] = Field(default=None, gt=0)
    multi_worker_enabled: Optional[bool] = None


class ServiceCreate(CamelModel):
    name: str
    duration_min: int = Field(gt=0)
    price: float = Field(ge=0)


class ServicePublic(CamelModel):
    id: int
    name: str
    duration_min: int
    price: float


class ClientCreate(CamelModel):
    name: str
    phone: str
    email: Optional[str] = None


class ClientPublic(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None


class WorkerCreate(CamelModel):
    name: str
    position: int = 0


class WorkerPublic(CamelModel):
    id: int
    name: str
    position: int
    active: bool
