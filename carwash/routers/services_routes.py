# carwash/routers/services_routes.py

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from carwash.db import get_session
from carwash.deps import get_or_404
from carwash.models import Service
from carwash.schemas import ServiceCreate, ServicePublic

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


def service_public(service: Service) -> dict:
    return {
        "id": service.id,
        "name": service.name,
        "duration_min": service.duration_min,
        "price": float(service.price),
    }


@router.post("", status_code=201, response_model=ServicePublic)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
):
    db_service = Service(
        name=service.name,
        duration_min=service.duration_min,
        price=Decimal(str(service.price)),
    )
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return service_public(db_service)


@router.get("", response_model=List[ServicePublic])
def list_services(
    session: Session = Depends(get_session),
):
    services = session.exec(select(Service).order_by(Service.name)).all()
    return [service_public(s) for s in services]


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(
    service_id: int,
    session: Session = Depends(get_session),
):
    return service_public(get_or_404(session, Service, service_id, "Service"))
