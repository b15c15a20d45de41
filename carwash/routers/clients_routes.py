# carwash/routers/clients_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from carwash.db import get_session
from carwash.deps import get_or_404
from carwash.models import Client
from carwash.schemas import ClientCreate, ClientPublic

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


@router.post("", status_code=201, response_model=ClientPublic)
def create_client(
    client: ClientCreate,
    session: Session = Depends(get_session),
):
    # 1) Phone numbers identify clients for notifications
    existing = session.exec(
        select(Client).where(Client.phone == client.phone)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Phone already registered")

    # 2) Create client in DB
    db_client = Client(name=client.name, phone=client.phone, email=client.email)
    session.add(db_client)
    session.commit()
    session.refresh(db_client)  # fills db_client.id
    return db_client


@router.get("", response_model=List[ClientPublic])
def list_clients(
    session: Session = Depends(get_session),
):
    return session.exec(select(Client).order_by(Client.name)).all()


@router.get("/{client_id}", response_model=ClientPublic)
def get_client(
    client_id: int,
    session: Session = Depends(get_session),
):
    return get_or_404(session, Client, client_id, "Client")
