"""Client persistence functions enforcing organization scope."""

from __future__ import annotations

from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain import models as m
from app.domain.errors import InternalError, NotFound, ValidationError
from app.domain.schemas import ClientCreate, ClientUpdate


def insert_client(db: Session, *, organization_id: str, created_by: str, data: ClientCreate) -> m.Client:
    """Persist a validated client inside *organization_id*."""

    client = m.Client(
        name=data.name,
        email=data.email,
        notes=data.notes,
        created_by=created_by,
        organization_id=organization_id,
    )
    db.add(client)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InternalError("Client insert violated a constraint") from exc

    db.refresh(client)
    return client


def get_client(db: Session, *, organization_id: str, client_id: str) -> m.Client | None:
    """Return the client only when it belongs to *organization_id*."""

    return (
        db.query(m.Client)
        .filter(m.Client.id == client_id, m.Client.organization_id == organization_id)
        .one_or_none()
    )


def require_client(db: Session, *, organization_id: str, client_id: str) -> m.Client:
    client = get_client(db, organization_id=organization_id, client_id=client_id)
    if client is None:
        raise NotFound("Client not found")
    return client


def list_clients(db: Session, *, organization_id: str) -> List[m.Client]:
    """Return the organization's clients, newest first."""

    return (
        db.query(m.Client)
        .filter(m.Client.organization_id == organization_id)
        .order_by(m.Client.created_at.desc(), m.Client.name.asc())
        .all()
    )


def update_client(db: Session, *, organization_id: str, client_id: str, changes: ClientUpdate) -> m.Client:
    """Apply the fields set on *changes* to a client of *organization_id*."""

    client = require_client(db, organization_id=organization_id, client_id=client_id)
    for field_name, value in changes.model_dump(exclude_unset=True).items():
        if field_name in ("name", "email") and value is None:
            raise ValidationError(details=[{"field": field_name, "message": "must not be null"}])
        setattr(client, field_name, value)
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, *, organization_id: str, client_id: str) -> None:
    """Delete a client that no longer has projects."""

    client = require_client(db, organization_id=organization_id, client_id=client_id)
    project_count = (
        db.query(func.count(m.Project.id))
        .filter(m.Project.client_id == client.id, m.Project.organization_id == organization_id)
        .scalar()
    )
    if project_count:
        raise ValidationError(
            "Client still has projects",
            details=[{"field": "projects", "message": f"{project_count} project(s) reference this client"}],
        )
    db.delete(client)
    db.commit()
