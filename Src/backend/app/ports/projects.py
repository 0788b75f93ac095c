"""Project persistence functions enforcing organization scope."""

from __future__ import annotations

from typing import List

from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain import models as m
from app.domain.errors import InvalidReference, NotFound, ValidationError
from app.domain.schemas import ProjectCreate, ProjectUpdate
from app.ports.clients import get_client


def insert_project(
    db: Session,
    *,
    organization_id: str,
    created_by: str,
    owner_id: str,
    data: ProjectCreate,
) -> m.Project:
    """Persist a validated project; the client reference was checked by the caller."""

    project = m.Project(
        title=data.title,
        description=data.description,
        client_id=data.client_id,
        owner_id=owner_id,
        budget=data.budget,
        priority=data.priority,
        status=data.status,
        created_by=created_by,
        organization_id=organization_id,
    )
    db.add(project)
    try:
        db.commit()
    except IntegrityError as exc:
        # The client disappeared between the reference check and the insert.
        db.rollback()
        raise InvalidReference(f"Client {data.client_id} does not exist in this organization") from exc

    db.refresh(project)
    return project


def list_projects(db: Session, *, organization_id: str, client_id: str | None = None) -> List[m.Project]:
    """Return the organization's projects, optionally for a single client."""

    query = db.query(m.Project).filter(m.Project.organization_id == organization_id)
    if client_id:
        query = query.filter(m.Project.client_id == client_id)
    return query.order_by(m.Project.created_at.desc(), m.Project.title.asc()).all()


def require_project(db: Session, *, organization_id: str, project_id: str) -> m.Project:
    """Return a single project within *organization_id* or raise :class:`NotFound`."""

    project = (
        db.query(m.Project)
        .filter(m.Project.id == project_id, m.Project.organization_id == organization_id)
        .one_or_none()
    )
    if project is None:
        raise NotFound("Project not found")
    return project


_REQUIRED_ON_UPDATE = ("title", "client_id", "owner_id", "budget", "priority", "status")


def update_project(db: Session, *, organization_id: str, project_id: str, changes: ProjectUpdate) -> m.Project:
    """Apply the fields set on *changes* to a project of *organization_id*.

    Moving a project to another client requires that client to belong to the
    same organization.
    """

    project = require_project(db, organization_id=organization_id, project_id=project_id)
    values = changes.model_dump(exclude_unset=True)
    for field_name in _REQUIRED_ON_UPDATE:
        if field_name in values and values[field_name] is None:
            raise ValidationError(details=[{"field": to_camel(field_name), "message": "must not be null"}])

    new_client_id = values.get("client_id")
    if new_client_id and new_client_id != project.client_id:
        if get_client(db, organization_id=organization_id, client_id=new_client_id) is None:
            raise InvalidReference(
                f"Client {new_client_id} does not exist in this organization",
                details=[{"field": "clientId", "message": "unknown client"}],
            )

    for field_name, value in values.items():
        setattr(project, field_name, value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise InvalidReference(f"Client {new_client_id} does not exist in this organization") from exc

    db.refresh(project)
    return project
