"""Client and project creation pipeline: authorize, validate, then persist once."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

import pydantic
from loguru import logger
from sqlalchemy.orm import Session

from app.domain import models as m
from app.domain.errors import InvalidReference, ValidationError
from app.domain.identity import Identity, OrganizationScope
from app.domain.schemas import ClientCreate, ProjectCreate
from app.instrumentation.trace import tracepoint
from app.policy.evaluator import can_access
from app.policy.permissions import CLIENTS_CREATE, PROJECTS_CREATE
from app.ports import clients as clients_port
from app.ports import projects as projects_port

_ModelT = TypeVar("_ModelT", bound=pydantic.BaseModel)


def _error_details(exc: pydantic.ValidationError) -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for item in exc.errors():
        field = ".".join(str(part) for part in item.get("loc", ()))
        message = str(item.get("msg", "invalid"))
        details.append({"field": field, "message": message.removeprefix("Value error, ")})
    return details


def validate_payload(model: Type[_ModelT], payload: Mapping[str, Any] | None) -> _ModelT:
    """Turn a raw request body into a fully populated *model* or raise :class:`ValidationError`."""

    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError(details=_error_details(exc)) from exc


def create_client(
    db: Session,
    payload: Mapping[str, Any] | None,
    identity: Identity | None,
    scope: OrganizationScope | None,
) -> m.Client:
    """Create a client owned by *scope* and attributed to *identity*."""

    can_access(identity, scope, CLIENTS_CREATE, require_organization=True)

    data = validate_payload(ClientCreate, payload)
    client = clients_port.insert_client(
        db,
        organization_id=scope.organization_id,
        created_by=identity.id,
        data=data,
    )
    logger.bind(org=scope.organization_id).info("Created client {} by {}", client.id, identity.id)
    tracepoint("client.created", client_id=client.id, organization_id=scope.organization_id)
    return client


def create_project(
    db: Session,
    payload: Mapping[str, Any] | None,
    identity: Identity | None,
    scope: OrganizationScope | None,
) -> m.Project:
    """Create a project for a client of the same organization."""

    can_access(identity, scope, PROJECTS_CREATE, require_organization=True)

    data = validate_payload(ProjectCreate, payload)
    client = clients_port.get_client(db, organization_id=scope.organization_id, client_id=data.client_id)
    if client is None:
        logger.bind(org=scope.organization_id).info(
            "Rejected project for unknown client {}", data.client_id
        )
        raise InvalidReference(
            f"Client {data.client_id} does not exist in this organization",
            details=[{"field": "clientId", "message": "unknown client"}],
        )

    project = projects_port.insert_project(
        db,
        organization_id=scope.organization_id,
        created_by=identity.id,
        owner_id=data.owner_id or identity.id,
        data=data,
    )
    logger.bind(org=scope.organization_id).info(
        "Created project {} for client {} by {}", project.id, client.id, identity.id
    )
    tracepoint("project.created", project_id=project.id, client_id=client.id, organization_id=scope.organization_id)
    return project
