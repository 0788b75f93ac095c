"""Project routes scoped to the caller's organization."""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.application import creation_service
from app.application.creation_service import validate_payload
from app.deps import AccessContext, get_db, json_body, require_access
from app.domain.schemas import ProjectResp, ProjectUpdate
from app.instrumentation.trace import tracepoint
from app.policy.permissions import PROJECTS_CREATE, PROJECTS_UPDATE, PROJECTS_VIEW_ALL
from app.ports import projects as projects_port

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ProjectResp)
def create_project(
    ctx: AccessContext = Depends(require_access(PROJECTS_CREATE)),
    body: Any = Depends(json_body),
    db: Session = Depends(get_db),
) -> ProjectResp:
    """Create a project for an existing client of the selected organization."""

    return creation_service.create_project(db, body, ctx.identity, ctx.scope)


@router.get("", response_model=List[ProjectResp])
def list_projects(
    client_id: str | None = Query(default=None, alias="clientId"),
    ctx: AccessContext = Depends(require_access(PROJECTS_VIEW_ALL)),
    db: Session = Depends(get_db),
) -> List[ProjectResp]:
    return projects_port.list_projects(db, organization_id=ctx.scope.organization_id, client_id=client_id)


@router.get("/{project_id}", response_model=ProjectResp)
def get_project(
    project_id: str,
    ctx: AccessContext = Depends(require_access(PROJECTS_VIEW_ALL)),
    db: Session = Depends(get_db),
) -> ProjectResp:
    return projects_port.require_project(db, organization_id=ctx.scope.organization_id, project_id=project_id)


@router.api_route("/{project_id}", methods=["PUT", "PATCH"], response_model=ProjectResp)
def update_project(
    project_id: str,
    ctx: AccessContext = Depends(require_access(PROJECTS_UPDATE)),
    body: Any = Depends(json_body),
    db: Session = Depends(get_db),
) -> ProjectResp:
    """Apply a partial update; omitted fields keep their current value."""

    changes = validate_payload(ProjectUpdate, body)
    project = projects_port.update_project(
        db,
        organization_id=ctx.scope.organization_id,
        project_id=project_id,
        changes=changes,
    )
    tracepoint("project.updated", project_id=project.id, organization_id=ctx.scope.organization_id)
    return project
