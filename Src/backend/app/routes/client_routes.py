"""Client routes scoped to the caller's organization."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.application import creation_service
from app.application.creation_service import validate_payload
from app.deps import AccessContext, get_db, json_body, require_access
from app.domain.schemas import ClientResp, ClientUpdate
from app.policy.permissions import CLIENTS_CREATE, CLIENTS_DELETE, CLIENTS_UPDATE, CLIENTS_VIEW_ALL
from app.ports import clients as clients_port

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.post("", response_model=ClientResp)
def create_client(
    ctx: AccessContext = Depends(require_access(CLIENTS_CREATE)),
    body: Any = Depends(json_body),
    db: Session = Depends(get_db),
) -> ClientResp:
    """Create a client in the selected organization."""

    return creation_service.create_client(db, body, ctx.identity, ctx.scope)


@router.get("", response_model=List[ClientResp])
def list_clients(
    ctx: AccessContext = Depends(require_access(CLIENTS_VIEW_ALL)),
    db: Session = Depends(get_db),
) -> List[ClientResp]:
    return clients_port.list_clients(db, organization_id=ctx.scope.organization_id)


@router.get("/{client_id}", response_model=ClientResp)
def get_client(
    client_id: str,
    ctx: AccessContext = Depends(require_access(CLIENTS_VIEW_ALL)),
    db: Session = Depends(get_db),
) -> ClientResp:
    return clients_port.require_client(db, organization_id=ctx.scope.organization_id, client_id=client_id)


@router.put("/{client_id}", response_model=ClientResp)
def update_client(
    client_id: str,
    ctx: AccessContext = Depends(require_access(CLIENTS_UPDATE)),
    body: Any = Depends(json_body),
    db: Session = Depends(get_db),
) -> ClientResp:
    """Apply a partial update; ``name`` and ``email`` cannot be cleared."""

    changes = validate_payload(ClientUpdate, body)
    return clients_port.update_client(
        db,
        organization_id=ctx.scope.organization_id,
        client_id=client_id,
        changes=changes,
    )


@router.delete("/{client_id}")
def delete_client(
    client_id: str,
    ctx: AccessContext = Depends(require_access(CLIENTS_DELETE)),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    clients_port.delete_client(db, organization_id=ctx.scope.organization_id, client_id=client_id)
    return {"id": client_id, "deleted": True}
