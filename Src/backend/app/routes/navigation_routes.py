"""Server-side evaluation of the UI route guard."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.deps import get_identity_provider
from app.domain.schemas import GuardDecisionResp
from app.policy.permissions import required_for_route
from app.policy.route_guard import Redirect, RouteGuard
from app.ports.identity import IdentityProvider

router = APIRouter(prefix="/api/navigation", tags=["navigation"])


@router.get("/guard", response_model=GuardDecisionResp)
async def evaluate_guard(
    path: str = Query(...),
    organization_id: str | None = Query(default=None, alias="organizationId"),
    require_auth: bool = Query(default=True, alias="requireAuth"),
    require_organization: bool = Query(default=False, alias="requireOrganization"),
    required_role: Literal["admin", "team_member", "client"] | None = Query(default=None, alias="requiredRole"),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> GuardDecisionResp:
    """Tell the UI whether *path* may render, or where to send the user instead."""

    guard = RouteGuard(provider, organization_id)
    state = await guard.resolve()
    outcome = guard.evaluate_route(
        path,
        require_auth=require_auth,
        require_organization=require_organization,
        required_role=required_role,
    )
    return GuardDecisionResp(
        path=path,
        decision=outcome.decision,
        target=outcome.target if isinstance(outcome, Redirect) else None,
        state=state.value,
        required_permissions=sorted(required_for_route(path)),
    )
