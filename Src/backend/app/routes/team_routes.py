"""Team member listing for an organization."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.orm import Session

from app.deps import get_db, get_organization_scope
from app.domain import models as m
from app.domain.errors import OrganizationRequired
from app.domain.identity import OrganizationScope
from app.domain.schemas import TeamMemberResp

router = APIRouter(prefix="/api/team", tags=["team"])


# NOTE: served without authentication; callers only need the organization id.
@router.get("/members", response_model=List[TeamMemberResp])
def list_team_members(
    scope: OrganizationScope | None = Depends(get_organization_scope),
    db: Session = Depends(get_db),
) -> List[TeamMemberResp]:
    if scope is None:
        raise OrganizationRequired()
    logger.bind(org=scope.organization_id).debug("Listing team members without authentication")
    return (
        db.query(m.OrganizationMember)
        .filter(m.OrganizationMember.organization_id == scope.organization_id)
        .order_by(m.OrganizationMember.joined_at.asc(), m.OrganizationMember.user_id.asc())
        .all()
    )
