"""Lightweight development seed data for the FunnelHQ API."""

from __future__ import annotations

from typing import Iterable, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from app import deps
from app.domain import models as m
from app.policy.permissions import ADMIN, CLIENT, TEAM_MEMBER

DEMO_ORGANIZATION_ID = "demo-org"

_DEMO_MEMBERS: Iterable[Tuple[str, str, str, str]] = (
    ("demo-admin", "Avery Admin", "admin@funnelhq.io", ADMIN),
    ("demo-team", "Taylor Team", "team@funnelhq.io", TEAM_MEMBER),
    ("demo-client", "Casey Client", "client@funnelhq.io", CLIENT),
)


def _get_or_create_member(
    db: Session,
    *,
    organization_id: str,
    user_id: str,
    name: str,
    email: str,
    role: str,
) -> m.OrganizationMember:
    member = (
        db.query(m.OrganizationMember)
        .filter(
            m.OrganizationMember.organization_id == organization_id,
            m.OrganizationMember.user_id == user_id,
        )
        .one_or_none()
    )
    if member is None:
        member = m.OrganizationMember(
            organization_id=organization_id,
            user_id=user_id,
            name=name,
            email=email,
            role=role,
            permissions=[],
        )
        db.add(member)
        db.flush()
    elif member.role != role:
        member.role = role
    return member


def ensure_seed_data() -> None:
    """Create the demo organization and its members if they are missing."""

    with deps.SessionLocal() as db:
        if db.get(m.Organization, DEMO_ORGANIZATION_ID) is None:
            db.add(m.Organization(id=DEMO_ORGANIZATION_ID, name="FunnelHQ Demo Agency"))
            db.flush()

        for user_id, name, email, role in _DEMO_MEMBERS:
            _get_or_create_member(
                db,
                organization_id=DEMO_ORGANIZATION_ID,
                user_id=user_id,
                name=name,
                email=email,
                role=role,
            )
        db.commit()
    logger.info("Demo organization {} seeded", DEMO_ORGANIZATION_ID)
