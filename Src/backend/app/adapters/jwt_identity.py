"""Identity provider backed by provider-issued session JWTs."""

from __future__ import annotations

from typing import Any, Dict, List

import jwt
from jwt import PyJWTError
from loguru import logger
from sqlalchemy.orm import Session

from app.config import settings
from app.domain import models as m
from app.domain.identity import Identity, OrganizationMembership, OrganizationScope
from app.ports.identity import active_scopes


def decode_session_token(token: str) -> Dict[str, Any]:
    """Verify *token* and return its claims; raises :class:`jwt.PyJWTError`."""

    options = {
        "verify_signature": True,
        "verify_exp": True,
        "verify_aud": bool(settings.jwt_aud),
        "verify_iss": bool(settings.jwt_iss),
        "require": ["sub"],
    }
    decode_kwargs: Dict[str, Any] = {
        "key": settings.jwt_secret,
        "algorithms": ["HS256"],
        "options": options,
    }
    if settings.jwt_aud:
        decode_kwargs["audience"] = settings.jwt_aud
    if settings.jwt_iss:
        decode_kwargs["issuer"] = settings.jwt_iss
    return jwt.decode(token, **decode_kwargs)


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header value."""

    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def load_memberships(db: Session, user_id: str) -> tuple[OrganizationMembership, ...]:
    rows = (
        db.query(m.OrganizationMember)
        .filter(m.OrganizationMember.user_id == user_id)
        .order_by(m.OrganizationMember.joined_at.asc())
        .all()
    )
    return tuple(
        OrganizationMembership(
            organization_id=row.organization_id,
            role=row.role,
            permissions=frozenset(str(tag) for tag in (row.permissions or [])),
            is_active=bool(row.is_active),
        )
        for row in rows
    )


class JWTIdentityProvider:
    """Resolve the caller from a bearer token and organization memberships from the database."""

    def __init__(self, token: str | None, db: Session) -> None:
        self._token = token
        self._db = db

    async def get_current_identity(self) -> Identity | None:
        if not self._token:
            return None
        try:
            claims = decode_session_token(self._token)
        except PyJWTError as exc:
            logger.warning("Rejected session token: {}", exc.__class__.__name__)
            return None

        user_id = str(claims["sub"])
        return Identity(
            id=user_id,
            name=claims.get("name"),
            email=claims.get("email"),
            memberships=load_memberships(self._db, user_id),
        )

    def get_organization_memberships(self, identity: Identity) -> List[OrganizationScope]:
        return active_scopes(identity)
