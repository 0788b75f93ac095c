from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generator

from fastapi import Depends, Query, Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.adapters.jwt_identity import JWTIdentityProvider, bearer_token, load_memberships
from app.adapters.static_identity import StaticIdentityProvider
from app.config import settings
from app.domain.errors import Forbidden, ValidationError
from app.domain.identity import Identity, OrganizationScope
from app.instrumentation.trace import trace_access
from app.policy.evaluator import evaluate_access
from app.ports.identity import IdentityProvider


logger = logging.getLogger(__name__)

# --- SQLAlchemy engine + session factory ----------------------------------------------------
def _build_connect_args(url: URL) -> Dict[str, Any]:
    dialect_name = url.get_dialect().name
    if dialect_name == "sqlite":
        return {"check_same_thread": False}
    return {}


def _build_engine_kwargs(url: URL) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"connect_args": _build_connect_args(url), "pool_pre_ping": True}
    if url.get_dialect().name != "sqlite":
        kwargs.update(pool_recycle=300, pool_size=settings.database_pool_size, max_overflow=10)
    return kwargs


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite leaves foreign keys unenforced unless each connection opts in."""

    @event.listens_for(target, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


_db_url = make_url(settings.database_url)
logger.info("Initializing database engine", extra={"db_url": _db_url.render_as_string(hide_password=True)})
engine = create_engine(_db_url, **_build_engine_kwargs(_db_url))
if _db_url.get_dialect().name == "sqlite":
    enable_sqlite_foreign_keys(engine)


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a scoped Session per-request.
    Properly annotated as a Generator to satisfy type checkers.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# --- Identity + organization context ---------------------------------------------------------
def get_identity_provider(request: Request, db: Session = Depends(get_db)) -> IdentityProvider:
    """Build the per-request provider from the ``Authorization`` header.

    Outside production, ``PREVIEW_USER_ID`` serves anonymous requests as that
    member so the UI can be previewed without a provider session.
    """

    token = bearer_token(request.headers.get("Authorization"))
    if token is None and settings.preview_user_id and settings.env != "prod":
        user_id = settings.preview_user_id
        return StaticIdentityProvider(Identity(id=user_id, memberships=load_memberships(db, user_id)))
    return JWTIdentityProvider(token, db)


async def get_identity(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity | None:
    """Resolve the caller; ``None`` for anonymous requests.

    Also sets ``request.state.identity`` for the access log middleware.
    """
    identity = await provider.get_current_identity()
    request.state.identity = identity
    return identity


def get_organization_scope(
    organization_id: str | None = Query(default=None, alias="organizationId"),
) -> OrganizationScope | None:
    value = (organization_id or "").strip()
    return OrganizationScope(value) if value else None


@dataclass(frozen=True, slots=True)
class AccessContext:
    """Identity and scope that passed the policy check for this request."""

    identity: Identity
    scope: OrganizationScope | None


def require_access(
    permission: str | None = None,
    *,
    require_organization: bool = True,
) -> Callable[..., AccessContext]:
    """Dependency factory enforcing authentication, scope membership and *permission*."""

    def _dep(
        identity: Identity | None = Depends(get_identity),
        scope: OrganizationScope | None = Depends(get_organization_scope),
        user_id: str | None = Query(default=None, alias="userId"),
    ) -> AccessContext:
        decision = evaluate_access(identity, scope, permission, require_organization=require_organization)
        trace_access(decision, permission=permission, organization_id=scope.organization_id if scope else None)
        error = decision.to_error()
        if error is not None:
            raise error
        if user_id and identity is not None and user_id != identity.id:
            raise Forbidden("userId does not match the authenticated user")
        return AccessContext(identity=identity, scope=scope)

    return _dep


async def json_body(request: Request) -> Any:
    """Read the request body as JSON after the access dependencies have run."""

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON") from exc
