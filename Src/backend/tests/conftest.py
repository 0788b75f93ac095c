from __future__ import annotations

from collections.abc import Callable, Generator
import os
import time

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure required settings exist before importing application modules
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "testing-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import app.deps as deps
from app.config import settings
from app.domain import models as m
from app.main import create_app

ORG_A = "org-a"
ORG_B = "org-b"

# user id -> (organization, role, extra permission tags)
MEMBERS = {
    "alice": (ORG_A, "admin", []),
    "bob": (ORG_A, "team_member", []),
    "dana": (ORG_A, "team_member", ["clients:create", "projects:create", "clients:view_all"]),
    "carol": (ORG_B, "admin", []),
}


def forge_token(sub: str = "alice", **claims: object) -> str:
    now = int(time.time())
    payload: dict[str, object] = {"sub": sub, "iat": now, "exp": now + 3600}
    if settings.jwt_iss:
        payload["iss"] = settings.jwt_iss
    if settings.jwt_aud:
        payload["aud"] = settings.jwt_aud
    payload.update(claims)
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def auth_headers(sub: str = "alice", **claims: object) -> dict[str, str]:
    return {"Authorization": f"Bearer {forge_token(sub, **claims)}"}


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    deps.enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    deps.engine = engine
    deps.SessionLocal = TestingSessionLocal

    app = create_app()

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session(client: TestClient) -> Generator[Session, None, None]:
    """Provide a database session scoped to the in-memory test engine."""

    with deps.SessionLocal() as session:
        yield session


@pytest.fixture
def seeded(db_session: Session) -> Session:
    """Two organizations with the members listed in ``MEMBERS``."""

    db_session.add_all([m.Organization(id=ORG_A, name="Acme Agency"), m.Organization(id=ORG_B, name="Beta Studio")])
    db_session.flush()
    for user_id, (organization_id, role, permissions) in MEMBERS.items():
        db_session.add(
            m.OrganizationMember(
                organization_id=organization_id,
                user_id=user_id,
                name=user_id.title(),
                email=f"{user_id}@example.com",
                role=role,
                permissions=permissions,
            )
        )
    db_session.commit()
    return db_session


@pytest.fixture
def make_client(client: TestClient, seeded: Session) -> Callable[..., dict]:
    """Create a client through the API and return its JSON body."""

    def _make(name: str = "Acme Corp", organization_id: str = ORG_A, sub: str = "alice") -> dict:
        response = client.post(
            f"/api/clients?organizationId={organization_id}",
            headers=auth_headers(sub),
            json={"name": name, "email": f"{name.split()[0].lower()}@clients.io"},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _make
