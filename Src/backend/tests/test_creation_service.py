from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app import deps
from app.application import creation_service
from app.domain import models as m
from app.domain.errors import Forbidden, InvalidReference, OrganizationRequired, Unauthenticated, ValidationError
from app.domain.identity import Identity, OrganizationMembership, OrganizationScope
from app.ports import clients as clients_port
from app.ports import projects as projects_port

from conftest import ORG_A, ORG_B

ALICE = Identity(id="alice", memberships=(OrganizationMembership(ORG_A, role="admin"),))
BOB = Identity(id="bob", memberships=(OrganizationMembership(ORG_A, role="team_member"),))
SCOPE_A = OrganizationScope(ORG_A)
SCOPE_B = OrganizationScope(ORG_B)


def _project_payload(client_id: str, **overrides: object) -> dict:
    payload = {
        "title": "Website Redesign",
        "description": "New marketing site",
        "clientId": client_id,
        "budget": "5000",
        "priority": "high",
    }
    payload.update(overrides)
    return payload


def test_create_client_stamps_scope_and_creator(seeded: Session) -> None:
    client = creation_service.create_client(
        seeded,
        {"name": " Acme Corp ", "email": "Ops@Acme.com", "createdBy": "mallory"},
        ALICE,
        SCOPE_A,
    )

    assert client.organization_id == ORG_A
    assert client.created_by == "alice"
    assert client.name == "Acme Corp"
    assert client.email == "ops@acme.com"
    assert seeded.query(m.Client).count() == 1


def test_create_client_reports_every_invalid_field(seeded: Session) -> None:
    with pytest.raises(ValidationError) as excinfo:
        creation_service.create_client(seeded, {"name": "", "email": "not-an-email"}, ALICE, SCOPE_A)

    fields = {detail["field"] for detail in excinfo.value.details}
    assert fields == {"name", "email"}
    assert seeded.query(m.Client).count() == 0


def test_create_client_rejects_non_object_payload(seeded: Session) -> None:
    with pytest.raises(ValidationError):
        creation_service.create_client(seeded, ["Acme"], ALICE, SCOPE_A)


def test_authorization_runs_before_validation(seeded: Session) -> None:
    with pytest.raises(Unauthenticated):
        creation_service.create_client(seeded, {}, None, SCOPE_A)
    with pytest.raises(Forbidden):
        creation_service.create_client(seeded, {}, BOB, SCOPE_A)
    with pytest.raises(Forbidden):
        creation_service.create_client(seeded, {}, ALICE, SCOPE_B)
    with pytest.raises(OrganizationRequired):
        creation_service.create_project(seeded, {}, ALICE, None)


def test_create_project_defaults_owner_and_parses_budget(seeded: Session) -> None:
    client = creation_service.create_client(seeded, {"name": "Acme", "email": "a@acme.com"}, ALICE, SCOPE_A)

    project = creation_service.create_project(seeded, _project_payload(client.id, budget=1234.5), ALICE, SCOPE_A)

    assert project.client_id == client.id
    assert project.owner_id == "alice"
    assert project.created_by == "alice"
    assert project.status == "active"
    assert project.budget == Decimal("1234.50")


def test_create_project_unknown_client_is_invalid_reference(seeded: Session) -> None:
    with pytest.raises(InvalidReference) as excinfo:
        creation_service.create_project(seeded, _project_payload("nonexistent"), ALICE, SCOPE_A)

    assert excinfo.value.details[0]["field"] == "clientId"
    assert seeded.query(m.Project).count() == 0


def test_create_project_cannot_reference_other_organization_client(seeded: Session) -> None:
    carol = Identity(id="carol", memberships=(OrganizationMembership(ORG_B, role="admin"),))
    foreign = creation_service.create_client(seeded, {"name": "Beta", "email": "b@beta.io"}, carol, SCOPE_B)

    with pytest.raises(InvalidReference):
        creation_service.create_project(seeded, _project_payload(foreign.id), ALICE, SCOPE_A)


def test_numeric_client_id_is_accepted_as_text(seeded: Session) -> None:
    with pytest.raises(InvalidReference) as excinfo:
        creation_service.create_project(seeded, _project_payload(42), ALICE, SCOPE_A)

    assert "42" in excinfo.value.message


@pytest.mark.parametrize("budget", ["-1", "abc", None, True, "NaN", "1e30", 10**40, "1e11", 10_000_000_000])
def test_invalid_budget_never_reaches_storage(
    seeded: Session, monkeypatch: pytest.MonkeyPatch, budget: object
) -> None:
    client = creation_service.create_client(seeded, {"name": "Acme", "email": "a@acme.com"}, ALICE, SCOPE_A)

    def _fail(*_: object, **__: object) -> None:
        raise AssertionError("insert_project must not be called")

    monkeypatch.setattr(projects_port, "insert_project", _fail)

    with pytest.raises(ValidationError) as excinfo:
        creation_service.create_project(seeded, _project_payload(client.id, budget=budget), ALICE, SCOPE_A)

    assert excinfo.value.details[0]["field"] == "budget"


def test_invalid_priority_is_rejected(seeded: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(clients_port, "get_client", lambda *a, **k: pytest.fail("lookup before validation"))

    with pytest.raises(ValidationError):
        creation_service.create_project(seeded, _project_payload("c1", priority="urgent"), ALICE, SCOPE_A)


def test_largest_budget_that_fits_is_kept(seeded: Session) -> None:
    client = creation_service.create_client(seeded, {"name": "Acme", "email": "a@acme.com"}, ALICE, SCOPE_A)

    project = creation_service.create_project(
        seeded, _project_payload(client.id, budget="9999999999.99"), ALICE, SCOPE_A
    )

    assert project.budget == Decimal("9999999999.99")


def test_client_removed_after_reference_check_is_invalid_reference(
    seeded: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    client = creation_service.create_client(seeded, {"name": "Acme", "email": "a@acme.com"}, ALICE, SCOPE_A)
    client_id = client.id
    lookup = clients_port.get_client

    def _lookup_then_remove(db: Session, *, organization_id: str, client_id: str) -> m.Client | None:
        found = lookup(db, organization_id=organization_id, client_id=client_id)
        with deps.SessionLocal() as other:
            other.query(m.Client).filter(m.Client.id == client_id).delete()
            other.commit()
        return found

    monkeypatch.setattr(clients_port, "get_client", _lookup_then_remove)

    with pytest.raises(InvalidReference):
        creation_service.create_project(seeded, _project_payload(client_id), ALICE, SCOPE_A)

    assert seeded.query(m.Project).count() == 0
    assert seeded.query(m.Client).count() == 0
