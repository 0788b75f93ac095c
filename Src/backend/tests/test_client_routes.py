from __future__ import annotations

from typing import Callable

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.domain import models as m

from conftest import ORG_A, ORG_B, auth_headers


def test_create_client_returns_camel_case_record(client: TestClient, seeded: Session) -> None:
    response = client.post(
        f"/api/clients?userId=alice&organizationId={ORG_A}",
        headers=auth_headers("alice"),
        json={"name": "Acme Corp", "email": "ops@acme.com", "notes": "VIP", "createdBy": "someone-else"},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["name"] == "Acme Corp"
    assert body["organizationId"] == ORG_A
    assert body["createdBy"] == "alice"
    assert body["id"]
    assert "X-Request-Id" in response.headers


def test_create_client_validation_error_shape(client: TestClient, seeded: Session) -> None:
    response = client.post(
        f"/api/clients?organizationId={ORG_A}",
        headers=auth_headers("alice"),
        json={"name": "Acme"},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "validation_error"
    assert error["details"][0]["field"] == "email"
    assert seeded.query(m.Client).count() == 0


def test_malformed_json_is_validation_error(client: TestClient, seeded: Session) -> None:
    response = client.post(
        f"/api/clients?organizationId={ORG_A}",
        headers={**auth_headers("alice"), "Content-Type": "application/json"},
        content=b"{not json",
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


def test_permission_tags_open_creation_for_team_members(client: TestClient, seeded: Session) -> None:
    denied = client.post(
        f"/api/clients?organizationId={ORG_A}",
        headers=auth_headers("bob"),
        json={"name": "Acme", "email": "a@acme.com"},
    )
    allowed = client.post(
        f"/api/clients?organizationId={ORG_A}",
        headers=auth_headers("dana"),
        json={"name": "Acme", "email": "a@acme.com"},
    )

    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "forbidden"
    assert allowed.status_code == 200


def test_missing_organization_is_rejected(client: TestClient, seeded: Session) -> None:
    response = client.post("/api/clients", headers=auth_headers("alice"), json={"name": "A", "email": "a@b.co"})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "organization_required"


def test_list_clients_is_scoped_to_organization(client: TestClient, make_client: Callable[..., dict]) -> None:
    mine = make_client("Acme Corp")
    make_client("Beta Corp", organization_id=ORG_B, sub="carol")

    response = client.get(f"/api/clients?organizationId={ORG_A}", headers=auth_headers("alice"))

    assert response.status_code == 200
    assert [row["id"] for row in response.json()] == [mine["id"]]


def test_get_update_and_delete_client(client: TestClient, make_client: Callable[..., dict]) -> None:
    created = make_client("Acme Corp")
    url = f"/api/clients/{created['id']}?organizationId={ORG_A}"

    assert client.get(url, headers=auth_headers("alice")).json()["name"] == "Acme Corp"

    updated = client.put(url, headers=auth_headers("alice"), json={"notes": "Renewal in May"})
    assert updated.status_code == 200
    assert updated.json()["notes"] == "Renewal in May"
    assert updated.json()["email"] == created["email"]

    cleared = client.put(url, headers=auth_headers("alice"), json={"name": None})
    assert cleared.status_code == 400

    deleted = client.delete(url, headers=auth_headers("alice"))
    assert deleted.status_code == 200
    assert deleted.json() == {"id": created["id"], "deleted": True}
    assert client.get(url, headers=auth_headers("alice")).status_code == 404


def test_client_with_projects_cannot_be_deleted(client: TestClient, make_client: Callable[..., dict]) -> None:
    created = make_client("Acme Corp")
    project = client.post(
        f"/api/projects?organizationId={ORG_A}",
        headers=auth_headers("alice"),
        json={"title": "Site", "clientId": created["id"], "budget": 100, "priority": "low"},
    )
    assert project.status_code == 200, project.text

    response = client.delete(f"/api/clients/{created['id']}?organizationId={ORG_A}", headers=auth_headers("alice"))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Client still has projects"


def test_client_of_other_organization_is_not_found(client: TestClient, make_client: Callable[..., dict]) -> None:
    foreign = make_client("Beta Corp", organization_id=ORG_B, sub="carol")

    response = client.get(f"/api/clients/{foreign['id']}?organizationId={ORG_A}", headers=auth_headers("alice"))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


def test_update_client_email_is_validated_and_lowercased(client: TestClient, make_client: Callable[..., dict]) -> None:
    created = make_client("Acme Corp")
    url = f"/api/clients/{created['id']}?organizationId={ORG_A}"

    invalid = client.put(url, headers=auth_headers("alice"), json={"email": "billing at acme"})
    valid = client.put(url, headers=auth_headers("alice"), json={"email": "Billing@Acme.com"})

    assert invalid.status_code == 400
    assert invalid.json()["error"]["details"][0]["field"] == "email"
    assert valid.json()["email"] == "billing@acme.com"
