"""Integration tests for the transaction template endpoints."""

from __future__ import annotations

from http import HTTPStatus

from flask.testing import FlaskClient


def _create(client: FlaskClient, **payload: object):
    return client.post("/api/v1/templates", json=payload)


def test_create_template_trims_and_drops_blank_fields(client: FlaskClient) -> None:
    response = _create(client, name="  Retainer  ", sender=" ACME ", billTo="  ", notes="")

    assert response.status_code == HTTPStatus.CREATED
    template = response.get_json()
    assert template["name"] == "Retainer"
    assert template["sender"] == "ACME"
    assert "billTo" not in template
    assert "notes" not in template
    assert template["id"]
    assert template["createdAt"]


def test_blank_name_is_rejected(client: FlaskClient) -> None:
    response = _create(client, name="   ", sender="ACME")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "Name is required" in payload["message"]
    assert client.get("/api/v1/templates").get_json() == {"templates": []}


def test_non_object_body_is_rejected(client: FlaskClient) -> None:
    response = client.post("/api/v1/templates", json=["Retainer"])

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_templates_are_listed_newest_first(client: FlaskClient) -> None:
    first = _create(client, name="First").get_json()
    second = _create(client, name="Second").get_json()

    listed = client.get("/api/v1/templates").get_json()["templates"]

    assert [template["id"] for template in listed] == [second["id"], first["id"]]


def test_template_lifecycle(client: FlaskClient) -> None:
    created = _create(client, name="Retainer", sender="ACME", notes="Monthly").get_json()
    template_url = f"/api/v1/templates/{created['id']}"

    fetched = client.get(template_url)
    assert fetched.status_code == HTTPStatus.OK
    assert fetched.get_json() == created

    updated = client.put(template_url, json={"name": "Retainer 2025", "billTo": "Beta spa"})
    assert updated.status_code == HTTPStatus.OK
    assert updated.get_json() == {
        "id": created["id"],
        "name": "Retainer 2025",
        "billTo": "Beta spa",
        "createdAt": created["createdAt"],
    }

    assert client.delete(template_url).status_code == HTTPStatus.NO_CONTENT
    assert client.get(template_url).status_code == HTTPStatus.NOT_FOUND


def test_unknown_template_is_not_found(client: FlaskClient) -> None:
    for response in (
        client.get("/api/v1/templates/missing"),
        client.put("/api/v1/templates/missing", json={"name": "Anything"}),
        client.delete("/api/v1/templates/missing"),
    ):
        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.get_json()["error"] == "not_found"


def test_invalid_update_is_rejected(client: FlaskClient) -> None:
    created = _create(client, name="Retainer").get_json()

    response = client.put(f"/api/v1/templates/{created['id']}", json={"name": ""})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert client.get(f"/api/v1/templates/{created['id']}").get_json()["name"] == "Retainer"
