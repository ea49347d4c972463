"""Integration tests for the forfettario calculation REST endpoint."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import Dict, Iterable

import pytest
from flask.testing import FlaskClient

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "regression_scenarios.json"


def _load_scenarios() -> Iterable[Dict[str, object]]:
    with DATA_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@pytest.mark.parametrize("scenario", _load_scenarios(), ids=lambda item: item["name"])
def test_calculation_endpoint_matches_regression_scenarios(
    client: FlaskClient, scenario: Dict[str, object]
) -> None:
    """Each regression scenario should remain stable over time."""

    response = client.post("/api/v1/calculations", json=scenario["payload"])
    assert response.status_code == HTTPStatus.OK

    result = response.get_json()
    expected = scenario["expectations"]

    for key, value in expected["results"].items():
        assert result["results"][key] == pytest.approx(value, abs=0.01)

    assert result["accontoBase"] == pytest.approx(expected["accontoBase"], abs=0.01)

    schedule = {item["key"]: item["amount"] for item in result["schedule"]}
    assert set(schedule) == set(expected["schedule"])
    for key, value in expected["schedule"].items():
        assert schedule[key] == pytest.approx(value, abs=0.01)

    for key, value in expected["meta"].items():
        assert result["meta"][key] == value


def test_calculation_endpoint_uses_accept_language_header(
    client: FlaskClient, base_inputs: dict
) -> None:
    """Accept-Language header should influence locale if body omits it."""

    response = client.post(
        "/api/v1/calculations",
        json={"inputs": base_inputs},
        headers={"Accept-Language": "it-IT,it;q=0.9"},
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["meta"]["locale"] == "it"
    assert payload["labels"]["totalDue"] == "Totale dovuto"


def test_calculation_endpoint_returns_field_errors(
    client: FlaskClient, base_inputs: dict
) -> None:
    """Invalid inputs should return a structured 400 response."""

    base_inputs.update(
        {"splitModel": "custom", "customSplitJune": "0.3", "customSplitNovember": "0.3"}
    )

    response = client.post("/api/v1/calculations", json={"inputs": base_inputs})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["errors"] == {
        "customSplitJune": "Split must equal 1.00",
        "customSplitNovember": "Split must equal 1.00",
    }


def test_calculation_endpoint_translates_field_errors(
    client: FlaskClient, base_inputs: dict
) -> None:
    base_inputs["revenue"] = ""

    response = client.post(
        "/api/v1/calculations", json={"inputs": base_inputs, "locale": "it"}
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["errors"] == {"revenue": "Ricavi è obbligatorio"}


def test_calculation_endpoint_requires_inputs(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json={"transactions": []})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert "inputs" in payload["message"]
    assert "errors" not in payload


def test_calculation_endpoint_rejects_non_json(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/calculations", data="revenue=1000", content_type="text/plain"
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "bad_request"


def test_calculation_endpoint_rejects_json_arrays(client: FlaskClient) -> None:
    response = client.post("/api/v1/calculations", json=[1, 2, 3])

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json() == {
        "error": "bad_request",
        "message": "Request JSON must be an object",
    }


def test_calculation_endpoint_sums_transactions(
    client: FlaskClient, base_inputs: dict
) -> None:
    response = client.post(
        "/api/v1/calculations",
        json={
            "inputs": base_inputs,
            "transactions": [
                {"date": "2024-02-01", "amount": "4000"},
                {"date": "2024-03-01", "amount": 6000},
            ],
        },
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["inputs"]["revenue"] == 10_000
    assert payload["meta"]["revenueSource"] == "transactions"
    assert payload["results"]["taxableBase"] == 6_700
