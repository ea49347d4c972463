"""Unit tests for calculation request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from forfettario.backend.services.request_parser import (
    parse_calculation_payload,
    parse_json_object,
    request_locale,
)


def test_parse_payload_uses_accept_language(app: Flask) -> None:
    """Accept-Language header should supply the locale when absent."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"inputs": {}},
        headers={"Accept-Language": "it-IT,it;q=0.9,en;q=0.8"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "it"


def test_parse_payload_preserves_explicit_locale(app: Flask) -> None:
    """Explicit locale fields take precedence over headers."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json={"inputs": {}, "locale": "IT"},
        headers={"Accept-Language": "en"},
    ):
        payload = parse_calculation_payload(request)

    assert payload["locale"] == "it"


def test_query_parameter_locale_is_used(app: Flask) -> None:
    with app.test_request_context("/api/v1/years/2024/summary?locale=it"):
        assert request_locale(request) == "it"


def test_locale_defaults_to_english(app: Flask) -> None:
    with app.test_request_context("/api/v1/years/2024/summary"):
        assert request_locale(request) == "en"


def test_parse_payload_rejects_non_object(app: Flask) -> None:
    """Non-object JSON payloads should trigger BadRequest responses."""

    with app.test_request_context(
        "/api/v1/calculations",
        method="POST",
        json=["not", "an", "object"],
    ):
        with pytest.raises(BadRequest):
            parse_calculation_payload(request)


def test_parse_json_object_rejects_invalid_json(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/years/2024",
        method="PUT",
        data="{not json",
        content_type="application/json",
    ):
        with pytest.raises(BadRequest):
            parse_json_object(request)
