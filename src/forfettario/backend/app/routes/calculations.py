"""REST endpoint for ad-hoc forfettario calculations."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from forfettario.backend.services.calculation_service import calculate
from forfettario.backend.services.request_parser import parse_calculation_payload
from forfettario.backend.services.response_builder import build_calculation_response

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Calculate liability and schedule for the submitted inputs.

    The body carries ``inputs`` and optionally ``transactions`` (which replace
    the declared revenue) and ``locale``.
    """

    payload = parse_calculation_payload(request)
    result = calculate(payload)

    return build_calculation_response(result)
