"""Year record endpoints: stored inputs, transactions, calculations and exports."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, jsonify, request

from forfettario.backend.app import get_repository
from forfettario.backend.app.http import ProblemResponse, not_found, parse_year
from forfettario.backend.services.calculation_service import (
    build_response,
    evaluate_year_record,
)
from forfettario.backend.services.request_parser import parse_json_object, request_locale
from forfettario.backend.services.response_builder import build_download_response
from forfettario.backend.services.summary_service import (
    render_csv,
    render_pdf,
    render_text,
)
from forfettario.backend.services.year_service import apply_year_update

blueprint = Blueprint("years", __name__, url_prefix="/api/v1/years")


def _load_record(raw_year: str):
    year = parse_year(raw_year)
    if isinstance(year, ProblemResponse):
        return year
    try:
        return get_repository().get(year)
    except KeyError:
        return not_found(f"No data stored for year {year}")


@blueprint.get("")
def list_years():
    return jsonify({"years": get_repository().list_years()}), 200


@blueprint.get("/<year>")
def get_year(year: str):
    record = _load_record(year)
    if isinstance(record, ProblemResponse):
        return record.to_response()
    return jsonify(record.as_wire()), 200


@blueprint.put("/<year>")
def put_year(year: str):
    """Create or update the stored inputs, defaults and transactions of a year."""

    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()

    payload = parse_json_object(request)
    repository = get_repository()
    try:
        existing = repository.get(parsed)
    except KeyError:
        existing = None

    record = repository.save(apply_year_update(parsed, payload, existing))
    return jsonify(record.as_wire()), 200 if existing is not None else 201


@blueprint.delete("/<year>")
def delete_year(year: str):
    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()
    try:
        get_repository().delete(parsed)
    except KeyError:
        return not_found(f"No data stored for year {parsed}").to_response()
    return "", 204


@blueprint.get("/<year>/calculation")
def get_year_calculation(year: str):
    record = _load_record(year)
    if isinstance(record, ProblemResponse):
        return record.to_response()
    evaluation = evaluate_year_record(record, request_locale(request))
    return jsonify(build_response(evaluation)), 200


@blueprint.get("/<year>/summary")
def get_year_summary(year: str) -> Any:
    record = _load_record(year)
    if isinstance(record, ProblemResponse):
        return record.to_response()
    evaluation = evaluate_year_record(record, request_locale(request))
    return Response(render_text(evaluation), mimetype="text/plain")


@blueprint.get("/<year>/summary/csv")
def get_year_summary_csv(year: str) -> Any:
    record = _load_record(year)
    if isinstance(record, ProblemResponse):
        return record.to_response()
    evaluation = evaluate_year_record(record, request_locale(request))
    return build_download_response(
        render_csv(evaluation), "text/csv", f"forfettario-{record.year}.csv"
    )


@blueprint.get("/<year>/summary/pdf")
def get_year_summary_pdf(year: str) -> Any:
    record = _load_record(year)
    if isinstance(record, ProblemResponse):
        return record.to_response()
    evaluation = evaluate_year_record(record, request_locale(request))
    return build_download_response(
        render_pdf(evaluation), "application/pdf", f"forfettario-{record.year}.pdf"
    )


@blueprint.post("/<year>/transactions")
def add_transaction(year: str):
    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()
    payload = parse_json_object(request)
    transaction = get_repository().add_transaction(parsed, payload)
    return jsonify(transaction.as_wire()), 201


@blueprint.put("/<year>/transactions/<transaction_id>")
def update_transaction(year: str, transaction_id: str):
    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()
    payload = parse_json_object(request)
    payload["id"] = transaction_id
    try:
        transaction = get_repository().update_transaction(parsed, payload)
    except KeyError:
        return not_found(
            f"Transaction {transaction_id} not found for year {parsed}"
        ).to_response()
    return jsonify(transaction.as_wire()), 200


@blueprint.delete("/<year>/transactions/<transaction_id>")
def delete_transaction(year: str, transaction_id: str):
    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()
    try:
        get_repository().delete_transaction(parsed, transaction_id)
    except KeyError:
        return not_found(
            f"Transaction {transaction_id} not found for year {parsed}"
        ).to_response()
    return "", 204
