"""Transaction template endpoints: reusable sender, bill-to and notes presets."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from forfettario.backend.app import get_repository
from forfettario.backend.app.http import not_found
from forfettario.backend.services.request_parser import parse_json_object

blueprint = Blueprint("templates", __name__, url_prefix="/api/v1/templates")


def _missing(template_id: str):
    return not_found(f"Template {template_id} not found").to_response()


@blueprint.get("")
def list_templates():
    templates = get_repository().list_templates()
    return jsonify({"templates": [template.as_wire() for template in templates]}), 200


@blueprint.post("")
def create_template():
    template = get_repository().create_template(parse_json_object(request))
    return jsonify(template.as_wire()), 201


@blueprint.get("/<template_id>")
def get_template(template_id: str):
    try:
        template = get_repository().get_template(template_id)
    except KeyError:
        return _missing(template_id)
    return jsonify(template.as_wire()), 200


@blueprint.put("/<template_id>")
def update_template(template_id: str):
    """Replace the name, sender, bill-to and notes of a stored template."""

    payload = parse_json_object(request)
    try:
        template = get_repository().update_template(template_id, payload)
    except KeyError:
        return _missing(template_id)
    return jsonify(template.as_wire()), 200


@blueprint.delete("/<template_id>")
def delete_template(template_id: str):
    try:
        get_repository().delete_template(template_id)
    except KeyError:
        return _missing(template_id)
    return "", 204
