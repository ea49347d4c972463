"""Serve the flat message catalogue used by the calculator UI."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from forfettario.backend.app.localization import load_translations
from forfettario.backend.services.request_parser import request_locale

blueprint = Blueprint("translations", __name__, url_prefix="/api/v1/translations")


def _filter_namespace(messages: dict[str, str], namespace: str | None) -> dict[str, str]:
    if not namespace:
        return messages
    prefix = namespace.rstrip(".") + "."
    return {key: value for key, value in messages.items() if key.startswith(prefix)}


@blueprint.get("/", defaults={"locale": None})
@blueprint.get("/<locale>")
def get_translations(locale: str | None):
    """Return messages for ``locale``, or for the locale the request negotiates.

    ``?namespace=errors`` narrows both catalogues to keys under ``errors.``.
    """

    payload = load_translations(locale or request_locale(request))
    namespace = request.args.get("namespace")
    payload["messages"] = _filter_namespace(payload["messages"], namespace)
    payload["fallback"]["messages"] = _filter_namespace(
        payload["fallback"]["messages"], namespace
    )

    response = jsonify(payload)
    response.headers["Content-Language"] = payload["locale"]
    return response, 200
