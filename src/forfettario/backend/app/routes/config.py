"""Expose year configuration consumed by front-end forms.

Forms use these endpoints to pre-fill coefficients, INPS rates and deadlines
without duplicating the statutory tables kept in YAML.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from forfettario.backend.app.http import ProblemResponse, not_found, parse_year
from forfettario.backend.app.localization import get_translator
from forfettario.backend.config.year_config import (
    YearConfiguration,
    available_years,
    load_manifest,
    load_year_configuration,
)
from forfettario.backend.services.year_service import default_inputs
from forfettario.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise_year(configuration: YearConfiguration, locale: str | None) -> dict[str, Any]:
    translator = get_translator(locale)
    gestione_separata = configuration.inps.gestione_separata
    meta = dict(configuration.meta)

    return {
        "year": configuration.year,
        "locale": translator.locale,
        "meta": meta,
        "inps": {
            "gestione_separata": {
                "label": translator("inps_type.gestione_separata"),
                "max_base": gestione_separata.max_base,
                "default_rate": gestione_separata.default_rate,
            },
            "artigiani_commercianti": {
                "label": translator("inps_type.artigiani_commercianti"),
                "modelled": False,
            },
        },
        "acconti": configuration.acconti.model_dump(),
        "defaults": configuration.defaults.model_dump(),
        "form_defaults": default_inputs(configuration.year).as_wire(),
    }


@blueprint.get("/meta")
def get_meta():
    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years():
    """List every configured year with its headline parameters."""

    locale = request.args.get("locale")
    years = [
        _serialise_year(load_year_configuration(year), locale) for year in available_years()
    ]
    return jsonify({"years": years}), 200


@blueprint.get("/<year>")
def get_year(year: str):
    parsed = parse_year(year)
    if isinstance(parsed, ProblemResponse):
        return parsed.to_response()

    try:
        configuration = load_year_configuration(parsed)
    except FileNotFoundError as exc:
        return not_found(str(exc)).to_response()

    return jsonify(_serialise_year(configuration, request.args.get("locale"))), 200
