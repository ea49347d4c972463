"""Application factory for the forfettario backend."""

from __future__ import annotations

import logging
import os
from warnings import warn

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from .http import problem_response, validation_problem

REPOSITORY_EXTENSION = "forfettario.years"

_LOGGER = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def _build_repository():
    from forfettario.backend.services.year_service import (
        InMemoryYearRepository,
        SQLiteYearRepository,
    )

    database_path = os.getenv("FORFETTARIO_DB", "").strip()
    if database_path:
        _LOGGER.info("Persisting year records to %s", database_path)
        return SQLiteYearRepository(database_path)
    return InMemoryYearRepository()


def get_repository():
    """Return the year repository bound to the running application."""

    return current_app.extensions[REPOSITORY_EXTENSION]


def create_app(repository=None) -> Flask:
    """Create and configure the Flask application instance.

    ``repository`` overrides the year store; otherwise ``FORFETTARIO_DB``
    selects a SQLite file and an in-memory store is used when it is unset.
    """

    # Blueprints import the service layer, which imports this package.
    from forfettario.backend.services.calculation_service import InputValidationError

    from .routes import register_routes
    from .routes.config import get_configuration_metadata

    app = Flask(__name__)

    allowed_origins = _parse_allowed_origins(os.getenv("FORFETTARIO_ALLOWED_ORIGINS"))

    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )

    app.extensions[REPOSITORY_EXTENSION] = (
        repository if repository is not None else _build_repository()
    )

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(InputValidationError)
    def handle_input_validation_error(error: InputValidationError):
        """Report field-level calculator input errors."""

        return validation_problem(str(error), error.errors).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return validation_problem(str(error)).to_response()

    return app


__all__ = ["REPOSITORY_EXTENSION", "create_app", "get_repository"]
