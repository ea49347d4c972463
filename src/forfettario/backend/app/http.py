"""HTTP helper utilities shared across Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import jsonify


@dataclass(frozen=True)
class ProblemResponse:
    """Lightweight representation of an RFC 7807-style error payload."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Convenience factory mirroring Flask's ``jsonify`` interface."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


def not_found(message: str) -> ProblemResponse:
    return problem_response("not_found", status=404, message=message)


def validation_problem(
    message: str, errors: Mapping[str, str] | None = None
) -> ProblemResponse:
    """Return a 400 problem, attaching a field -> message map when given."""

    if errors:
        return problem_response(
            "validation_error", status=400, message=message, errors=dict(errors)
        )
    return problem_response("validation_error", status=400, message=message)


def parse_year(raw: int | str) -> int | ProblemResponse:
    """Return ``raw`` as a supported fiscal year or a 400 problem."""

    try:
        year = int(raw)
    except (TypeError, ValueError):
        return validation_problem(f"Invalid year: {raw}")
    if year < 1900 or year > 2100:
        return validation_problem(f"Year must be between 1900 and 2100, got {year}")
    return year


__all__ = [
    "ProblemResponse",
    "not_found",
    "parse_year",
    "problem_response",
    "validation_problem",
]
