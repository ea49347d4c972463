"""Turn loose calculator input values into the strict calculator record.

Validation never raises: every problem is reported as a translated message
keyed by the camelCase field name, keeping only the first message per field.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from forfettario.backend.app.localization import Translator, get_translator
from forfettario.backend.app.models import (
    CALCULATOR_INPUTS_ADAPTER,
    CalculatorInputValues,
    ValidationOutcome,
    coerce_number,
    parse_amount,
)

__all__ = ["coerce_number", "parse_amount", "validate_inputs"]

_WIRE_FIELDS: dict[str, str] = {
    name: info.alias or to_camel(name)
    for name, info in CalculatorInputValues.model_fields.items()
}
_FIELD_LOOKUP: dict[str, str] = {
    **{alias: alias for alias in _WIRE_FIELDS.values()},
    **_WIRE_FIELDS,
}

_SPLIT_FIELDS = ("customSplitJune", "customSplitNovember")

_MESSAGE_KEYS: dict[str, str] = {
    "missing": "errors.required",
    "required": "errors.required",
    "union_tag_not_found": "errors.required",
    "not_a_number": "errors.not_a_number",
    "too_small": "errors.too_small",
    "too_large": "errors.too_large",
    "not_integer": "errors.not_integer",
    "tax_rate_tier": "errors.tax_rate_tier",
    "split_total": "errors.split_total",
    "literal_error": "errors.invalid_choice",
    "invalid_split_model": "errors.invalid_choice",
    "union_tag_invalid": "errors.invalid_choice",
    "bool_type": "errors.boolean",
    "bool_parsing": "errors.boolean",
}


def _format_bound(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:g}"
    return str(value)


def _fields_for_issue(issue: Mapping[str, Any]) -> tuple[str, ...]:
    if issue.get("type") == "split_total":
        return _SPLIT_FIELDS

    for part in reversed(issue.get("loc", ())):
        if isinstance(part, str) and part in _FIELD_LOOKUP:
            return (_FIELD_LOOKUP[part],)

    if issue.get("type") in {"invalid_split_model", "union_tag_invalid", "union_tag_not_found"}:
        return ("splitModel",)
    return ()


def _message_for(issue: Mapping[str, Any], field: str, translator: Translator) -> str:
    key = _MESSAGE_KEYS.get(issue.get("type", ""), "errors.invalid")
    params = {name: _format_bound(value) for name, value in (issue.get("ctx") or {}).items()}
    params["label"] = translator(f"fields.{field}")
    return translator(key, **params)


def _collect_errors(error: ValidationError, translator: Translator) -> dict[str, str]:
    errors: dict[str, str] = {}
    for issue in error.errors():
        fields = _fields_for_issue(issue) or ("inputs",)
        for field in fields:
            if field not in errors:
                errors[field] = _message_for(issue, field, translator)
    return errors


def _missing_split_model(raw: Mapping[str, Any]) -> bool:
    tag = raw.get("splitModel", raw.get("split_model"))
    return tag is None or (isinstance(tag, str) and not tag.strip())


def validate_inputs(values: Any, locale: str | None = None) -> ValidationOutcome:
    """Validate ``values`` and return the parsed record or a field error map."""

    translator = get_translator(locale)

    if isinstance(values, BaseModel):
        raw: Mapping[str, Any] = values.model_dump(by_alias=True)
    elif isinstance(values, Mapping):
        raw = values
    else:
        return ValidationOutcome(parsed=None, errors={"inputs": translator("errors.invalid")})

    if _missing_split_model(raw):
        label = translator("fields.splitModel")
        return ValidationOutcome(
            parsed=None, errors={"splitModel": translator("errors.required", label=label)}
        )

    try:
        parsed = CALCULATOR_INPUTS_ADAPTER.validate_python(dict(raw))
    except ValidationError as error:
        return ValidationOutcome(parsed=None, errors=_collect_errors(error, translator))

    return ValidationOutcome(parsed=parsed)
