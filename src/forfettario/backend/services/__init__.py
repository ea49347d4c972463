"""Service-layer helpers for the forfettario backend."""

from .calculation_service import (
    InputValidationError,
    calculate,
    calculate_year_record,
    evaluate_inputs,
)
from .request_parser import parse_calculation_payload
from .response_builder import build_calculation_response
from .validation import validate_inputs

__all__ = [
    "InputValidationError",
    "build_calculation_response",
    "calculate",
    "calculate_year_record",
    "evaluate_inputs",
    "parse_calculation_payload",
    "validate_inputs",
]
