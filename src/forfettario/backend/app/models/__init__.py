"""Typed models shared across the calculation services.

Pydantic models in :mod:`.api` describe what crosses the HTTP boundary and the
validated calculator inputs. The lightweight dataclasses below carry derived
results between the engine, the schedule resolver and the response builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from .api import (
    CALCULATOR_INPUTS_ADAPTER,
    CalculationRequest,
    CalculationResponse,
    CalculatorInputValues,
    CalculatorInputs,
    CustomSplitInputs,
    DEFAULT_SPLIT_JUNE,
    DEFAULT_SPLIT_NOVEMBER,
    InpsType,
    NUMERIC_INPUT_FIELDS,
    ResponseMeta,
    ResultsPayload,
    RevenueTransaction,
    SPLIT_TOLERANCE,
    ScheduleItemPayload,
    SplitModel,
    SplitPayload,
    StandardSplitInputs,
    TransactionAttachment,
    TransactionTemplate,
    YearRecord,
    coerce_number,
    format_validation_error,
    normalise_date,
    parse_amount,
)

__all__ = [
    "CALCULATOR_INPUTS_ADAPTER",
    "CalculationRequest",
    "CalculationResponse",
    "CalculatorInputValues",
    "CalculatorInputs",
    "CalculatorResults",
    "CustomSplitInputs",
    "DEFAULT_SPLIT_JUNE",
    "DEFAULT_SPLIT_NOVEMBER",
    "InpsType",
    "NUMERIC_INPUT_FIELDS",
    "ResponseMeta",
    "ResultsPayload",
    "RevenueTransaction",
    "SPLIT_TOLERANCE",
    "ScheduleItem",
    "ScheduleItemPayload",
    "ScheduleSplit",
    "SplitModel",
    "SplitPayload",
    "StandardSplitInputs",
    "TransactionAttachment",
    "TransactionTemplate",
    "ValidationOutcome",
    "YearRecord",
    "coerce_number",
    "format_validation_error",
    "normalise_date",
    "parse_amount",
]


@dataclass(frozen=True, slots=True)
class CalculatorResults:
    """Annual liability figures produced by the forfettario engine."""

    taxable_base: float
    inps: float
    base_after_deduction: float
    tax: float
    total_due: float
    effective_inps_rate: float
    effective_tax_rate: float
    effective_total_rate: float

    def as_dict(self) -> dict[str, float]:
        return {
            "taxableBase": self.taxable_base,
            "inps": self.inps,
            "baseAfterDeduction": self.base_after_deduction,
            "tax": self.tax,
            "totalDue": self.total_due,
            "effectiveInpsRate": self.effective_inps_rate,
            "effectiveTaxRate": self.effective_tax_rate,
            "effectiveTotalRate": self.effective_total_rate,
        }


@dataclass(frozen=True, slots=True)
class ScheduleSplit:
    """Fractions of the acconto base due in June and November."""

    june: float
    november: float
    model: SplitModel = "standard"

    def as_dict(self) -> dict[str, Any]:
        return {"june": self.june, "november": self.november, "model": self.model}


@dataclass(frozen=True, slots=True)
class ScheduleItem:
    """Amount due at one deadline, broken into saldo and acconto."""

    key: Literal["june", "november"]
    label: str
    amount: float
    saldo: float
    acconto: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "amount": self.amount,
            "saldo": self.saldo,
            "acconto": self.acconto,
        }


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of validating loose calculator inputs.

    ``parsed`` is ``None`` whenever ``errors`` is non-empty; ``errors`` maps
    the camelCase input field name to the first message reported for it.
    """

    parsed: StandardSplitInputs | CustomSplitInputs | None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.parsed is not None
