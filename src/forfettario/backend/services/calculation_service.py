"""Orchestrate input validation, revenue overrides and the forfettario engine.

The service is the single entry point used by the HTTP layer and the summary
renderers. It validates the loose inputs, lets imported transactions replace
the declared revenue, runs the pure engine and schedule resolver, then rounds
and labels the figures for presentation. Profiling hooks live here so the
calculators can stay free of instrumentation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from forfettario.backend.app.localization import get_translator
from forfettario.backend.app.models import (
    CalculationRequest,
    CalculationResponse,
    CalculatorResults,
    CustomSplitInputs,
    RevenueTransaction,
    ScheduleItem,
    ScheduleSplit,
    StandardSplitInputs,
    YearRecord,
    format_validation_error,
)
from forfettario.backend.config.year_config import (
    acconto_rates,
    gestione_separata_max_bases,
)

from .calculators import (
    compute_acconto_base,
    compute_schedule,
    compute_totals,
    resolve_schedule_split,
    round_currency,
    round_rate,
)
from .validation import validate_inputs
from .year_service import normalise_transactions, total_revenue

_LOGGER = logging.getLogger(__name__)

_RESULT_LABEL_KEYS = (
    "taxableBase",
    "inps",
    "baseAfterDeduction",
    "tax",
    "totalDue",
    "effectiveInpsRate",
    "effectiveTaxRate",
    "effectiveTotalRate",
)


class InputValidationError(ValueError):
    """Raised when calculator inputs fail validation.

    ``errors`` maps camelCase field names to translated messages.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        super().__init__("Calculator inputs failed validation")
        self.errors = dict(errors)


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Unrounded outcome of one calculation pass."""

    inputs: StandardSplitInputs | CustomSplitInputs
    results: CalculatorResults
    split: ScheduleSplit
    acconto_base: float
    schedule: tuple[ScheduleItem, ...]
    locale: str
    revenue_source: str
    transaction_count: int
    inps_max_base: float | None

    @property
    def inps_capped(self) -> bool:
        return (
            self.inputs.inps_type == "gestione_separata"
            and self.inps_max_base is not None
            and self.results.taxable_base > self.inps_max_base
        )


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("FORFETTARIO_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _coerce_transactions(
    transactions: Iterable[RevenueTransaction | Mapping[str, Any]] | None,
) -> list[RevenueTransaction]:
    if not transactions:
        return []
    items = list(transactions)
    if all(isinstance(item, RevenueTransaction) for item in items):
        return items
    return normalise_transactions(
        [item.as_wire() if isinstance(item, RevenueTransaction) else item for item in items]
    )


def evaluate_inputs(
    values: Any,
    transactions: Sequence[RevenueTransaction | Mapping[str, Any]] | None = None,
    locale: str | None = None,
) -> Evaluation:
    """Validate ``values`` and run the engine without rounding the output."""

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    translator = get_translator(locale)

    with _profile_section("validate", timings):
        outcome = validate_inputs(values, translator.locale)
    if outcome.parsed is None:
        raise InputValidationError(outcome.errors)

    inputs = outcome.parsed
    revenue_source = "inputs"
    revenue_transactions = _coerce_transactions(transactions)
    if revenue_transactions:
        revenue = total_revenue(revenue_transactions)
        if revenue < 0:
            _LOGGER.warning(
                "Transactions for %s sum to a negative revenue (%.2f); using 0",
                inputs.year,
                revenue,
            )
            revenue = 0.0
        inputs = inputs.model_copy(update={"revenue": revenue})
        revenue_source = "transactions"

    with _profile_section("compute_totals", timings):
        results = compute_totals(inputs)

    with _profile_section("schedule", timings):
        split = resolve_schedule_split(inputs)
        rates = acconto_rates(inputs.year)
        acconto_base = compute_acconto_base(
            results.inps, results.tax, rates.inps_rate, rates.tax_rate
        )
        schedule = compute_schedule(
            results.total_due,
            acconto_base,
            inputs.apply_acconti,
            split,
            label_for=lambda key: translator(f"schedule.{key}"),
        )

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "evaluate_inputs timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return Evaluation(
        inputs=inputs,
        results=results,
        split=split,
        acconto_base=acconto_base,
        schedule=tuple(schedule),
        locale=translator.locale,
        revenue_source=revenue_source,
        transaction_count=len(revenue_transactions),
        inps_max_base=gestione_separata_max_bases().get(inputs.year),
    )


def build_response(evaluation: Evaluation) -> dict[str, Any]:
    """Round and label an evaluation for the JSON API."""

    translator = get_translator(evaluation.locale)
    results = evaluation.results

    rounded_results = {
        "taxableBase": round_currency(results.taxable_base),
        "inps": round_currency(results.inps),
        "baseAfterDeduction": round_currency(results.base_after_deduction),
        "tax": round_currency(results.tax),
        "totalDue": round_currency(results.total_due),
        "effectiveInpsRate": round_rate(results.effective_inps_rate),
        "effectiveTaxRate": round_rate(results.effective_tax_rate),
        "effectiveTotalRate": round_rate(results.effective_total_rate),
    }

    response_model = CalculationResponse.model_validate(
        {
            "inputs": evaluation.inputs.model_dump(by_alias=True),
            "results": rounded_results,
            "labels": {key: translator(f"results.{key}") for key in _RESULT_LABEL_KEYS},
            "split": evaluation.split.as_dict(),
            "accontoBase": round_currency(evaluation.acconto_base),
            "schedule": [
                {
                    "key": item.key,
                    "label": item.label,
                    "amount": round_currency(item.amount),
                    "saldo": round_currency(item.saldo),
                    "acconto": round_currency(item.acconto),
                }
                for item in evaluation.schedule
            ],
            "meta": {
                "year": evaluation.inputs.year,
                "locale": evaluation.locale,
                "revenueSource": evaluation.revenue_source,
                "transactionCount": evaluation.transaction_count,
                "inpsCapped": evaluation.inps_capped,
                "inpsMaxBase": evaluation.inps_max_base,
            },
        }
    )

    return response_model.model_dump(mode="json", by_alias=True, exclude_none=True)


def calculate(payload: Mapping[str, Any] | CalculationRequest) -> dict[str, Any]:
    """Compute the forfettario liability and schedule for ``payload``."""

    if isinstance(payload, CalculationRequest):
        request_model = payload
    else:
        if not isinstance(payload, Mapping):
            raise ValueError("Payload must be a mapping")
        if "inputs" not in payload:
            raise ValueError("Payload must include an 'inputs' section")
        try:
            request_model = CalculationRequest.model_validate(payload)
        except ValidationError as exc:
            raise ValueError(format_validation_error(exc)) from exc

    evaluation = evaluate_inputs(
        request_model.inputs,
        request_model.transactions,
        request_model.locale,
    )
    return build_response(evaluation)


def evaluate_year_record(record: YearRecord, locale: str | None = None) -> Evaluation:
    """Evaluate the stored inputs of ``record`` against its transactions."""

    return evaluate_inputs(record.inputs.as_wire(), record.transactions, locale)


def calculate_year_record(record: YearRecord, locale: str | None = None) -> dict[str, Any]:
    """Return the calculation payload for a stored year record."""

    return build_response(evaluate_year_record(record, locale))


__all__ = [
    "Evaluation",
    "InputValidationError",
    "build_response",
    "calculate",
    "calculate_year_record",
    "evaluate_inputs",
    "evaluate_year_record",
]
