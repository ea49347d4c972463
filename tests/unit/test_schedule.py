"""Unit tests for the payment schedule resolver."""

from __future__ import annotations

import pytest

from forfettario.backend.app.models import (
    CustomSplitInputs,
    ScheduleSplit,
    StandardSplitInputs,
)
from forfettario.backend.services.calculators import (
    DEFAULT_SPLIT,
    compute_acconto_base,
    compute_schedule,
    resolve_schedule_split,
)

COMMON_INPUTS = {
    "year": 2024,
    "revenue": 50_000,
    "coeff": 0.78,
    "tax_rate": 0.15,
    "inps_type": "gestione_separata",
    "inps_rate": 0.2607,
    "inps_deductible": True,
    "apply_acconti": True,
}


def test_acconto_base_uses_statutory_defaults() -> None:
    assert compute_acconto_base(1_000, 500) == pytest.approx(1_300)


def test_acconto_base_accepts_custom_rates() -> None:
    assert compute_acconto_base(1_000, 500, inps_rate=1.0, tax_rate=0.5) == pytest.approx(
        1_250
    )


def test_schedule_with_acconti_has_june_and_november_items() -> None:
    schedule = compute_schedule(1_000, 1_300, True, ScheduleSplit(june=0.4, november=0.6))

    assert [item.key for item in schedule] == ["june", "november"]
    june, november = schedule
    assert june.amount == pytest.approx(1_520)
    assert june.saldo == pytest.approx(1_000)
    assert june.acconto == pytest.approx(520)
    assert november.amount == pytest.approx(780)
    assert november.saldo == 0
    assert november.acconto == pytest.approx(780)


@pytest.mark.parametrize("acconto_base", [0, 1_300, 99_999])
def test_schedule_without_acconti_is_single_saldo(acconto_base: float) -> None:
    schedule = compute_schedule(1_000, acconto_base, False, ScheduleSplit(0.3, 0.7, "custom"))

    assert len(schedule) == 1
    item = schedule[0]
    assert item.key == "june"
    assert item.amount == 1_000
    assert item.saldo == 1_000
    assert item.acconto == 0


def test_schedule_labels_come_from_callback() -> None:
    schedule = compute_schedule(
        100, 100, True, DEFAULT_SPLIT, label_for=lambda key: key.upper()
    )

    assert [item.label for item in schedule] == ["JUNE", "NOVEMBER"]


def test_standard_split_ignores_custom_percentages() -> None:
    inputs = StandardSplitInputs.model_validate(
        {**COMMON_INPUTS, "split_model": "standard", "custom_split_june": 0.9,
         "custom_split_november": 0.1}
    )

    split = resolve_schedule_split(inputs)

    assert split == ScheduleSplit(june=0.4, november=0.6, model="standard")


def test_custom_split_is_taken_from_inputs() -> None:
    inputs = CustomSplitInputs.model_validate(
        {**COMMON_INPUTS, "split_model": "custom", "custom_split_june": 0.3,
         "custom_split_november": 0.7}
    )

    split = resolve_schedule_split(inputs)

    assert split.june == 0.3
    assert split.november == 0.7
    assert split.as_dict() == {"june": 0.3, "november": 0.7, "model": "custom"}
