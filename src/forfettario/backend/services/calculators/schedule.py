"""June/November payment schedule for saldo and acconti."""

from __future__ import annotations

from typing import Callable

from forfettario.backend.app.models import (
    DEFAULT_SPLIT_JUNE,
    DEFAULT_SPLIT_NOVEMBER,
    CustomSplitInputs,
    ScheduleItem,
    ScheduleSplit,
    StandardSplitInputs,
)
from forfettario.backend.config.schema import (
    DEFAULT_INPS_ACCONTO_RATE,
    DEFAULT_TAX_ACCONTO_RATE,
)

DEFAULT_SPLIT = ScheduleSplit(june=DEFAULT_SPLIT_JUNE, november=DEFAULT_SPLIT_NOVEMBER)


def resolve_schedule_split(
    inputs: StandardSplitInputs | CustomSplitInputs,
) -> ScheduleSplit:
    """Return the June/November fractions of the acconto base."""

    if inputs.split_model == "custom":
        return ScheduleSplit(
            june=inputs.custom_split_june,
            november=inputs.custom_split_november,
            model="custom",
        )
    return DEFAULT_SPLIT


def compute_acconto_base(
    inps: float,
    tax: float,
    inps_rate: float = DEFAULT_INPS_ACCONTO_RATE,
    tax_rate: float = DEFAULT_TAX_ACCONTO_RATE,
) -> float:
    """Return the amount carried into next year's advance payments.

    Only part of the INPS contribution is due in advance, while the substitute
    tax is carried in full.
    """

    return inps * inps_rate + tax * tax_rate


def _identity(key: str) -> str:
    return key


def compute_schedule(
    saldo: float,
    acconto_base: float,
    acconto_enabled: bool,
    split: ScheduleSplit,
    label_for: Callable[[str], str] = _identity,
) -> list[ScheduleItem]:
    """Return the payment items in deadline order.

    June always carries the saldo. With acconti enabled the first advance is
    added to June and the second becomes a separate November item.
    """

    if not acconto_enabled:
        return [
            ScheduleItem(
                key="june",
                label=label_for("june"),
                amount=saldo,
                saldo=saldo,
                acconto=0.0,
            )
        ]

    acconto_june = acconto_base * split.june
    acconto_november = acconto_base * split.november

    return [
        ScheduleItem(
            key="june",
            label=label_for("june"),
            amount=saldo + acconto_june,
            saldo=saldo,
            acconto=acconto_june,
        ),
        ScheduleItem(
            key="november",
            label=label_for("november"),
            amount=acconto_november,
            saldo=0.0,
            acconto=acconto_november,
        ),
    ]


__all__ = [
    "DEFAULT_SPLIT",
    "compute_acconto_base",
    "compute_schedule",
    "resolve_schedule_split",
]
