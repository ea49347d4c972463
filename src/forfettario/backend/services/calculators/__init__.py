"""Calculation helpers for the forfettario liability and payment schedule."""

from .forfettario import (
    compute_inps_gestione_separata,
    compute_tax,
    compute_taxable_base,
    compute_totals,
    resolve_gestione_separata_base,
)
from .schedule import (
    DEFAULT_SPLIT,
    compute_acconto_base,
    compute_schedule,
    resolve_schedule_split,
)
from .utils import (
    format_currency,
    format_decimal,
    format_percentage,
    round_currency,
    round_rate,
)

__all__ = [
    "DEFAULT_SPLIT",
    "compute_acconto_base",
    "compute_inps_gestione_separata",
    "compute_schedule",
    "compute_tax",
    "compute_taxable_base",
    "compute_totals",
    "format_currency",
    "format_decimal",
    "format_percentage",
    "resolve_gestione_separata_base",
    "resolve_schedule_split",
    "round_currency",
    "round_rate",
]
