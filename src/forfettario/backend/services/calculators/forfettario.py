"""Annual liability for the regime forfettario.

Every function here is pure and trusts its caller: inputs are expected to have
passed :func:`forfettario.backend.services.validation.validate_inputs`. No
rounding happens at this layer.
"""

from __future__ import annotations

from collections.abc import Mapping

from forfettario.backend.app.models import (
    CalculatorResults,
    CustomSplitInputs,
    StandardSplitInputs,
)
from forfettario.backend.config.year_config import gestione_separata_max_bases


def compute_taxable_base(revenue: float, coeff: float) -> float:
    """Apply the ATECO profitability coefficient to gross revenue."""

    return revenue * coeff


def resolve_gestione_separata_base(
    taxable_base: float,
    year: int,
    max_bases: Mapping[int, float] | None = None,
) -> float:
    """Cap ``taxable_base`` at the year's contribution ceiling, if one is listed.

    Years missing from the table are uncapped.
    """

    table = gestione_separata_max_bases() if max_bases is None else max_bases
    cap = table.get(year)
    if cap is None:
        return taxable_base
    return min(taxable_base, cap)


def compute_inps_gestione_separata(base: float, inps_rate: float) -> float:
    return base * inps_rate


def compute_tax(base_after_deduction: float, tax_rate: float) -> float:
    return base_after_deduction * tax_rate


def _effective_rate(amount: float, revenue: float) -> float:
    if revenue <= 0:
        return 0.0
    return amount / revenue


def compute_totals(
    inputs: StandardSplitInputs | CustomSplitInputs,
    max_bases: Mapping[int, float] | None = None,
) -> CalculatorResults:
    """Derive taxable base, INPS, substitute tax and effective rates."""

    taxable_base = compute_taxable_base(inputs.revenue, inputs.coeff)

    if inputs.inps_type == "gestione_separata":
        inps_base = resolve_gestione_separata_base(taxable_base, inputs.year, max_bases)
        inps = compute_inps_gestione_separata(inps_base, inputs.inps_rate)
    else:
        # Artigiani/commercianti contributions are not modelled; they count as zero.
        inps = 0.0

    if inputs.inps_deductible:
        base_after_deduction = max(taxable_base - inps, 0.0)
    else:
        base_after_deduction = taxable_base

    tax = compute_tax(base_after_deduction, inputs.tax_rate)
    total_due = inps + tax

    return CalculatorResults(
        taxable_base=taxable_base,
        inps=inps,
        base_after_deduction=base_after_deduction,
        tax=tax,
        total_due=total_due,
        effective_inps_rate=_effective_rate(inps, inputs.revenue),
        effective_tax_rate=_effective_rate(tax, inputs.revenue),
        effective_total_rate=_effective_rate(total_due, inputs.revenue),
    )


__all__ = [
    "compute_inps_gestione_separata",
    "compute_tax",
    "compute_taxable_base",
    "compute_totals",
    "resolve_gestione_separata_base",
]
