"""Unit tests for the text, CSV and PDF summary renderers."""

from __future__ import annotations

import csv
from io import StringIO

import pytest

from forfettario.backend.services.calculation_service import evaluate_inputs
from forfettario.backend.services.calculators import (
    format_currency,
    format_decimal,
    format_percentage,
)
from forfettario.backend.services.summary_service import (
    render_csv,
    render_pdf,
    render_text,
)


def test_text_summary_lists_figures_and_schedule(base_inputs: dict) -> None:
    lines = render_text(evaluate_inputs(base_inputs)).splitlines()

    assert lines[0] == "Italian forfettario tax estimate (2024)"
    assert "Revenue: 11.552,62 €" in lines
    assert "Coefficient: 0,67" in lines
    assert "INPS (Gestione Separata 26%): 2.012,47 €" in lines
    assert "Imposta sostitutiva (5%): 286,39 €" in lines
    assert "Total due: 2.298,86 €" in lines
    assert "June: saldo 2024 + 1st acconto 2025 = 3.057,40 €" in lines
    assert "November: 2nd acconto 2025 = 1.137,82 €" in lines
    assert lines[-1] == (
        "Acconto split: 40% / 60% (estimate based on the current year total)."
    )


def test_text_summary_without_acconti_shows_saldo_only(base_inputs: dict) -> None:
    base_inputs["applyAcconti"] = False

    text = render_text(evaluate_inputs(base_inputs))

    assert text.splitlines()[-1] == "Schedule: June saldo 2024 = 2.298,86 €"
    assert "Acconto split" not in text


def test_text_summary_for_artigiani_omits_rate(base_inputs: dict) -> None:
    base_inputs["inpsType"] = "artigiani_commercianti"

    text = render_text(evaluate_inputs(base_inputs))

    assert "INPS (Artigiani/Commercianti): 0,00 €" in text.splitlines()


def test_text_summary_follows_locale(base_inputs: dict) -> None:
    text = render_text(evaluate_inputs(base_inputs, locale="it"))

    assert text.splitlines()[0] == "Stima imposte regime forfettario (2024)"
    assert "Totale dovuto: 2.298,86 €" in text


def test_csv_export_has_header_and_sections(base_inputs: dict) -> None:
    rows = list(csv.reader(StringIO(render_csv(evaluate_inputs(base_inputs)))))

    assert rows[0] == ["Section", "Item", "Value"]
    assert ["Inputs", "Revenue", "11.552,62 €"] in rows
    assert ["Inputs", "INPS deductible", "Yes"] in rows
    assert ["Results", "Total due", "2.298,86 €"] in rows
    assert ["Schedule", "June", "3.057,40 €"] in rows
    assert ["Schedule", "November", "1.137,82 €"] in rows


def test_pdf_export_produces_document(base_inputs: dict) -> None:
    document = render_pdf(evaluate_inputs(base_inputs, locale="it"))

    assert isinstance(document, bytes)
    assert document.startswith(b"%PDF")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1234.5, "1.234,50"), (0, "0,00"), (-1234567.891, "-1.234.567,89"), (-0.001, "0,00")],
)
def test_format_decimal_uses_italian_separators(value: float, expected: str) -> None:
    assert format_decimal(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.4, "40%"), (0.26, "26%"), (0.2607, "26,07%"), (0.261, "26,1%"), (0.05, "5%")],
)
def test_format_percentage_trims_trailing_zeros(value: float, expected: str) -> None:
    assert format_percentage(value) == expected


def test_format_currency_appends_symbol() -> None:
    assert format_currency(1_000) == "1.000,00 €"
    assert format_currency(2.5, "EUR") == "2,50 EUR"
