"""Render a calculation as copyable text, CSV or PDF."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Iterable

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from forfettario.backend.app.localization import Translator, get_translator

from .calculation_service import Evaluation
from .calculators import format_currency, format_decimal, format_percentage

_PDF_CURRENCY = "EUR"


def _translator_for(evaluation: Evaluation, locale: str | None) -> Translator:
    return get_translator(locale or evaluation.locale)


def _inps_scheme(evaluation: Evaluation, translator: Translator) -> tuple[str, str]:
    inputs = evaluation.inputs
    scheme = translator(f"inps_type.{inputs.inps_type}")
    if inputs.inps_type == "gestione_separata":
        return scheme, f" {format_percentage(inputs.inps_rate)}"
    return scheme, ""


def summary_lines(
    evaluation: Evaluation, translator: Translator, currency: str = "€"
) -> list[str]:
    """Return the human-readable summary, one line per figure."""

    inputs = evaluation.inputs
    results = evaluation.results
    scheme, rate = _inps_scheme(evaluation, translator)

    def money(value: float) -> str:
        return format_currency(value, currency)

    lines = [
        translator("summary.title", year=inputs.year),
        translator("summary.revenue", value=money(inputs.revenue)),
        translator("summary.coefficient", value=format_decimal(inputs.coeff, 2)),
        translator("summary.taxable_base", value=money(results.taxable_base)),
        translator("summary.inps", scheme=scheme, rate=rate, value=money(results.inps)),
        translator(
            "summary.base_after_deduction", value=money(results.base_after_deduction)
        ),
        translator(
            "summary.tax",
            rate=format_percentage(inputs.tax_rate),
            value=money(results.tax),
        ),
        translator("summary.total_due", value=money(results.total_due)),
    ]

    if inputs.apply_acconti:
        lines.append(translator("summary.schedule_heading"))
        for item in evaluation.schedule:
            if item.key == "june":
                lines.append(
                    translator(
                        "summary.schedule_june",
                        year=inputs.year,
                        next_year=inputs.year + 1,
                        value=money(item.amount),
                    )
                )
            else:
                lines.append(
                    translator(
                        "summary.schedule_november",
                        next_year=inputs.year + 1,
                        value=money(item.amount),
                    )
                )
        lines.append(
            translator(
                "summary.split",
                june=format_percentage(evaluation.split.june),
                november=format_percentage(evaluation.split.november),
            )
        )
    else:
        lines.append(
            translator(
                "summary.saldo_only",
                year=inputs.year,
                value=money(results.total_due),
            )
        )

    return lines


def render_text(evaluation: Evaluation, locale: str | None = None) -> str:
    translator = _translator_for(evaluation, locale)
    return "\n".join(summary_lines(evaluation, translator))


def _export_rows(
    evaluation: Evaluation, translator: Translator, currency: str
) -> Iterable[tuple[str, str, str]]:
    inputs = evaluation.inputs
    results = evaluation.results

    def money(value: float) -> str:
        return format_currency(value, currency)

    def flag(value: bool) -> str:
        return translator("export.yes") if value else translator("export.no")

    section = translator("export.inputs")
    yield section, translator("fields.year"), str(inputs.year)
    yield section, translator("fields.revenue"), money(inputs.revenue)
    yield section, translator("fields.coeff"), format_decimal(inputs.coeff, 2)
    yield section, translator("fields.taxRate"), format_percentage(inputs.tax_rate)
    yield section, translator("fields.inpsType"), translator(f"inps_type.{inputs.inps_type}")
    yield section, translator("fields.inpsRate"), format_percentage(inputs.inps_rate)
    yield section, translator("fields.inpsDeductible"), flag(inputs.inps_deductible)
    yield section, translator("fields.applyAcconti"), flag(inputs.apply_acconti)
    yield (
        section,
        translator("fields.splitModel"),
        f"{format_percentage(evaluation.split.june)} / "
        f"{format_percentage(evaluation.split.november)}",
    )

    section = translator("export.results")
    yield section, translator("results.taxableBase"), money(results.taxable_base)
    yield section, translator("results.inps"), money(results.inps)
    yield (
        section,
        translator("results.baseAfterDeduction"),
        money(results.base_after_deduction),
    )
    yield section, translator("results.tax"), money(results.tax)
    yield section, translator("results.totalDue"), money(results.total_due)
    yield (
        section,
        translator("results.effectiveTotalRate"),
        format_percentage(results.effective_total_rate),
    )

    section = translator("export.schedule")
    for item in evaluation.schedule:
        yield section, item.label, money(item.amount)


def render_csv(evaluation: Evaluation, locale: str | None = None) -> str:
    translator = _translator_for(evaluation, locale)

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(
        [translator("export.section"), translator("export.item"), translator("export.value")]
    )
    for row in _export_rows(evaluation, translator, "€"):
        writer.writerow(row)
    return buffer.getvalue()


def _latin1(text: str) -> str:
    # Core PDF fonts only cover latin-1.
    return text.encode("latin-1", "replace").decode("latin-1")


def render_pdf(evaluation: Evaluation, locale: str | None = None) -> bytes:
    translator = _translator_for(evaluation, locale)

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    pdf.set_title(_latin1(translator("export.title")))
    pdf.set_text_color(33, 37, 41)

    pdf.set_font("Helvetica", style="B", size=16)
    pdf.cell(
        0,
        10,
        _latin1(translator("summary.title", year=evaluation.inputs.year)),
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )

    current_section = None
    for section, label, value in _export_rows(evaluation, translator, _PDF_CURRENCY):
        if section != current_section:
            pdf.ln(3)
            pdf.set_font("Helvetica", style="B", size=12)
            pdf.cell(0, 8, _latin1(section), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_font("Helvetica", size=11)
            current_section = section
        pdf.multi_cell(
            pdf.epw, 6, _latin1(f"{label}: {value}"), new_x=XPos.LMARGIN, new_y=YPos.NEXT
        )

    pdf.ln(6)
    pdf.set_font("Helvetica", size=9)
    pdf.multi_cell(pdf.epw, 5, _latin1(translator("export.generated_with")))

    output = pdf.output()
    if isinstance(output, (bytes, bytearray)):
        return bytes(output)
    return output.encode("latin1")


__all__ = ["render_csv", "render_pdf", "render_text", "summary_lines"]
