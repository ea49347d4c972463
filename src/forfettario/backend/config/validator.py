"""Utilities for validating year configuration data and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Mapping, Sequence

from .year_config import (
    AccontoConfig,
    CalculatorDefaults,
    GestioneSeparataConfig,
    TAX_RATE_TIERS,
    YearConfiguration,
    available_years,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_gestione_separata(
    scope: str, config: GestioneSeparataConfig
) -> list[str]:
    errors: list[str] = []

    if config.default_rate < 0 or config.default_rate > 1:
        errors.append(_format_scope(scope, "default rate must be between 0 and 1"))

    if config.max_base is None:
        errors.append(
            _format_scope(
                scope,
                "no maximum contribution base declared; contributions will be uncapped",
            )
        )
    elif config.max_base <= 0:
        errors.append(_format_scope(scope, "maximum contribution base must be positive"))

    return errors


def _validate_acconti(scope: str, acconti: AccontoConfig) -> list[str]:
    errors: list[str] = []

    for label, value in {"inps": acconti.inps_rate, "tax": acconti.tax_rate}.items():
        if value < 0 or value > 1:
            errors.append(
                _format_scope(scope, f"{label} acconto rate must be between 0 and 1")
            )

    return errors


def _validate_defaults(scope: str, defaults: CalculatorDefaults) -> list[str]:
    errors: list[str] = []

    if defaults.coeff < 0 or defaults.coeff > 1:
        errors.append(_format_scope(scope, "coefficient must be between 0 and 1"))

    if defaults.tax_rate not in TAX_RATE_TIERS:
        allowed = ", ".join(str(rate) for rate in TAX_RATE_TIERS)
        errors.append(
            _format_scope(scope, f"tax rate must be one of the statutory tiers ({allowed})")
        )

    return errors


def _validate_meta(meta: Mapping[str, object]) -> list[str]:
    errors: list[str] = []

    deadlines = meta.get("payment_deadlines")
    if deadlines is None:
        return errors
    if not isinstance(deadlines, Mapping):
        return [_format_scope("meta.payment_deadlines", "must be a mapping")]

    for key in ("june", "november"):
        if key not in deadlines:
            errors.append(_format_scope("meta.payment_deadlines", f"missing '{key}' entry"))

    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(
        _validate_gestione_separata(
            "inps.gestione_separata", config.inps.gestione_separata
        )
    )
    errors.extend(_validate_acconti("acconti", config.acconti))
    errors.extend(_validate_defaults("defaults", config.defaults))
    errors.extend(_validate_meta(config.meta))

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate configured tax years and report statutory parameter issues."
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
