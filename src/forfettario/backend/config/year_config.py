"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import yaml
from pydantic import ValidationError

from .schema import (
    AccontoConfig,
    CalculatorDefaults,
    ConfigurationError,
    DEFAULT_INPS_ACCONTO_RATE,
    DEFAULT_TAX_ACCONTO_RATE,
    GestioneSeparataConfig,
    InpsConfig,
    TAX_RATE_TIERS,
    TaxYearManifest,
    TaxYearManifestEntry,
    YearConfiguration,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
MANIFEST_FILE = CONFIG_DIRECTORY / "manifest.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


@lru_cache(maxsize=1)
def load_manifest() -> TaxYearManifest:
    """Load and cache the configuration manifest."""

    if not MANIFEST_FILE.exists():
        raise FileNotFoundError("Configuration manifest not found")

    raw_manifest = _load_yaml(MANIFEST_FILE)

    try:
        return TaxYearManifest.model_validate(raw_manifest)
    except ValidationError as error:
        raise ConfigurationError(f"Manifest validation failed: {error}") from error


@lru_cache(maxsize=8)
def load_year_configuration(year: int) -> YearConfiguration:
    """Load configuration for the specified tax year from disk."""

    try:
        manifest_entry = load_manifest().get_entry(year)
    except KeyError as exc:
        raise FileNotFoundError(f"Configuration for year {year} not declared in manifest") from exc

    config_file = CONFIG_DIRECTORY / manifest_entry.resolved_filename
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file for year {year} missing: {config_file.name}"
        )

    raw_config = _load_yaml(config_file)
    raw_config.setdefault("year", year)

    try:
        configuration = YearConfiguration.model_validate(raw_config)
    except ValidationError as error:
        raise ConfigurationError(f"Configuration validation failed for {year}: {error}") from error

    if configuration.year != year:
        raise ConfigurationError(
            f"Configuration year mismatch: expected {year}, found {configuration.year}"
        )

    return configuration


def find_year_configuration(year: int) -> YearConfiguration | None:
    """Return the configuration for ``year`` or ``None`` when it is not declared."""

    if year not in available_years():
        return None
    return load_year_configuration(year)


@lru_cache(maxsize=1)
def gestione_separata_max_bases() -> Mapping[int, float]:
    """Return the read-only year -> INPS maximum contribution base table.

    Only years declared in the manifest with an explicit ``massimale`` appear;
    callers treat any other year as uncapped.
    """

    table: dict[int, float] = {}
    for year in available_years():
        max_base = load_year_configuration(year).gestione_separata_max_base
        if max_base is not None:
            table[year] = max_base
    return MappingProxyType(table)


def acconto_rates(year: int) -> AccontoConfig:
    """Return the acconto rates for ``year``, falling back to statutory defaults."""

    configuration = find_year_configuration(year)
    if configuration is None:
        return AccontoConfig()
    return configuration.acconti


def available_years() -> Sequence[int]:
    """Return the tax years declared in the manifest."""

    return load_manifest().supported_years


def clear_caches() -> None:
    """Drop cached manifest and year data (used after editing files on disk)."""

    load_manifest.cache_clear()
    load_year_configuration.cache_clear()
    gestione_separata_max_bases.cache_clear()


__all__ = [
    "AccontoConfig",
    "CONFIG_DIRECTORY",
    "CalculatorDefaults",
    "ConfigurationError",
    "DEFAULT_INPS_ACCONTO_RATE",
    "DEFAULT_TAX_ACCONTO_RATE",
    "GestioneSeparataConfig",
    "InpsConfig",
    "MANIFEST_FILE",
    "TAX_RATE_TIERS",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "YearConfiguration",
    "acconto_rates",
    "available_years",
    "clear_caches",
    "find_year_configuration",
    "gestione_separata_max_bases",
    "load_manifest",
    "load_year_configuration",
]
