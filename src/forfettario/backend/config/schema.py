"""Pydantic models describing the tax year configuration schema."""

from __future__ import annotations

from typing import Any, Literal, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    model_validator,
)
from typing_extensions import Self

# Substitute tax tiers: 5% start-up rate and the ordinary 15% rate.
TAX_RATE_TIERS: tuple[float, ...] = (0.05, 0.15)

DEFAULT_INPS_ACCONTO_RATE = 0.8
DEFAULT_TAX_ACCONTO_RATE = 1.0


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class GestioneSeparataConfig(ImmutableModel):
    """Contribution parameters for the INPS Gestione Separata scheme."""

    max_base: float | None = Field(default=None, alias="massimale")
    default_rate: float

    @model_validator(mode="after")
    def _validate_values(self) -> GestioneSeparataConfig:
        if self.default_rate < 0 or self.default_rate > 1:
            raise ConfigurationError("Gestione Separata rate must be between 0 and 1")
        if self.max_base is not None and self.max_base <= 0:
            raise ConfigurationError("Gestione Separata maximum base must be positive")
        return self


class InpsConfig(ImmutableModel):
    """INPS settings grouped by contribution scheme."""

    gestione_separata: GestioneSeparataConfig


class AccontoConfig(ImmutableModel):
    """Share of the current-year liability carried into next-year advances."""

    inps_rate: float = DEFAULT_INPS_ACCONTO_RATE
    tax_rate: float = DEFAULT_TAX_ACCONTO_RATE

    @model_validator(mode="after")
    def _validate_rates(self) -> AccontoConfig:
        if self.inps_rate < 0 or self.tax_rate < 0:
            raise ConfigurationError("Acconto rates must be non-negative")
        return self


class CalculatorDefaults(ImmutableModel):
    """Form defaults offered when a year record is created."""

    coeff: float = 0.67
    tax_rate: float = 0.05
    inps_type: Literal["gestione_separata", "artigiani_commercianti"] = (
        "gestione_separata"
    )
    inps_deductible: bool = True
    apply_acconti: bool = True
    split_model: Literal["standard", "custom"] = "standard"


class YearConfiguration(ImmutableModel):
    """Structured representation of a tax year configuration."""

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    inps: InpsConfig
    acconti: AccontoConfig = Field(default_factory=AccontoConfig)
    defaults: CalculatorDefaults = Field(default_factory=CalculatorDefaults)

    @model_validator(mode="before")
    @classmethod
    def _prepare_sections(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")

        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")

        inps = prepared.get("inps")
        if not isinstance(inps, Mapping) or not isinstance(
            inps.get("gestione_separata"), Mapping
        ):
            raise ConfigurationError(
                "Configuration must include an 'inps.gestione_separata' section"
            )

        for section in ("acconti", "defaults"):
            if prepared.get(section) is None:
                prepared.pop(section, None)

        return prepared

    @model_validator(mode="after")
    def _validate_year(self) -> Self:
        if self.year < 1900 or self.year > 2100:
            raise ConfigurationError("Configuration year must be between 1900 and 2100")
        return self

    @property
    def gestione_separata_max_base(self) -> float | None:
        return self.inps.gestione_separata.max_base


class TaxYearManifestEntry(ImmutableModel):
    """Entry describing a supported tax year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class TaxYearManifest(ImmutableModel):
    """Manifest describing the available tax year configuration files."""

    years: Sequence[TaxYearManifestEntry]

    @model_validator(mode="after")
    def _validate_years(self) -> TaxYearManifest:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> TaxYearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "AccontoConfig",
    "CalculatorDefaults",
    "ConfigurationError",
    "DEFAULT_INPS_ACCONTO_RATE",
    "DEFAULT_TAX_ACCONTO_RATE",
    "GestioneSeparataConfig",
    "ImmutableModel",
    "InpsConfig",
    "TAX_RATE_TIERS",
    "TaxYearManifest",
    "TaxYearManifestEntry",
    "ValidationError",
    "YearConfiguration",
]
