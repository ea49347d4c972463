"""Pydantic models describing the public API surface.

Two shapes exist for calculator inputs. ``CalculatorInputValues`` is the loose
form/storage record where numbers travel as strings. ``CalculatorInputs`` is
the validated record consumed by the calculation engine; it is a tagged union
over the split model so a custom split can only exist with percentages that
add up to one.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from numbers import Real
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    Tag,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from forfettario.backend.config.schema import TAX_RATE_TIERS

__all__ = [
    "CALCULATOR_INPUTS_ADAPTER",
    "CalculationRequest",
    "CalculationResponse",
    "CalculatorInputValues",
    "CalculatorInputs",
    "CustomSplitInputs",
    "DEFAULT_SPLIT_JUNE",
    "DEFAULT_SPLIT_NOVEMBER",
    "InpsType",
    "NUMERIC_INPUT_FIELDS",
    "ResponseMeta",
    "ResultsPayload",
    "RevenueTransaction",
    "ScheduleItemPayload",
    "SPLIT_TOLERANCE",
    "SplitModel",
    "SplitPayload",
    "StandardSplitInputs",
    "TransactionAttachment",
    "TransactionTemplate",
    "YearRecord",
    "coerce_number",
    "format_validation_error",
    "normalise_date",
    "parse_amount",
]


InpsType = Literal["gestione_separata", "artigiani_commercianti"]
SplitModel = Literal["standard", "custom"]

DEFAULT_SPLIT_JUNE = 0.4
DEFAULT_SPLIT_NOVEMBER = 0.6
SPLIT_TOLERANCE = 0.001

# Inclusive (lower, upper) bounds; ``None`` leaves the side open.
_NUMBER_BOUNDS: dict[str, tuple[float | None, float | None]] = {
    "year": (1900, 2100),
    "revenue": (0, None),
    "coeff": (0, 1),
    "tax_rate": (0, 1),
    "inps_rate": (0, 1),
    "custom_split_june": (0, 1),
    "custom_split_november": (0, 1),
}

NUMERIC_INPUT_FIELDS: tuple[str, ...] = tuple(_NUMBER_BOUNDS)

_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


def coerce_number(value: Any) -> float | None:
    """Return ``value`` as a finite float, or ``None`` when it cannot be read.

    Strings are trimmed and must use ``.`` as the decimal separator.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, Real):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        text = value.strip()
        if not text or not _NUMBER_PATTERN.match(text):
            return None
        number = float(text)
        return number if math.isfinite(number) else None
    return None


def parse_amount(value: Any) -> float | None:
    """Parse an imported transaction amount, accepting a decimal comma."""

    if isinstance(value, str):
        value = value.strip().replace(",", ".", 1)
    return coerce_number(value)


def normalise_date(value: Any) -> str | None:
    """Return an ISO ``YYYY-MM-DD`` string for ``value`` or ``None``."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _ISO_DATE_PREFIX.match(text)
    candidate = match.group(1) if match else text
    try:
        return date.fromisoformat(candidate).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_bounded_number(value: Any, field_name: str) -> float:
    if _is_blank(value):
        raise PydanticCustomError("required", "value is required")

    number = coerce_number(value)
    if number is None:
        raise PydanticCustomError("not_a_number", "value must be a number")

    lower, upper = _NUMBER_BOUNDS[field_name]
    if lower is not None and number < lower:
        raise PydanticCustomError("too_small", "value must be >= {min}", {"min": lower})
    if upper is not None and number > upper:
        raise PydanticCustomError("too_large", "value must be <= {max}", {"max": upper})
    return number


def _stringify_number(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or not isinstance(value, Real):
        return ""
    number = float(value)
    if not math.isfinite(number):
        return ""
    if isinstance(value, int) or number.is_integer():
        return str(int(number))
    return repr(number)


class CalculatorInputValues(BaseModel):
    """Loose calculator inputs as entered in a form or persisted per year."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    year: str = ""
    revenue: str = ""
    coeff: str = ""
    tax_rate: str = ""
    inps_type: InpsType = "gestione_separata"
    inps_rate: str = ""
    inps_deductible: StrictBool = True
    apply_acconti: StrictBool = True
    split_model: SplitModel = "standard"
    custom_split_june: str = ""
    custom_split_november: str = ""

    @field_validator(*NUMERIC_INPUT_FIELDS, mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return _stringify_number(value)

    def as_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class _CalculatorInputsBase(BaseModel):
    """Fields and rules shared by both split variants."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    year: int
    revenue: float
    coeff: float
    tax_rate: float
    inps_type: InpsType
    inps_rate: float
    inps_deductible: StrictBool
    apply_acconti: StrictBool

    @field_validator("revenue", "coeff", "tax_rate", "inps_rate", mode="before")
    @classmethod
    def _parse_numbers(cls, value: Any, info: ValidationInfo) -> float:
        return _parse_bounded_number(value, info.field_name)

    @field_validator("year", mode="before")
    @classmethod
    def _parse_year(cls, value: Any) -> int:
        number = _parse_bounded_number(value, "year")
        if not number.is_integer():
            raise PydanticCustomError("not_integer", "value must be a whole number")
        return int(number)

    @field_validator("tax_rate")
    @classmethod
    def _require_tax_tier(cls, value: float) -> float:
        if value not in TAX_RATE_TIERS:
            raise PydanticCustomError("tax_rate_tier", "value must be 0.05 or 0.15")
        return value


class StandardSplitInputs(_CalculatorInputsBase):
    """Inputs using the statutory 40/60 acconto split."""

    split_model: Literal["standard"] = "standard"
    custom_split_june: float = DEFAULT_SPLIT_JUNE
    custom_split_november: float = DEFAULT_SPLIT_NOVEMBER

    @field_validator("custom_split_june", "custom_split_november", mode="before")
    @classmethod
    def _parse_optional_split(cls, value: Any, info: ValidationInfo) -> float:
        if _is_blank(value):
            if info.field_name == "custom_split_june":
                return DEFAULT_SPLIT_JUNE
            return DEFAULT_SPLIT_NOVEMBER
        return _parse_bounded_number(value, info.field_name)


class CustomSplitInputs(_CalculatorInputsBase):
    """Inputs with user-defined June/November acconto percentages."""

    split_model: Literal["custom"] = "custom"
    custom_split_june: float
    custom_split_november: float

    @field_validator("custom_split_june", "custom_split_november", mode="before")
    @classmethod
    def _parse_split(cls, value: Any, info: ValidationInfo) -> float:
        return _parse_bounded_number(value, info.field_name)

    @model_validator(mode="after")
    def _require_full_split(self) -> "CustomSplitInputs":
        total = self.custom_split_june + self.custom_split_november
        if not math.isfinite(total) or abs(total - 1) > SPLIT_TOLERANCE:
            raise PydanticCustomError("split_total", "split must equal 1.00")
        return self


def _split_model_tag(value: Any) -> str | None:
    if isinstance(value, Mapping):
        tag = value.get("splitModel", value.get("split_model"))
    else:
        tag = getattr(value, "split_model", None)
    return tag if isinstance(tag, str) else None


# The tag callable runs before either variant, so an unknown split model is
# reported once instead of once per variant.
CalculatorInputs = Annotated[
    Union[
        Annotated[StandardSplitInputs, Tag("standard")],
        Annotated[CustomSplitInputs, Tag("custom")],
    ],
    Discriminator(
        _split_model_tag,
        custom_error_type="invalid_split_model",
        custom_error_message="split model must be 'standard' or 'custom'",
    ),
]

CALCULATOR_INPUTS_ADAPTER: TypeAdapter[StandardSplitInputs | CustomSplitInputs] = (
    TypeAdapter(CalculatorInputs)
)


class TransactionAttachment(BaseModel):
    """Metadata describing a file attached to a revenue transaction."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    id: str
    transaction_id: str
    url: str
    content_type: str = "application/octet-stream"
    original_name: str
    size: int = Field(default=0, ge=0)
    created_at: str


class RevenueTransaction(BaseModel):
    """A single revenue receipt contributing to the annual revenue."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(default_factory=lambda: str(uuid4()))
    date: str
    amount: float
    description: str | None = None
    sender: str | None = None
    bill_to: str | None = None
    notes: str | None = None
    causale: str | None = None
    attachments: list[TransactionAttachment] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return str(uuid4())

    @field_validator("date", mode="before")
    @classmethod
    def _normalise_date(cls, value: Any) -> str:
        normalised = normalise_date(value)
        if normalised is None:
            raise ValueError("Transaction date must be an ISO date (YYYY-MM-DD)")
        return normalised

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> float:
        amount = parse_amount(value)
        if amount is None:
            raise ValueError("Transaction amount must be a number")
        return amount

    @field_validator("description", "sender", "bill_to", "notes", "causale", mode="before")
    @classmethod
    def _trim_optional_text(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        trimmed = value.strip()
        return trimmed or None

    @field_validator("attachments", mode="before")
    @classmethod
    def _default_attachments(cls, value: Any) -> Any:
        return [] if value is None else value

    def as_wire(self, *, include_attachments: bool = False) -> dict[str, Any]:
        exclude = None if include_attachments else {"attachments"}
        return self.model_dump(by_alias=True, exclude_none=True, exclude=exclude)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class YearRecord(BaseModel):
    """Everything stored for one fiscal year."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    year: int = Field(..., ge=1900, le=2100)
    inputs: CalculatorInputValues
    defaults: CalculatorInputValues
    transactions: list[RevenueTransaction] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=_utc_now)

    @field_validator("last_updated")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def as_wire(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "inputs": self.inputs.as_wire(),
            "defaults": self.defaults.as_wire(),
            "transactions": [transaction.as_wire() for transaction in self.transactions],
            "lastUpdated": self.last_updated.isoformat(),
        }


class TransactionTemplate(BaseModel):
    """Reusable sender/bill-to/notes presets for new transactions."""

    model_config = ConfigDict(
        extra="ignore", alias_generator=to_camel, populate_by_name=True
    )

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    sender: str | None = None
    bill_to: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("name", mode="before")
    @classmethod
    def _require_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise PydanticCustomError("required", "Name is required")
        return value.strip()

    @field_validator("sender", "bill_to", "notes", mode="before")
    @classmethod
    def _trim_optional_text(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        trimmed = value.strip()
        return trimmed or None

    @field_validator("created_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def as_wire(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"created_at"})
        payload["createdAt"] = self.created_at.isoformat()
        return payload


class CalculationRequest(BaseModel):
    """Envelope accepted by the calculation endpoint."""

    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )

    inputs: dict[str, Any]
    transactions: list[RevenueTransaction] = Field(default_factory=list)
    locale: str = Field(default="en")

    @field_validator("inputs", mode="before")
    @classmethod
    def _require_inputs_mapping(cls, value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(by_alias=True)
        if not isinstance(value, Mapping):
            raise TypeError("Inputs section must be an object mapping fields to values")
        return dict(value)

    @field_validator("transactions", mode="before")
    @classmethod
    def _normalise_transactions(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("locale", mode="before")
    @classmethod
    def _normalise_locale(cls, value: Any) -> str:
        if value is None:
            return "en"
        text = str(value).strip()
        return text or "en"


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid", alias_generator=to_camel, populate_by_name=True
    )


class ResultsPayload(_ResponseModel):
    """Rounded calculation results."""

    taxable_base: float
    inps: float
    base_after_deduction: float
    tax: float
    total_due: float
    effective_inps_rate: float
    effective_tax_rate: float
    effective_total_rate: float


class SplitPayload(_ResponseModel):
    """Acconto split applied to the schedule."""

    june: float
    november: float
    model: SplitModel


class ScheduleItemPayload(_ResponseModel):
    """One payment deadline of the schedule."""

    key: Literal["june", "november"]
    label: str
    amount: float
    saldo: float
    acconto: float


class ResponseMeta(_ResponseModel):
    """Metadata returned alongside the calculation output."""

    year: int
    locale: str
    revenue_source: Literal["inputs", "transactions"]
    transaction_count: int
    inps_capped: bool
    inps_max_base: float | None = None


class CalculationResponse(_ResponseModel):
    """Full response payload produced by the calculation service."""

    inputs: dict[str, Any]
    results: ResultsPayload
    labels: dict[str, str]
    split: SplitPayload
    acconto_base: float
    schedule: list[ScheduleItemPayload]
    meta: ResponseMeta


def format_validation_error(
    error: ValidationError, prefix: str = "Invalid calculation payload"
) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"{prefix}: {details}"
