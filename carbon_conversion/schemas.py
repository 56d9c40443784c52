"""
schemas.py – Pydantic models for factor packs, region packs and caller input.

This is the validation boundary: raw JSON-shaped data (camelCase keys as
published in factor packs, or snake_case) is checked here and converted to
the frozen records in ``carbon_conversion.models``.  The conversion engine
and registry never see unvalidated dicts.

All date fields use ISO 8601 (YYYY-MM-DD).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from dateutil import parser as dateutil_parser
from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from carbon_conversion.constants import (
    DEFAULT_DECIMALS,
    DEFAULT_ROUNDING_MODE,
    MAX_DECIMALS,
    MAX_FACTOR_KG_PER_KWH,
)
from carbon_conversion.errors import InvalidFactorError
from carbon_conversion.models import (
    ConversionInput,
    EmissionFactor,
    FactorFilter,
    FactorSource,
    RegionMapping,
    RoundingSpec,
)


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def coerce_date(value: Any) -> date | None:
    """
    Return *value* as a ``date``.

    Accepts ``date``, ``datetime`` (date part) and ISO 8601 strings.

    Raises
    ------
    ValueError
        If a string cannot be parsed or the type is unsupported.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        try:
            return dateutil_parser.isoparse(text).date()
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Invalid ISO date: '{value}'") from exc
    raise ValueError(f"Unsupported date value: {value!r}")


class _PackModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ─────────────────────────────────────────────────────────────
# Factor pack
# ─────────────────────────────────────────────────────────────

class FactorSourceSchema(_PackModel):
    """Provenance block of a factor record."""

    name: str = Field(..., min_length=1, description="Publisher or dataset name")
    url: Optional[AnyUrl] = Field(None, description="Link to the source data")
    published_at: Optional[date] = Field(None, alias="publishedAt", description="Publication date")
    note: Optional[str] = None

    @field_validator("published_at", mode="before")
    @classmethod
    def _parse_published_at(cls, value: Any) -> date | None:
        return coerce_date(value)

    def to_record(self) -> FactorSource:
        return FactorSource(
            name=self.name,
            url=str(self.url) if self.url is not None else None,
            published_at=self.published_at,
            note=self.note,
        )


class FactorSchema(_PackModel):
    """One emission factor record as published in a factor pack."""

    id: str = Field(..., min_length=1, description="Unique factor identifier")
    region: str = Field(..., min_length=2, max_length=10, description="Region code (ISO alpha-2 or custom)")
    scope: Literal["operational", "marginal", "baseline"]
    gas: Literal["CO2e"] = "CO2e"
    value_kg_per_kwh: float = Field(
        ...,
        alias="valueKgPerKWh",
        gt=0,
        le=MAX_FACTOR_KG_PER_KWH,
        allow_inf_nan=False,
        description="kg CO₂e per kWh",
    )
    effective_from: date = Field(..., alias="effectiveFrom")
    effective_to: Optional[date] = Field(None, alias="effectiveTo")
    source: FactorSourceSchema
    uncertainty_pct: Optional[float] = Field(None, alias="uncertaintyPct", ge=0, le=100)
    methodology: Optional[str] = None
    version: str = Field(..., min_length=1)

    @field_validator("region")
    @classmethod
    def _upper_region(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("effective_from", "effective_to", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> date | None:
        return coerce_date(value)

    @model_validator(mode="after")
    def _check_window(self) -> "FactorSchema":
        if self.effective_to is not None and self.effective_from > self.effective_to:
            raise ValueError(
                f"effectiveFrom {self.effective_from} is after effectiveTo {self.effective_to}"
            )
        return self

    def to_record(self) -> EmissionFactor:
        return EmissionFactor(
            id=self.id,
            region=self.region,
            scope=self.scope,
            gas=self.gas,
            value_kg_per_kwh=self.value_kg_per_kwh,
            effective_from=self.effective_from,
            effective_to=self.effective_to,
            source=self.source.to_record(),
            uncertainty_pct=self.uncertainty_pct,
            methodology=self.methodology,
            version=self.version,
        )


# ─────────────────────────────────────────────────────────────
# Region pack
# ─────────────────────────────────────────────────────────────

class RegionMappingSchema(_PackModel):
    code: str = Field(..., min_length=1)
    name: str
    iso2: Optional[str] = Field(None, min_length=2, max_length=2)
    iso3: Optional[str] = Field(None, min_length=3, max_length=3)
    un_m49: Optional[str] = Field(None, alias="unM49")

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    def to_record(self) -> RegionMapping:
        return RegionMapping(
            code=self.code,
            name=self.name,
            iso2=self.iso2,
            iso3=self.iso3,
            un_m49=self.un_m49,
        )


# ─────────────────────────────────────────────────────────────
# Caller input
# ─────────────────────────────────────────────────────────────

class RoundingSchema(_PackModel):
    decimals: int = Field(DEFAULT_DECIMALS, ge=0, le=MAX_DECIMALS)
    mode: Literal["HALF_UP", "DOWN", "TRUNC"] = DEFAULT_ROUNDING_MODE

    def to_spec(self) -> RoundingSpec:
        return RoundingSpec(decimals=self.decimals, mode=self.mode)


class ConversionInputSchema(_PackModel):
    """Energy quantity + explicit factor, as accepted by the avoided-emissions API."""

    energy: float = Field(..., ge=0, allow_inf_nan=False)
    input_unit: Literal["kWh", "MWh", "GWh"] = Field(..., alias="inputUnit")
    factor_kg_per_kwh: float = Field(..., alias="factorKgPerKWh", gt=0, allow_inf_nan=False)
    rounding: Optional[RoundingSchema] = None

    def to_input(self) -> ConversionInput:
        return ConversionInput(
            energy=self.energy,
            input_unit=self.input_unit,
            factor_kg_per_kwh=self.factor_kg_per_kwh,
            rounding=self.rounding.to_spec() if self.rounding else None,
        )


class FactorFilterSchema(_PackModel):
    region: Optional[str] = None
    scope: Optional[str] = None
    date_from: Optional[date] = Field(None, alias="from")
    date_to: Optional[date] = Field(None, alias="to")

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> date | None:
        return coerce_date(value)

    def to_filter(self) -> FactorFilter:
        return FactorFilter(
            region=self.region,
            scope=self.scope,
            date_from=self.date_from,
            date_to=self.date_to,
        )


# ─────────────────────────────────────────────────────────────
# Validation entry points
# ─────────────────────────────────────────────────────────────

_FACTOR_PACK = TypeAdapter(list[FactorSchema])
_REGION_PACK = TypeAdapter(list[RegionMappingSchema])


def validate_factor_pack(data: Any) -> list[EmissionFactor]:
    """
    Validate a factor pack (a list of factor dicts) and return records in
    pack order.

    Raises
    ------
    InvalidFactorError
        Wrapping the pydantic ``ValidationError``.
    """
    try:
        schemas = _FACTOR_PACK.validate_python(data)
    except ValidationError as exc:
        raise InvalidFactorError(str(exc)) from exc
    return [s.to_record() for s in schemas]


def validate_region_pack(data: Any) -> list[RegionMapping]:
    try:
        schemas = _REGION_PACK.validate_python(data)
    except ValidationError as exc:
        raise InvalidFactorError(f"region pack: {exc}") from exc
    return [s.to_record() for s in schemas]


def validate_factor(data: Any) -> EmissionFactor:
    try:
        return FactorSchema.model_validate(data).to_record()
    except ValidationError as exc:
        raise InvalidFactorError(str(exc)) from exc


def validate_conversion_input(data: Any) -> ConversionInput:
    """Validate caller input; pydantic ``ValidationError`` propagates."""
    return ConversionInputSchema.model_validate(data).to_input()


def validate_rounding(data: Any) -> RoundingSpec:
    return RoundingSchema.model_validate(data).to_spec()


def validate_factor_filter(data: Any) -> FactorFilter:
    return FactorFilterSchema.model_validate(data).to_filter()
