"""
models.py – Value types shared by the conversion engine and factor registry.

All records are frozen dataclasses: factor and region records are created
once when a pack is loaded, everything else is created and discarded per
call.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Literal, Optional

from carbon_conversion.constants import (
    DEFAULT_DECIMALS,
    DEFAULT_ROUNDING_MODE,
    GAS_CO2E,
    MAX_FACTOR_KG_PER_KWH,
)
from carbon_conversion.errors import InvalidFactorError

EnergyUnit = Literal["kWh", "MWh", "GWh"]
MassUnit = Literal["kg", "kgCO2e", "tonnes", "tCO2e"]
RoundingMode = Literal["HALF_UP", "DOWN", "TRUNC"]
Scope = Literal["operational", "marginal", "baseline"]
GasType = Literal["CO2e"]


# ─────────────────────────────────────────────────────────────
# Factor registry records
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FactorSource:
    """Provenance of an emission factor."""

    name: str
    url: Optional[str] = None
    published_at: Optional[date] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class EmissionFactor:
    """
    Grid emission factor in kg CO₂e per kWh for one region, scope and
    effective window.  ``effective_to=None`` means open-ended.

    The region is stored upper-cased; the value must lie in
    ``(0, MAX_FACTOR_KG_PER_KWH]`` and ``uncertainty_pct`` in ``[0, 100]``.
    Violations raise ``InvalidFactorError``.
    """

    id: str
    region: str
    scope: Scope
    value_kg_per_kwh: float
    effective_from: date
    source: FactorSource
    version: str
    effective_to: Optional[date] = None
    gas: GasType = GAS_CO2E
    uncertainty_pct: Optional[float] = None
    methodology: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "region", self.region.strip().upper())
        if not 0 < self.value_kg_per_kwh <= MAX_FACTOR_KG_PER_KWH:
            raise InvalidFactorError(
                f"{self.id}: value_kg_per_kwh {self.value_kg_per_kwh!r} "
                f"is outside (0, {MAX_FACTOR_KG_PER_KWH}]"
            )
        if self.uncertainty_pct is not None and not 0 <= self.uncertainty_pct <= 100:
            raise InvalidFactorError(
                f"{self.id}: uncertainty_pct {self.uncertainty_pct!r} is outside [0, 100]"
            )
        if self.effective_to is not None and self.effective_from > self.effective_to:
            raise InvalidFactorError(
                f"{self.id}: effective_from {self.effective_from} "
                f"is after effective_to {self.effective_to}"
            )

    def covers(self, on: date) -> bool:
        """True when *on* falls inside ``[effective_from, effective_to]``."""
        if on < self.effective_from:
            return False
        return self.effective_to is None or on <= self.effective_to

    def overlaps(self, start: Optional[date], end: Optional[date]) -> bool:
        """True when the effective window intersects ``[start, end]`` at all."""
        if start is not None and self.effective_to is not None and self.effective_to < start:
            return False
        if end is not None and self.effective_from > end:
            return False
        return True


@dataclass(frozen=True)
class RegionMapping:
    """Canonical region code with optional ISO / UN M49 aliases."""

    code: str
    name: str
    iso2: Optional[str] = None
    iso3: Optional[str] = None
    un_m49: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", self.code.strip().upper())

    def aliases(self) -> tuple[str, ...]:
        return tuple(
            alias.upper()
            for alias in (self.code, self.iso2, self.iso3, self.un_m49)
            if alias
        )


# ─────────────────────────────────────────────────────────────
# Conversion inputs / outputs
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RoundingSpec:
    decimals: int = DEFAULT_DECIMALS
    mode: RoundingMode = DEFAULT_ROUNDING_MODE


DEFAULT_ROUNDING = RoundingSpec()


@dataclass(frozen=True)
class ConversionInput:
    """One energy quantity to convert with an explicit factor."""

    energy: float
    input_unit: str
    factor_kg_per_kwh: float
    rounding: Optional[RoundingSpec] = None


@dataclass(frozen=True)
class UncertaintyBounds:
    plus_minus_pct: float
    lower_tco2e: float
    upper_tco2e: float


@dataclass(frozen=True)
class UncertainEmission:
    """Rounded tonnes CO₂e with symmetric ± percentage bounds."""

    base_tco2e: float
    lower_tco2e: float
    upper_tco2e: float
    uncertainty_pct: float


@dataclass(frozen=True)
class ConversionResult:
    kg_co2e: float
    t_co2e: float
    factor_kg_per_kwh: float
    energy_kwh: float
    uncertainty: Optional[UncertaintyBounds] = None
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MethodologyAdjustments:
    """Multipliers applied to energy before an avoided-emissions conversion."""

    efficiency_factor: Optional[float] = None
    degradation_factor: Optional[float] = None
    uncertainty_pct: Optional[float] = None


@dataclass(frozen=True)
class FactorFilter:
    """Composable predicates for ``list_factors``; ``None`` disables one."""

    region: Optional[str] = None
    scope: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
