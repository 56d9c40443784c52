"""
grid.py – Grid-electricity CO₂e conversion engine.

Formula
────────
 kg CO₂e = energy_kWh × factor (kg CO₂e / kWh)
 t  CO₂e = kg CO₂e ÷ 1000

Validation runs before any arithmetic, in this order: non-finite energy or
factor, negative energy, negative factor, unknown unit.  Nothing is returned
when a check fails.  Aggregates add unrounded per-item values with
``safe_sum`` and round once at the end.

Usage
──────
    from carbon_conversion.grid import convert, to_co2e_tonnes_rounded

    to_co2e_tonnes_rounded(12345.678, "kWh", 0.708)          # 8.74074
    convert(1.2, "MWh", region="IN", date="2024-06-30")      # ConversionResult
"""
from __future__ import annotations

import math
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from carbon_conversion.arithmetic import round_stable, safe_multiply, safe_sum
from carbon_conversion.constants import (
    DEFAULT_DECIMALS,
    DEFAULT_ROUNDING_MODE,
    KG_PER_TONNE,
    SCOPE_BASELINE,
)
from carbon_conversion.errors import (
    NegativeEnergyError,
    NegativeFactorError,
    NonFiniteInputError,
)
from carbon_conversion.factors import FactorRegistry, default_registry
from carbon_conversion.models import (
    DEFAULT_ROUNDING,
    ConversionInput,
    ConversionResult,
    RoundingSpec,
    UncertaintyBounds,
    UncertainEmission,
)
from carbon_conversion.units import energy_conversion_factor, normalize_energy


# ─────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────

def _check_energy(energy: float, unit: str) -> None:
    if not math.isfinite(energy):
        raise NonFiniteInputError("energy", energy)
    if energy < 0:
        raise NegativeEnergyError(energy)
    energy_conversion_factor(unit)


def _check_inputs(energy: float, factor_kg_per_kwh: float) -> None:
    if not math.isfinite(energy):
        raise NonFiniteInputError("energy", energy)
    if not math.isfinite(factor_kg_per_kwh):
        raise NonFiniteInputError("factor_kg_per_kwh", factor_kg_per_kwh)
    if energy < 0:
        raise NegativeEnergyError(energy)
    if factor_kg_per_kwh < 0:
        raise NegativeFactorError(factor_kg_per_kwh)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def uncertainty_bounds(t_co2e: float, pct: float, rounding: RoundingSpec) -> UncertaintyBounds:
    """``t_co2e ± pct %``, each bound rounded with *rounding*."""
    if not math.isfinite(pct):
        raise NonFiniteInputError("uncertainty_pct", pct)
    spread = (t_co2e * pct) / 100
    return UncertaintyBounds(
        plus_minus_pct=pct,
        lower_tco2e=round_stable(t_co2e - spread, rounding.decimals, rounding.mode),
        upper_tco2e=round_stable(t_co2e + spread, rounding.decimals, rounding.mode),
    )


# ─────────────────────────────────────────────────────────────
# Single conversions
# ─────────────────────────────────────────────────────────────

def to_co2e_kg(energy: float, unit: str, factor_kg_per_kwh: float) -> float:
    """
    Convert *energy* in *unit* to kg CO₂e.

    Raises
    ------
    NonFiniteInputError, NegativeEnergyError, NegativeFactorError, InvalidUnitError
    """
    _check_inputs(energy, factor_kg_per_kwh)
    energy_kwh = normalize_energy(energy, unit)
    return safe_multiply(energy_kwh, factor_kg_per_kwh)


def to_co2e_tonnes(energy: float, unit: str, factor_kg_per_kwh: float) -> float:
    return to_co2e_kg(energy, unit, factor_kg_per_kwh) / KG_PER_TONNE


def to_co2e_kg_rounded(
    energy: float,
    unit: str,
    factor_kg_per_kwh: float,
    decimals: int = DEFAULT_DECIMALS,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> float:
    return round_stable(to_co2e_kg(energy, unit, factor_kg_per_kwh), decimals, mode)


def to_co2e_tonnes_rounded(
    energy: float,
    unit: str,
    factor_kg_per_kwh: float,
    decimals: int = DEFAULT_DECIMALS,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> float:
    return round_stable(to_co2e_tonnes(energy, unit, factor_kg_per_kwh), decimals, mode)


def to_co2e_with_uncertainty(
    energy: float,
    unit: str,
    factor_kg_per_kwh: float,
    uncertainty_pct: float,
    decimals: int = DEFAULT_DECIMALS,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> UncertainEmission:
    """
    Rounded tonnes CO₂e plus ``base ± base * pct / 100`` bounds.

    The base is rounded first; each bound is then rounded independently with
    the same decimals and mode.
    """
    base = to_co2e_tonnes_rounded(energy, unit, factor_kg_per_kwh, decimals, mode)
    bounds = uncertainty_bounds(base, uncertainty_pct, RoundingSpec(decimals, mode))
    return UncertainEmission(
        base_tco2e=base,
        lower_tco2e=bounds.lower_tco2e,
        upper_tco2e=bounds.upper_tco2e,
        uncertainty_pct=uncertainty_pct,
    )


# ─────────────────────────────────────────────────────────────
# Batch / aggregate
# ─────────────────────────────────────────────────────────────

def batch_to_co2e_tonnes(inputs: Iterable[ConversionInput]) -> list[float]:
    """Unrounded tonnes CO₂e per input, in input order."""
    return [
        to_co2e_tonnes(item.energy, item.input_unit, item.factor_kg_per_kwh)
        for item in inputs
    ]


def total_co2e_tonnes(
    inputs: Iterable[ConversionInput],
    decimals: int = DEFAULT_DECIMALS,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> float:
    """Compensated sum of unrounded per-item tonnes, rounded once."""
    return round_stable(safe_sum(batch_to_co2e_tonnes(inputs)), decimals, mode)


# ─────────────────────────────────────────────────────────────
# Request-level conversion (explicit factor or registry lookup)
# ─────────────────────────────────────────────────────────────

def convert(
    energy: float,
    unit: str,
    *,
    factor_kg_per_kwh: Optional[float] = None,
    region: Optional[str] = None,
    scope: str = SCOPE_BASELINE,
    date: Any = None,
    rounding: Optional[RoundingSpec] = None,
    registry: Optional[FactorRegistry] = None,
) -> ConversionResult:
    """
    Convert *energy* to a rounded ``ConversionResult``.

    With *factor_kg_per_kwh* the factor is used as given.  Otherwise the
    factor is resolved from *registry* (default: the process-wide registry)
    for (*region*, *scope*, *date*); the resolved factor's id, region and
    version go into ``meta`` and its ``uncertainty_pct``, when present,
    becomes the result's uncertainty bounds.

    Energy and unit are validated before the registry lookup, so a bad
    input is never reported as a resolution error.
    """
    spec = rounding or DEFAULT_ROUNDING
    meta: dict[str, Any] = {"input_unit": unit, "rounding": asdict(spec)}
    uncertainty_pct: Optional[float] = None

    if factor_kg_per_kwh is None:
        _check_energy(energy, unit)
        if registry is None:
            registry = default_registry()
        factor = registry.resolve_factor(region, scope, date)
        factor_kg_per_kwh = factor.value_kg_per_kwh
        uncertainty_pct = factor.uncertainty_pct
        meta.update(
            factor_id=factor.id,
            factor_region=factor.region,
            factor_scope=factor.scope,
            factor_version=factor.version,
            requested_region=region,
        )

    kg = to_co2e_kg(energy, unit, factor_kg_per_kwh)
    tonnes = kg / KG_PER_TONNE
    rounded_t = round_stable(tonnes, spec.decimals, spec.mode)

    meta["calculated_at"] = _utc_now()
    return ConversionResult(
        kg_co2e=round_stable(kg, spec.decimals, spec.mode),
        t_co2e=rounded_t,
        factor_kg_per_kwh=factor_kg_per_kwh,
        energy_kwh=normalize_energy(energy, unit),
        uncertainty=(
            uncertainty_bounds(rounded_t, uncertainty_pct, spec)
            if uncertainty_pct is not None
            else None
        ),
        meta=meta,
    )
