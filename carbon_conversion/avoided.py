"""
avoided.py – Avoided emissions versus a grid baseline factor.

Same validation and rounding contract as ``grid``; results additionally
report the normalised energy (kWh), optional ± uncertainty bounds and
methodology metadata.

Aggregation (``total_avoided_emissions``)
──────────────────────────────────────────
 kg, t, kWh           independent compensated sums of unrounded items
 weighted factor      Σ(factor × kWh) ÷ Σ(kWh), 0.0 when Σ(kWh) == 0
 rounding             applied once, to the aggregate
"""
from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from carbon_conversion.arithmetic import KahanSum, round_stable, safe_multiply
from carbon_conversion.constants import KG_PER_TONNE
from carbon_conversion.grid import to_co2e_kg, uncertainty_bounds
from carbon_conversion.models import (
    DEFAULT_ROUNDING,
    ConversionInput,
    ConversionResult,
    MethodologyAdjustments,
    RoundingSpec,
)
from carbon_conversion.units import normalize_energy

logger = logging.getLogger(__name__)


def _compute(item: ConversionInput) -> tuple[float, float]:
    """Return unrounded ``(energy_kwh, kg_co2e)`` for one input."""
    kg = to_co2e_kg(item.energy, item.input_unit, item.factor_kg_per_kwh)
    return normalize_energy(item.energy, item.input_unit), kg


def _meta(spec: RoundingSpec, **extra: Any) -> dict[str, Any]:
    meta: dict[str, Any] = {"rounding": asdict(spec)}
    meta.update(extra)
    meta["calculated_at"] = datetime.now(timezone.utc).isoformat()
    return meta


# ─────────────────────────────────────────────────────────────
# Single input
# ─────────────────────────────────────────────────────────────

def avoided_emissions(item: ConversionInput) -> ConversionResult:
    """
    Avoided kg / t CO₂e for one energy quantity, rounded with
    ``item.rounding`` (default 6 decimals, HALF_UP).
    """
    spec = item.rounding or DEFAULT_ROUNDING
    energy_kwh, kg = _compute(item)
    return ConversionResult(
        kg_co2e=round_stable(kg, spec.decimals, spec.mode),
        t_co2e=round_stable(kg / KG_PER_TONNE, spec.decimals, spec.mode),
        factor_kg_per_kwh=item.factor_kg_per_kwh,
        energy_kwh=energy_kwh,
        meta=_meta(spec, input_unit=item.input_unit),
    )


def avoided_emissions_with_uncertainty(
    item: ConversionInput,
    uncertainty_pct: float,
) -> ConversionResult:
    """``avoided_emissions`` plus bounds of ±*uncertainty_pct* around the rounded tonnes."""
    spec = item.rounding or DEFAULT_ROUNDING
    result = avoided_emissions(item)
    return replace(
        result,
        uncertainty=uncertainty_bounds(result.t_co2e, uncertainty_pct, spec),
    )


def avoided_emissions_with_methodology(
    item: ConversionInput,
    methodology: str,
    adjustments: Optional[MethodologyAdjustments] = None,
) -> ConversionResult:
    """
    Apply methodology multipliers to the energy, then convert.

    The efficiency multiplier is applied first, then degradation.  A
    multiplier of ``None`` is skipped; any other value (including 0) is
    applied.
    """
    adj = adjustments or MethodologyAdjustments()
    spec = item.rounding or DEFAULT_ROUNDING

    energy = item.energy
    if adj.efficiency_factor is not None:
        energy = safe_multiply(energy, adj.efficiency_factor)
    if adj.degradation_factor is not None:
        energy = safe_multiply(energy, adj.degradation_factor)

    result = avoided_emissions(replace(item, energy=energy))

    if adj.uncertainty_pct is not None:
        result = replace(
            result,
            uncertainty=uncertainty_bounds(result.t_co2e, adj.uncertainty_pct, spec),
        )

    meta = dict(result.meta)
    meta["methodology"] = methodology
    meta["adjustments"] = asdict(adjustments) if adjustments is not None else None
    return replace(result, meta=meta)


# ─────────────────────────────────────────────────────────────
# Many inputs
# ─────────────────────────────────────────────────────────────

def batch_avoided_emissions(inputs: Iterable[ConversionInput]) -> list[ConversionResult]:
    return [avoided_emissions(item) for item in inputs]


def total_avoided_emissions(
    inputs: Iterable[ConversionInput],
    rounding: Optional[RoundingSpec] = None,
) -> ConversionResult:
    """
    Aggregate avoided emissions over *inputs*.

    Per-item rounding specs are ignored; *rounding* (default 6 / HALF_UP) is
    applied once to the totals and the weighted factor.  ``energy_kwh`` is
    reported unrounded.
    """
    spec = rounding or DEFAULT_ROUNDING

    kg_total = KahanSum()
    t_total = KahanSum()
    energy_total = KahanSum()
    weighted_total = KahanSum()

    for item in inputs:
        energy_kwh, kg = _compute(item)
        kg_total.add(kg)
        t_total.add(kg / KG_PER_TONNE)
        energy_total.add(energy_kwh)
        weighted_total.add(safe_multiply(item.factor_kg_per_kwh, energy_kwh))

    total_kwh = energy_total.total
    weighted_factor = weighted_total.total / total_kwh if total_kwh > 0 else 0.0

    logger.debug(
        "Avoided emissions total: %d sources | %.2f kWh → %.6f kg CO₂e",
        kg_total.count, total_kwh, kg_total.total,
    )

    return ConversionResult(
        kg_co2e=round_stable(kg_total.total, spec.decimals, spec.mode),
        t_co2e=round_stable(t_total.total, spec.decimals, spec.mode),
        factor_kg_per_kwh=round_stable(weighted_factor, spec.decimals, spec.mode),
        energy_kwh=total_kwh,
        meta=_meta(spec, source_count=kg_total.count),
    )
