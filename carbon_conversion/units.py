"""
units.py – Energy and mass unit normalisation.

All scale factors are exact powers of 1000; nothing here rounds.

    kWh = 1      MWh = 1 000      GWh = 1 000 000      (→ kWh)
    kg  = 1      tonnes = 1 000                        (→ kg CO₂e)
"""
from __future__ import annotations

from carbon_conversion.constants import (
    ENERGY_UNIT_FACTORS,
    KG_PER_TONNE,
    MASS_UNIT_FACTORS,
)
from carbon_conversion.errors import InvalidUnitError


# ─────────────────────────────────────────────────────────────
# Direct converters
# ─────────────────────────────────────────────────────────────

def kwh_to_mwh(kwh: float) -> float:
    return kwh / 1_000.0


def mwh_to_kwh(mwh: float) -> float:
    return mwh * 1_000.0


def gwh_to_kwh(gwh: float) -> float:
    return gwh * 1_000_000.0


def kwh_to_gwh(kwh: float) -> float:
    return kwh / 1_000_000.0


def kg_to_tonnes(kg: float) -> float:
    return kg / KG_PER_TONNE


def tonnes_to_kg(tonnes: float) -> float:
    return tonnes * KG_PER_TONNE


# ─────────────────────────────────────────────────────────────
# Table-driven normalisation
# ─────────────────────────────────────────────────────────────

def energy_conversion_factor(unit: str) -> float:
    """Return the multiplier that turns a value in *unit* into kWh."""
    try:
        return ENERGY_UNIT_FACTORS[unit]
    except (KeyError, TypeError):
        raise InvalidUnitError(unit) from None


def mass_conversion_factor(unit: str) -> float:
    """Return the multiplier that turns a value in *unit* into kg CO₂e."""
    try:
        return MASS_UNIT_FACTORS[unit]
    except (KeyError, TypeError):
        raise InvalidUnitError(unit) from None


def normalize_energy(value: float, unit: str) -> float:
    """
    Convert an energy value to kWh.

    Raises
    ------
    InvalidUnitError
        If *unit* is not one of ``kWh``, ``MWh``, ``GWh``.
    """
    factor = energy_conversion_factor(unit)
    if factor == 1.0:
        return value
    return value * factor


def denormalize_energy(kwh: float, unit: str) -> float:
    """Convert a kWh value back into *unit* (inverse of ``normalize_energy``)."""
    factor = energy_conversion_factor(unit)
    if factor == 1.0:
        return kwh
    return kwh / factor


def normalize_to_kg(mass: float, unit: str) -> float:
    factor = mass_conversion_factor(unit)
    if factor == 1.0:
        return mass
    return mass * factor


def normalize_to_tonnes(mass: float, unit: str) -> float:
    factor = mass_conversion_factor(unit)
    if factor == KG_PER_TONNE:
        return mass
    return mass * factor / KG_PER_TONNE


def normalize_mass(value: float, unit: str, to: str = "kg") -> float:
    """
    Convert a CO₂e mass to kg (``to="kg"``) or tonnes (``to="tonnes"``).

    Both *unit* and *to* accept ``kg``/``kgCO2e`` and ``tonnes``/``tCO2e``.
    """
    target = mass_conversion_factor(to)
    if target == 1.0:
        return normalize_to_kg(value, unit)
    return normalize_to_tonnes(value, unit)
