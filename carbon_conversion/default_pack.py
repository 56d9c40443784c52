"""
default_pack.py – Built-in illustrative factor and region packs.

These values seed the process-wide default registry so the library is usable
out of the box.  They are demo figures, not an official dataset: load a real
pack with ``load_factor_pack`` before reporting.

All factors are kg CO₂e per kWh.
"""
from __future__ import annotations

from typing import Any

# ─────────────────────────────────────────────────────────────
# Grid factors – baseline scope
# ─────────────────────────────────────────────────────────────
DEFAULT_FACTORS: list[dict[str, Any]] = [
    {
        "id": "WORLD-DEFAULT-2024",
        "region": "WORLD",
        "scope": "baseline",
        "gas": "CO2e",
        "valueKgPerKWh": 0.82,       # coal-heavy illustrative baseline
        "effectiveFrom": "2024-01-01",
        "source": {"name": "Demo Default", "note": "Coal-heavy illustrative baseline"},
        "version": "v1",
    },
    {
        "id": "IN-2024-BASELINE",
        "region": "IN",
        "scope": "baseline",
        "gas": "CO2e",
        "valueKgPerKWh": 0.708,
        "effectiveFrom": "2024-01-01",
        "source": {
            "name": "Illustrative India factor (demo)",
            "note": "Replace with official source in production",
        },
        "version": "v1",
    },
    {
        "id": "US-2024-BASELINE",
        "region": "US",
        "scope": "baseline",
        "gas": "CO2e",
        "valueKgPerKWh": 0.386,      # US national avg
        "effectiveFrom": "2024-01-01",
        "source": {"name": "Illustrative US avg (demo)"},
        "version": "v1",
    },
    {
        "id": "EU-2024-BASELINE",
        "region": "EU",
        "scope": "baseline",
        "gas": "CO2e",
        "valueKgPerKWh": 0.255,
        "effectiveFrom": "2024-01-01",
        "source": {"name": "Illustrative EU avg (demo)"},
        "version": "v1",
    },
]

# ─────────────────────────────────────────────────────────────
# Region aliases (ISO alpha-2 / alpha-3 / UN M49)
# ─────────────────────────────────────────────────────────────
DEFAULT_REGIONS: list[dict[str, Any]] = [
    {"code": "WORLD", "name": "World"},
    {"code": "IN", "name": "India", "iso2": "IN", "iso3": "IND", "unM49": "356"},
    {"code": "US", "name": "United States", "iso2": "US", "iso3": "USA", "unM49": "840"},
    {"code": "EU", "name": "European Union"},
]
