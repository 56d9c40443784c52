"""
constants.py – Shared unit tables, scope labels, and numeric defaults.
"""

# ── Energy units (multiply by the factor to get kWh) ──────────
ENERGY_UNIT_KWH = "kWh"
ENERGY_UNIT_MWH = "MWh"
ENERGY_UNIT_GWH = "GWh"

ENERGY_UNIT_FACTORS: dict[str, float] = {
    ENERGY_UNIT_KWH: 1.0,
    ENERGY_UNIT_MWH: 1_000.0,
    ENERGY_UNIT_GWH: 1_000_000.0,
}

# ── Mass units (multiply by the factor to get kg CO₂e) ────────
MASS_UNIT_FACTORS: dict[str, float] = {
    "kg": 1.0,
    "kgCO2e": 1.0,
    "tonnes": 1_000.0,
    "tCO2e": 1_000.0,
}

KG_PER_TONNE: float = 1_000.0

# ── Factor scopes / gas ───────────────────────────────────────
SCOPE_OPERATIONAL = "operational"
SCOPE_MARGINAL = "marginal"
SCOPE_BASELINE = "baseline"

ALLOWED_SCOPES = [SCOPE_OPERATIONAL, SCOPE_MARGINAL, SCOPE_BASELINE]

GAS_CO2E = "CO2e"

# Sanity ceiling for a grid factor (kg CO₂e / kWh)
MAX_FACTOR_KG_PER_KWH = 2.0

# ── Region resolution ─────────────────────────────────────────
WORLD_REGION = "WORLD"

UNDATED_POLICY_FIRST = "first"
UNDATED_POLICY_LATEST = "latest"
ALLOWED_UNDATED_POLICIES = {UNDATED_POLICY_FIRST, UNDATED_POLICY_LATEST}

# ── Rounding ──────────────────────────────────────────────────
ROUND_HALF_UP = "HALF_UP"
ROUND_DOWN = "DOWN"
ROUND_TRUNC = "TRUNC"

ALLOWED_ROUNDING_MODES = {ROUND_HALF_UP, ROUND_DOWN, ROUND_TRUNC}

DEFAULT_DECIMALS = 6
DEFAULT_ROUNDING_MODE = ROUND_HALF_UP
MAX_DECIMALS = 10

# Canonical serializer precision
DEFAULT_DIGEST_DECIMALS = 6
MAX_DIGEST_DECIMALS = 15

# ── Floating-point tolerances ─────────────────────────────────
APPROX_TOLERANCE = 1e-10
