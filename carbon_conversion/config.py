"""
config.py – Load and validate optional environment settings.

Configuration is read from environment variables (or a .env file at the
project root).  Call ``get_config()`` once at startup to obtain a validated
Config object; the conversion functions themselves never read the
environment, callers pass ``config.rounding`` etc. explicitly.

Variables
---------
CARBON_ROUNDING_DECIMALS   int 0–10            (default 6)
CARBON_ROUNDING_MODE       HALF_UP|DOWN|TRUNC  (default HALF_UP)
CARBON_DIGEST_DECIMALS     int 0–15            (default 6)
CARBON_UNDATED_POLICY      first|latest        (default first)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from carbon_conversion.constants import (
    ALLOWED_ROUNDING_MODES,
    ALLOWED_UNDATED_POLICIES,
    DEFAULT_DECIMALS,
    DEFAULT_DIGEST_DECIMALS,
    DEFAULT_ROUNDING_MODE,
    MAX_DECIMALS,
    MAX_DIGEST_DECIMALS,
    UNDATED_POLICY_FIRST,
)
from carbon_conversion.models import RoundingSpec

# Project root: the directory holding pyproject.toml
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# override=True ensures .env values always win over stale OS-level env vars.
_env_file = _PROJECT_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file, override=True)


@dataclass
class Config:
    """Validated runtime configuration."""

    rounding_decimals: int = DEFAULT_DECIMALS
    rounding_mode: str = DEFAULT_ROUNDING_MODE
    digest_decimals: int = DEFAULT_DIGEST_DECIMALS
    undated_policy: str = UNDATED_POLICY_FIRST

    # Derived
    rounding: RoundingSpec = field(init=False)

    def __post_init__(self) -> None:
        self.rounding = RoundingSpec(
            decimals=self.rounding_decimals,
            mode=self.rounding_mode,
        )


def _read_int(name: str, default: int, low: int, high: int, problems: list[str]) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        problems.append(f"{name}={raw!r} is not an integer")
        return default
    if not low <= value <= high:
        problems.append(f"{name}={value} is outside {low}–{high}")
    return value


def _read_choice(name: str, default: str, allowed: set[str], problems: list[str], upper: bool) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().upper() if upper else raw.strip().lower()
    if value not in allowed:
        problems.append(f"{name}={raw!r} must be one of {', '.join(sorted(allowed))}")
    return value


def get_config() -> Config:
    """
    Read environment variables, validate them, and return a Config.

    Raises
    ------
    EnvironmentError
        If any variable is set to an invalid value (all problems are listed).
    """
    problems: list[str] = []

    decimals = _read_int("CARBON_ROUNDING_DECIMALS", DEFAULT_DECIMALS, 0, MAX_DECIMALS, problems)
    mode = _read_choice("CARBON_ROUNDING_MODE", DEFAULT_ROUNDING_MODE, ALLOWED_ROUNDING_MODES, problems, upper=True)
    digest = _read_int("CARBON_DIGEST_DECIMALS", DEFAULT_DIGEST_DECIMALS, 0, MAX_DIGEST_DECIMALS, problems)
    policy = _read_choice("CARBON_UNDATED_POLICY", UNDATED_POLICY_FIRST, ALLOWED_UNDATED_POLICIES, problems, upper=False)

    if problems:
        raise EnvironmentError(
            "Invalid environment configuration:\n  " + "\n  ".join(problems)
        )

    return Config(
        rounding_decimals=decimals,
        rounding_mode=mode,
        digest_decimals=digest,
        undated_policy=policy,
    )
