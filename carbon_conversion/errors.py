"""
errors.py – Exception hierarchy for conversion and factor resolution.

Every error carries a stable ``code`` plus the context needed to act on it
(the offending unit token, region, date, …).  ``safe_call`` turns any of
them into a ``SafeResult`` for callers that prefer a tagged return value to
exception handling.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


class CarbonConversionError(Exception):
    """Base class for every error raised by this package."""

    code = "CARBON_CONVERSION_ERROR"

    @property
    def context(self) -> dict[str, Any]:
        return {}


class InvalidUnitError(CarbonConversionError, ValueError):
    code = "INVALID_UNIT"

    def __init__(self, unit: Any) -> None:
        self.unit = unit
        super().__init__(f"Invalid unit: {unit}")

    @property
    def context(self) -> dict[str, Any]:
        return {"unit": self.unit}


class NonFiniteInputError(CarbonConversionError, ValueError):
    code = "NON_FINITE_INPUT"

    def __init__(self, field: str, value: float) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a finite number, got {value!r}")

    @property
    def context(self) -> dict[str, Any]:
        return {"field": self.field, "value": self.value}


class NegativeEnergyError(CarbonConversionError, ValueError):
    code = "NEGATIVE_ENERGY"

    def __init__(self, energy: float) -> None:
        self.energy = energy
        super().__init__(f"Energy cannot be negative, got {energy!r}")

    @property
    def context(self) -> dict[str, Any]:
        return {"energy": self.energy}


class NegativeFactorError(CarbonConversionError, ValueError):
    code = "NEGATIVE_FACTOR"

    def __init__(self, factor: float) -> None:
        self.factor = factor
        super().__init__(f"Emission factor cannot be negative, got {factor!r}")

    @property
    def context(self) -> dict[str, Any]:
        return {"factor": self.factor}


class InvalidRoundingModeError(CarbonConversionError, ValueError):
    code = "INVALID_ROUNDING_MODE"

    def __init__(self, mode: Any) -> None:
        self.mode = mode
        super().__init__(f"Invalid rounding mode: {mode}")

    @property
    def context(self) -> dict[str, Any]:
        return {"mode": self.mode}


class UnknownRegionError(CarbonConversionError, LookupError):
    code = "UNKNOWN_REGION"

    def __init__(self, region: str, scope: str | None = None) -> None:
        self.region = region
        self.scope = scope
        msg = f"Unknown region: {region}"
        if scope:
            msg += f" (scope={scope})"
        super().__init__(msg)

    @property
    def context(self) -> dict[str, Any]:
        return {"region": self.region, "scope": self.scope}


class NoFactorForDateError(CarbonConversionError, LookupError):
    code = "NO_FACTOR_FOR_DATE"

    def __init__(self, region: str, date: Any, scope: str | None = None) -> None:
        self.region = region
        self.date = date
        self.scope = scope
        super().__init__(f"No factor found for region {region} on date {date}")

    @property
    def context(self) -> dict[str, Any]:
        return {"region": self.region, "date": str(self.date), "scope": self.scope}


class RegistryUninitializedError(CarbonConversionError):
    code = "REGISTRY_UNINITIALIZED"

    def __init__(self) -> None:
        super().__init__("No factors available. Initialize factor registry first.")


class InvalidFactorError(CarbonConversionError, ValueError):
    """Raised when a factor or region pack fails validation."""

    code = "INVALID_FACTOR"

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid factor: {message}")


# ─────────────────────────────────────────────────────────────
# Tagged result wrapper
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ErrorInfo:
    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SafeResult:
    """Outcome of ``safe_call``: ``data`` when ``ok``, otherwise ``error``."""

    ok: bool
    data: Any = None
    error: ErrorInfo | None = None


def safe_call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> SafeResult:
    """
    Run ``fn(*args, **kwargs)`` and wrap the outcome.

    Only ``CarbonConversionError`` is captured; programming errors still
    propagate.
    """
    try:
        return SafeResult(ok=True, data=fn(*args, **kwargs))
    except CarbonConversionError as exc:
        return SafeResult(
            ok=False,
            error=ErrorInfo(code=exc.code, message=str(exc), context=exc.context),
        )
