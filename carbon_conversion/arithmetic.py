"""
arithmetic.py – Deterministic rounding and compensated float arithmetic.

Every reportable number produced by the conversion engine goes through
``round_stable``; every aggregate goes through ``safe_sum``.  Determinism here
means "same inputs + same rounding mode → byte-identical float", not
arbitrary-precision correctness: all values are IEEE-754 doubles.

Rounding modes
──────────────
 HALF_UP  halves rounded away from zero   ( 2.5 →  3,  -2.5 → -3)
 DOWN     toward negative infinity        ( 1.9 →  1,  -1.9 → -2)
 TRUNC    toward zero                     ( 1.9 →  1,  -1.9 → -1)
"""
from __future__ import annotations

import math
from decimal import ROUND_DOWN, ROUND_FLOOR, ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Iterable, NamedTuple

from carbon_conversion.constants import (
    APPROX_TOLERANCE,
    DEFAULT_DECIMALS,
    DEFAULT_ROUNDING_MODE,
    ROUND_DOWN as MODE_DOWN,
    ROUND_HALF_UP as MODE_HALF_UP,
    ROUND_TRUNC as MODE_TRUNC,
)
from carbon_conversion.errors import InvalidRoundingModeError

_DECIMAL_ROUNDING: dict[str, str] = {
    MODE_HALF_UP: ROUND_HALF_UP,
    MODE_DOWN: ROUND_FLOOR,
    MODE_TRUNC: ROUND_DOWN,
}

# Wide enough for any finite double scaled by 10**MAX_DECIMALS.  A quantize
# that needs more digits only asks for places the float does not carry.
_CONTEXT = Context(prec=400)


# ─────────────────────────────────────────────────────────────
# Rounding
# ─────────────────────────────────────────────────────────────

def round_stable(x: float, decimals: int = DEFAULT_DECIMALS, mode: str = DEFAULT_ROUNDING_MODE) -> float:
    """
    Round *x* to *decimals* places using *mode*.

    The scale-round-rescale step runs in decimal arithmetic on the float's
    shortest repr, so a value that already has at most *decimals* places is
    returned unchanged and the function is idempotent in every mode.

    Non-finite values (NaN, ±inf) are returned as-is, and so is any value
    when *decimals* exceeds the digits a double can hold (the result would
    need more than 400 significant digits).  Negative *decimals* are treated
    as 0.

    Raises
    ------
    InvalidRoundingModeError
        If *mode* is not HALF_UP, DOWN or TRUNC.
    """
    rounding = _DECIMAL_ROUNDING.get(mode)
    if rounding is None:
        raise InvalidRoundingModeError(mode)

    x = float(x)
    if not math.isfinite(x):
        return x

    places = max(int(decimals), 0)
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = Decimal(repr(x)).quantize(quantum, rounding=rounding, context=_CONTEXT)
    except InvalidOperation:
        return x
    return float(rounded)


# ─────────────────────────────────────────────────────────────
# Compensated addition / summation
# ─────────────────────────────────────────────────────────────

def safe_add(a: float, b: float) -> float:
    """Add two floats, folding the two-sum rounding error back into the result."""
    total = a + b
    if abs(a) >= abs(b):
        error = (a - total) + b
    else:
        error = (b - total) + a
    return total + error


class KahanSum:
    """
    Restartable Kahan accumulator.

    Output is reproducible for a fixed input order; values are never sorted.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._sum = float(start)
        self._compensation = 0.0
        self.count = 0

    def add(self, value: float) -> "KahanSum":
        y = value - self._compensation
        t = self._sum + y
        self._compensation = (t - self._sum) - y
        self._sum = t
        self.count += 1
        return self

    def extend(self, values: Iterable[float]) -> "KahanSum":
        for value in values:
            self.add(value)
        return self

    def reset(self) -> None:
        self._sum = 0.0
        self._compensation = 0.0
        self.count = 0

    @property
    def total(self) -> float:
        return self._sum


def safe_sum(values: Iterable[float]) -> float:
    """Kahan-compensated sum of *values* in the order given."""
    return KahanSum().extend(values).total


# ─────────────────────────────────────────────────────────────
# Multiplication
# ─────────────────────────────────────────────────────────────

def safe_multiply(a: float, b: float) -> float:
    # Plain IEEE product; kept as a seam so every conversion multiplies
    # through one place.
    return a * b


def safe_product(values: Iterable[float]) -> float:
    """Product of *values*; 1.0 for an empty sequence."""
    product = 1.0
    first = True
    for value in values:
        product = value if first else safe_multiply(product, value)
        first = False
    return product


# ─────────────────────────────────────────────────────────────
# Misc helpers
# ─────────────────────────────────────────────────────────────

class Bounds(NamedTuple):
    lower: float
    upper: float
    plus_minus_pct: float


def approximately_equal(a: float, b: float, tolerance: float = APPROX_TOLERANCE) -> bool:
    return abs(a - b) < tolerance


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(max(value, minimum), maximum)


def calculate_percentage(
    value: float,
    total: float,
    decimals: int = 2,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> float:
    """Return ``value / total * 100`` rounded; 0.0 when *total* is zero."""
    if total == 0:
        return 0.0
    return round_stable((value / total) * 100, decimals, mode)


def calculate_uncertainty_bounds(
    value: float,
    uncertainty_pct: float,
    decimals: int = DEFAULT_DECIMALS,
    mode: str = DEFAULT_ROUNDING_MODE,
) -> Bounds:
    """
    Return ``value ± value * pct / 100``, each bound rounded independently.
    """
    spread = (value * uncertainty_pct) / 100
    return Bounds(
        lower=round_stable(value - spread, decimals, mode),
        upper=round_stable(value + spread, decimals, mode),
        plus_minus_pct=uncertainty_pct,
    )


def format_fixed(value: float, decimals: int) -> str:
    return f"{value:.{max(int(decimals), 0)}f}"


def parse_fixed(text: str) -> float:
    return float(text)
