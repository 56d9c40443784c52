"""
factors.py – Emission factor registry and (region, scope, date) resolution.

A ``FactorRegistry`` owns one immutable ``RegistrySnapshot`` (factor and
region tuples).  Loading never edits a snapshot in place: it builds a new one
and swaps the reference, so a ``resolve_factor`` call that is already running
keeps reading the table it started with.

Resolution rules
────────────────
 1. Region is upper-cased and mapped through the region aliases
    (code / iso2 / iso3 / UN M49); unknown codes are used as-is.
 2. Candidates = factors with exactly that region and scope.
 3. No candidates and region != WORLD → retry with WORLD (same scope).
 4. Still none → UnknownRegionError.
 5. With a date: keep candidates whose effective window contains it
    (NoFactorForDateError if none, reported against the caller's region),
    then take the latest effective_from; ties go to the earlier table entry.
 6. Without a date: ``undated_policy`` decides – "first" returns the first
    candidate in table order, "latest" applies the rule from step 5.

A module-level default registry, seeded from ``default_pack``, backs the
plain functions at the bottom of this module.
"""
from __future__ import annotations

import datetime
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from carbon_conversion.constants import (
    ALLOWED_UNDATED_POLICIES,
    SCOPE_BASELINE,
    UNDATED_POLICY_FIRST,
    UNDATED_POLICY_LATEST,
    WORLD_REGION,
)
from carbon_conversion.default_pack import DEFAULT_FACTORS, DEFAULT_REGIONS
from carbon_conversion.errors import (
    InvalidFactorError,
    NoFactorForDateError,
    RegistryUninitializedError,
    UnknownRegionError,
)
from carbon_conversion.models import EmissionFactor, FactorFilter, RegionMapping
from carbon_conversion.schemas import (
    RegionMappingSchema,
    coerce_date,
    validate_factor,
    validate_factor_pack,
    validate_region_pack,
)

logger = logging.getLogger(__name__)

DateLike = Union[datetime.date, str]


# ─────────────────────────────────────────────────────────────
# Snapshot
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable factor table plus region alias index."""

    factors: tuple[EmissionFactor, ...] = ()
    regions: tuple[RegionMapping, ...] = ()
    _alias_index: dict[str, RegionMapping] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index: dict[str, RegionMapping] = {}
        for mapping in self.regions:
            for alias in mapping.aliases():
                index.setdefault(alias, mapping)
        object.__setattr__(self, "_alias_index", index)

    def region_info(self, code: str) -> Optional[RegionMapping]:
        return self._alias_index.get(code.strip().upper()) if code else None

    def normalize_region(self, region: Optional[str]) -> str:
        if not region:
            return WORLD_REGION
        upper = region.strip().upper()
        mapping = self._alias_index.get(upper)
        return mapping.code if mapping else upper


def _build_snapshot(
    factors: Iterable[Union[EmissionFactor, dict[str, Any]]],
    regions: Iterable[Union[RegionMapping, dict[str, Any]]],
) -> RegistrySnapshot:
    factor_records = tuple(
        f if isinstance(f, EmissionFactor) else validate_factor(f) for f in factors
    )
    region_records = tuple(
        r if isinstance(r, RegionMapping) else RegionMappingSchema.model_validate(r).to_record()
        for r in regions
    )

    seen: set[str] = set()
    for factor in factor_records:
        if factor.id in seen:
            raise InvalidFactorError(f"duplicate factor id '{factor.id}'")
        seen.add(factor.id)

    return RegistrySnapshot(factors=factor_records, regions=region_records)


def _latest(factors: list[EmissionFactor]) -> EmissionFactor:
    # max() keeps the first of equal keys, i.e. table order breaks ties.
    return max(factors, key=lambda f: f.effective_from)


# ─────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────

class FactorRegistry:
    """
    Owned, replaceable factor table.

    Parameters
    ----------
    factors, regions:
        Records (or raw pack dicts, validated on the way in) in table order.
    undated_policy:
        ``"first"`` (default) or ``"latest"`` – which candidate
        ``resolve_factor`` returns when no date is given.
    """

    def __init__(
        self,
        factors: Iterable[Union[EmissionFactor, dict[str, Any]]] = (),
        regions: Iterable[Union[RegionMapping, dict[str, Any]]] = (),
        *,
        undated_policy: str = UNDATED_POLICY_FIRST,
    ) -> None:
        if undated_policy not in ALLOWED_UNDATED_POLICIES:
            raise ValueError(
                f"undated_policy must be one of {sorted(ALLOWED_UNDATED_POLICIES)}, "
                f"got '{undated_policy}'"
            )
        self.undated_policy = undated_policy
        self._write_lock = threading.Lock()
        self._snapshot = _build_snapshot(factors, regions)

    @classmethod
    def from_pack(
        cls,
        factor_data: Any,
        region_data: Any = None,
        *,
        undated_policy: str = UNDATED_POLICY_FIRST,
    ) -> "FactorRegistry":
        """Build a registry from raw (JSON-shaped) factor and region packs."""
        return cls(
            validate_factor_pack(factor_data),
            validate_region_pack(region_data or []),
            undated_policy=undated_policy,
        )

    # ── loading ───────────────────────────────────────────────

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def load(
        self,
        factors: Iterable[Union[EmissionFactor, dict[str, Any]]],
        regions: Iterable[Union[RegionMapping, dict[str, Any]]] = (),
    ) -> RegistrySnapshot:
        """
        Replace the whole table (never merged) and return the new snapshot.

        The snapshot is fully built and validated before the swap; a failed
        load leaves the current table untouched.
        """
        snapshot = _build_snapshot(factors, regions)
        with self._write_lock:
            self._snapshot = snapshot
        logger.debug(
            "Factor registry loaded: %d factors, %d regions",
            len(snapshot.factors), len(snapshot.regions),
        )
        return snapshot

    def load_pack(self, factor_data: Any, region_data: Any = None) -> RegistrySnapshot:
        """Validate raw factor / region packs, then ``load`` them."""
        return self.load(
            validate_factor_pack(factor_data),
            validate_region_pack(region_data or []),
        )

    # ── resolution ────────────────────────────────────────────

    def normalize_region(self, region: Optional[str]) -> str:
        return self._snapshot.normalize_region(region)

    def resolve_factor(
        self,
        region: Optional[str] = WORLD_REGION,
        scope: str = SCOPE_BASELINE,
        date: Optional[DateLike] = None,
        overrides: Optional[Iterable[EmissionFactor]] = None,
    ) -> EmissionFactor:
        """
        Return the single applicable factor for (region, scope, date).

        *overrides* replaces the factor table for this call only; region
        aliases still come from the registry.

        Raises
        ------
        RegistryUninitializedError
            The factor table (or *overrides*) is empty.
        UnknownRegionError
            No factor for region + scope, even after the WORLD fallback.
        NoFactorForDateError
            Candidates exist but none is effective on *date*.
        """
        snapshot = self._snapshot
        factors = tuple(overrides) if overrides is not None else snapshot.factors
        if not factors:
            raise RegistryUninitializedError()

        requested = region or WORLD_REGION
        normalized = snapshot.normalize_region(region)

        candidates = [f for f in factors if f.region == normalized and f.scope == scope]
        if not candidates and normalized != WORLD_REGION:
            candidates = [f for f in factors if f.region == WORLD_REGION and f.scope == scope]
            if candidates:
                logger.debug(
                    "No %s factor for region %s; falling back to %s",
                    scope, normalized, WORLD_REGION,
                )

        if not candidates:
            raise UnknownRegionError(requested, scope)

        if date is not None:
            on = coerce_date(date)
            effective = [f for f in candidates if f.covers(on)]
            if not effective:
                raise NoFactorForDateError(requested, on, scope)
            return _latest(effective)

        if self.undated_policy == UNDATED_POLICY_LATEST:
            return _latest(candidates)
        return candidates[0]

    # ── listing / lookup ──────────────────────────────────────

    def list_factors(
        self,
        criteria: Optional[FactorFilter] = None,
        *,
        region: Optional[str] = None,
        scope: Optional[str] = None,
        date_from: Optional[DateLike] = None,
        date_to: Optional[DateLike] = None,
    ) -> list[EmissionFactor]:
        """
        Return factors matching every given predicate, in table order.

        The date predicate is an overlap test: a factor matches when its
        effective window intersects ``[date_from, date_to]`` at all.
        """
        if criteria is None:
            criteria = FactorFilter(region=region, scope=scope, date_from=date_from, date_to=date_to)

        snapshot = self._snapshot
        factors = list(snapshot.factors)

        if criteria.region:
            normalized = snapshot.normalize_region(criteria.region)
            factors = [f for f in factors if f.region == normalized]

        if criteria.scope:
            factors = [f for f in factors if f.scope == criteria.scope]

        if criteria.date_from or criteria.date_to:
            start = coerce_date(criteria.date_from)
            end = coerce_date(criteria.date_to)
            factors = [f for f in factors if f.overlaps(start, end)]

        return factors

    def get_factors_by_region_and_scope(self, region: str, scope: str) -> list[EmissionFactor]:
        snapshot = self._snapshot
        normalized = snapshot.normalize_region(region)
        return [f for f in snapshot.factors if f.region == normalized and f.scope == scope]

    def get_latest_factor(self, region: str, scope: str) -> Optional[EmissionFactor]:
        """Max-``effective_from`` factor for region + scope, or None (no WORLD fallback)."""
        factors = self.get_factors_by_region_and_scope(region, scope)
        return _latest(factors) if factors else None

    def get_factor_by_id(self, factor_id: str) -> Optional[EmissionFactor]:
        return next((f for f in self._snapshot.factors if f.id == factor_id), None)

    def get_region_info(self, code: str) -> Optional[RegionMapping]:
        return self._snapshot.region_info(code)

    def available_regions(self) -> list[str]:
        return sorted({f.region for f in self._snapshot.factors})

    def available_scopes(self, region: Optional[str] = None) -> list[str]:
        snapshot = self._snapshot
        factors = snapshot.factors
        if region:
            normalized = snapshot.normalize_region(region)
            factors = tuple(f for f in factors if f.region == normalized)
        return sorted({f.scope for f in factors})

    def is_region_supported(self, region: str) -> bool:
        snapshot = self._snapshot
        normalized = snapshot.normalize_region(region)
        return any(f.region == normalized for f in snapshot.factors)

    def __len__(self) -> int:
        return len(self._snapshot.factors)


# ─────────────────────────────────────────────────────────────
# Process-wide default registry
# ─────────────────────────────────────────────────────────────

_default_registry: Optional[FactorRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> FactorRegistry:
    """Return the shared registry, seeding it from ``default_pack`` on first use."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = FactorRegistry.from_pack(DEFAULT_FACTORS, DEFAULT_REGIONS)
    return _default_registry


def initialize_factor_registry(
    factors: Iterable[Union[EmissionFactor, dict[str, Any]]],
    regions: Iterable[Union[RegionMapping, dict[str, Any]]] = (),
) -> RegistrySnapshot:
    """Replace the default registry's table with *factors* / *regions*."""
    snapshot = default_registry().load(factors, regions)
    logger.info("Default factor registry replaced (%d factors)", len(snapshot.factors))
    return snapshot


def load_factor_pack(factor_data: Any, region_data: Any = None) -> RegistrySnapshot:
    """Validate raw packs and load them into the default registry."""
    snapshot = default_registry().load_pack(factor_data, region_data)
    logger.info("Default factor registry replaced (%d factors)", len(snapshot.factors))
    return snapshot


def reset_default_registry() -> RegistrySnapshot:
    """Reload the built-in demo pack into the default registry."""
    return load_factor_pack(DEFAULT_FACTORS, DEFAULT_REGIONS)


def resolve_factor(
    region: Optional[str] = WORLD_REGION,
    scope: str = SCOPE_BASELINE,
    date: Optional[DateLike] = None,
    overrides: Optional[Iterable[EmissionFactor]] = None,
) -> EmissionFactor:
    return default_registry().resolve_factor(region, scope, date, overrides)


def list_factors(criteria: Optional[FactorFilter] = None, **kwargs: Any) -> list[EmissionFactor]:
    return default_registry().list_factors(criteria, **kwargs)


def get_latest_factor(region: str, scope: str) -> Optional[EmissionFactor]:
    return default_registry().get_latest_factor(region, scope)


def get_factors_by_region_and_scope(region: str, scope: str) -> list[EmissionFactor]:
    return default_registry().get_factors_by_region_and_scope(region, scope)


def get_factor_by_id(factor_id: str) -> Optional[EmissionFactor]:
    return default_registry().get_factor_by_id(factor_id)


def get_region_info(code: str) -> Optional[RegionMapping]:
    return default_registry().get_region_info(code)


def get_available_regions() -> list[str]:
    return default_registry().available_regions()


def get_available_scopes(region: Optional[str] = None) -> list[str]:
    return default_registry().available_scopes(region)


def is_region_supported(region: str) -> bool:
    return default_registry().is_region_supported(region)
