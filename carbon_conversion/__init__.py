"""
carbon_conversion – deterministic, auditable energy → CO₂e conversion.

Converts energy quantities to CO₂-equivalent mass with region / scope / date
specific grid emission factors.  Identical inputs always give identical
outputs, and ``stable_stringify`` / ``fingerprint`` produce byte-stable
digests for audit trails.
"""
from carbon_conversion.arithmetic import (
    KahanSum,
    approximately_equal,
    calculate_percentage,
    calculate_uncertainty_bounds,
    clamp,
    format_fixed,
    parse_fixed,
    round_stable,
    safe_add,
    safe_multiply,
    safe_product,
    safe_sum,
)
from carbon_conversion.avoided import (
    avoided_emissions,
    avoided_emissions_with_methodology,
    avoided_emissions_with_uncertainty,
    batch_avoided_emissions,
    total_avoided_emissions,
)
from carbon_conversion.errors import (
    CarbonConversionError,
    ErrorInfo,
    InvalidFactorError,
    InvalidRoundingModeError,
    InvalidUnitError,
    NegativeEnergyError,
    NegativeFactorError,
    NoFactorForDateError,
    NonFiniteInputError,
    RegistryUninitializedError,
    SafeResult,
    UnknownRegionError,
    safe_call,
)
from carbon_conversion.factors import (
    FactorRegistry,
    RegistrySnapshot,
    default_registry,
    get_available_regions,
    get_available_scopes,
    get_factor_by_id,
    get_factors_by_region_and_scope,
    get_latest_factor,
    get_region_info,
    initialize_factor_registry,
    is_region_supported,
    list_factors,
    load_factor_pack,
    reset_default_registry,
    resolve_factor,
)
from carbon_conversion.grid import (
    batch_to_co2e_tonnes,
    convert,
    to_co2e_kg,
    to_co2e_kg_rounded,
    to_co2e_tonnes,
    to_co2e_tonnes_rounded,
    to_co2e_with_uncertainty,
    total_co2e_tonnes,
)
from carbon_conversion.hashing import (
    create_digest,
    fingerprint,
    stable_equal,
    stable_stringify,
    to_hash_string,
)
from carbon_conversion.models import (
    ConversionInput,
    ConversionResult,
    EmissionFactor,
    FactorFilter,
    FactorSource,
    MethodologyAdjustments,
    RegionMapping,
    RoundingSpec,
    UncertainEmission,
    UncertaintyBounds,
)
from carbon_conversion.schemas import (
    validate_conversion_input,
    validate_factor,
    validate_factor_filter,
    validate_factor_pack,
    validate_region_pack,
    validate_rounding,
)
from carbon_conversion.units import (
    denormalize_energy,
    energy_conversion_factor,
    gwh_to_kwh,
    kg_to_tonnes,
    kwh_to_gwh,
    kwh_to_mwh,
    mass_conversion_factor,
    mwh_to_kwh,
    normalize_energy,
    normalize_mass,
    normalize_to_kg,
    normalize_to_tonnes,
    tonnes_to_kg,
)

__version__ = "1.0.0"
