"""
Unit tests for carbon_conversion/grid.py

The registry-backed ``convert`` tests use a private FactorRegistry so the
process-wide default is never touched.
"""
import math
from unittest.mock import patch

import pytest

from carbon_conversion.errors import (
    InvalidUnitError,
    NegativeEnergyError,
    NegativeFactorError,
    NoFactorForDateError,
    NonFiniteInputError,
    RegistryUninitializedError,
)
from carbon_conversion.factors import FactorRegistry
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
from carbon_conversion.models import ConversionInput, RoundingSpec


@pytest.fixture
def registry():
    return FactorRegistry.from_pack(
        [
            {
                "id": "WORLD-DEFAULT-2024",
                "region": "WORLD",
                "scope": "baseline",
                "valueKgPerKWh": 0.82,
                "effectiveFrom": "2024-01-01",
                "source": {"name": "Test"},
                "version": "v1",
            },
            {
                "id": "IN-2024-BASELINE",
                "region": "IN",
                "scope": "baseline",
                "valueKgPerKWh": 0.708,
                "effectiveFrom": "2024-01-01",
                "uncertaintyPct": 10,
                "source": {"name": "Test"},
                "version": "v2",
            },
        ],
        [{"code": "IN", "name": "India", "iso2": "IN", "iso3": "IND", "unM49": "356"}],
    )


# ─────────────────────────────────────────────────────────────────────────────
# to_co2e_kg / to_co2e_tonnes
# ─────────────────────────────────────────────────────────────────────────────

class TestToCo2eKg:

    def test_kwh(self):
        assert to_co2e_kg(1000, "kWh", 0.5) == 500.0

    def test_mwh(self):
        assert to_co2e_kg(1, "MWh", 0.5) == 500.0

    def test_gwh(self):
        assert to_co2e_kg(0.001, "GWh", 0.5) == pytest.approx(500.0)

    def test_india_baseline_example(self):
        assert to_co2e_kg(12345.678, "kWh", 0.708) == pytest.approx(8740.740024)

    def test_zero_energy(self):
        assert to_co2e_kg(0, "kWh", 0.708) == 0.0

    def test_zero_factor(self):
        assert to_co2e_kg(1000, "kWh", 0) == 0.0

    def test_negative_energy_raises(self):
        with pytest.raises(NegativeEnergyError, match="Energy cannot be negative"):
            to_co2e_kg(-1, "kWh", 0.5)

    def test_negative_factor_raises(self):
        with pytest.raises(NegativeFactorError, match="Emission factor cannot be negative"):
            to_co2e_kg(1000, "kWh", -0.1)

    def test_invalid_unit_raises(self):
        with pytest.raises(InvalidUnitError):
            to_co2e_kg(1000, "BTU", 0.5)

    @pytest.mark.parametrize("energy", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_energy_raises(self, energy):
        with pytest.raises(NonFiniteInputError) as exc_info:
            to_co2e_kg(energy, "kWh", 0.5)
        assert exc_info.value.field == "energy"

    def test_non_finite_factor_raises(self):
        with pytest.raises(NonFiniteInputError) as exc_info:
            to_co2e_kg(1000, "kWh", float("inf"))
        assert exc_info.value.field == "factor_kg_per_kwh"

    def test_value_checks_run_before_unit_check(self):
        with pytest.raises(NegativeEnergyError):
            to_co2e_kg(-1, "BTU", 0.5)

    def test_non_finite_checked_before_sign(self):
        with pytest.raises(NonFiniteInputError):
            to_co2e_kg(float("nan"), "kWh", -1)

    def test_negative_energy_checked_before_negative_factor(self):
        with pytest.raises(NegativeEnergyError):
            to_co2e_kg(-5, "kWh", -1)


class TestToCo2eTonnes:

    def test_kwh(self):
        assert to_co2e_tonnes(1000, "kWh", 0.5) == 0.5

    def test_india_baseline_example(self):
        assert to_co2e_tonnes(12345.678, "kWh", 0.708) == pytest.approx(8.740740024)

    def test_is_kg_divided_by_1000(self):
        kg = to_co2e_kg(5100, "kWh", 0.708)
        assert to_co2e_tonnes(5100, "kWh", 0.708) == kg / 1000


# ─────────────────────────────────────────────────────────────────────────────
# Rounded variants
# ─────────────────────────────────────────────────────────────────────────────

class TestRounded:

    def test_tonnes_rounded_default(self):
        assert to_co2e_tonnes_rounded(12345.678, "kWh", 0.708) == 8.74074

    def test_kg_rounded_default(self):
        assert to_co2e_kg_rounded(12345.678, "kWh", 0.708) == 8740.740024

    def test_custom_decimals(self):
        assert to_co2e_tonnes_rounded(12345.678, "kWh", 0.708, decimals=2) == 8.74
        assert to_co2e_kg_rounded(12345.678, "kWh", 0.708, decimals=0) == 8741.0

    def test_modes(self):
        assert to_co2e_kg_rounded(12345.678, "kWh", 0.708, 1, "HALF_UP") == 8740.7
        assert to_co2e_kg_rounded(12345.678, "kWh", 0.708, 0, "DOWN") == 8740.0
        assert to_co2e_kg_rounded(12345.678, "kWh", 0.708, 0, "TRUNC") == 8740.0

    def test_rounded_still_validates(self):
        with pytest.raises(NegativeEnergyError):
            to_co2e_tonnes_rounded(-1, "kWh", 0.5)


class TestToCo2eWithUncertainty:

    def test_ten_percent_bounds(self):
        result = to_co2e_with_uncertainty(1000, "kWh", 0.5, 10)
        assert result.base_tco2e == 0.5
        assert result.lower_tco2e == pytest.approx(0.45)
        assert result.upper_tco2e == pytest.approx(0.55)
        assert result.uncertainty_pct == 10

    def test_bounds_from_rounded_base(self):
        result = to_co2e_with_uncertainty(5100, "kWh", 0.708, 10, decimals=4)
        assert result.base_tco2e == 3.6108
        assert result.lower_tco2e == 3.2497
        assert result.upper_tco2e == 3.9719

    def test_zero_uncertainty(self):
        result = to_co2e_with_uncertainty(1000, "kWh", 0.5, 0)
        assert result.lower_tco2e == result.base_tco2e == result.upper_tco2e


# ─────────────────────────────────────────────────────────────────────────────
# Batch / total
# ─────────────────────────────────────────────────────────────────────────────

class TestBatchAndTotal:

    def test_batch_keeps_order(self):
        inputs = [
            ConversionInput(1000, "kWh", 0.5),
            ConversionInput(2, "MWh", 0.25),
            ConversionInput(0, "GWh", 0.82),
        ]
        assert batch_to_co2e_tonnes(inputs) == [0.5, 0.5, 0.0]

    def test_batch_empty(self):
        assert batch_to_co2e_tonnes([]) == []

    def test_batch_propagates_first_error(self):
        inputs = [ConversionInput(1000, "kWh", 0.5), ConversionInput(-1, "kWh", 0.5)]
        with pytest.raises(NegativeEnergyError):
            batch_to_co2e_tonnes(inputs)

    def test_total(self):
        inputs = [ConversionInput(1000, "kWh", 0.5), ConversionInput(2, "MWh", 0.25)]
        assert total_co2e_tonnes(inputs) == 1.0

    def test_total_empty_is_zero(self):
        assert total_co2e_tonnes([]) == 0.0

    def test_total_rounds_once_not_per_item(self):
        # Each item is 0.0004 t; rounding each to 3 places first would give 0.
        inputs = [ConversionInput(0.4, "kWh", 1.0)] * 3
        assert total_co2e_tonnes(inputs, decimals=3) == 0.001


# ─────────────────────────────────────────────────────────────────────────────
# convert
# ─────────────────────────────────────────────────────────────────────────────

class TestConvert:

    def test_explicit_factor(self):
        result = convert(12345.678, "kWh", factor_kg_per_kwh=0.708)
        assert result.kg_co2e == 8740.740024
        assert result.t_co2e == 8.74074
        assert result.energy_kwh == 12345.678
        assert result.factor_kg_per_kwh == 0.708
        assert result.uncertainty is None
        assert result.meta["input_unit"] == "kWh"
        assert result.meta["rounding"] == {"decimals": 6, "mode": "HALF_UP"}
        assert "factor_id" not in result.meta

    def test_energy_reported_in_kwh(self):
        result = convert(1.2, "MWh", factor_kg_per_kwh=0.5)
        assert result.energy_kwh == 1200.0
        assert result.t_co2e == 0.6

    def test_custom_rounding(self):
        result = convert(
            12345.678, "kWh", factor_kg_per_kwh=0.708, rounding=RoundingSpec(2, "TRUNC")
        )
        assert result.kg_co2e == 8740.74
        assert result.t_co2e == 8.74

    def test_resolves_factor_from_registry(self, registry):
        result = convert(1000, "kWh", region="IN", date="2024-06-30", registry=registry)
        assert result.factor_kg_per_kwh == 0.708
        assert result.t_co2e == 0.708
        assert result.meta["factor_id"] == "IN-2024-BASELINE"
        assert result.meta["factor_region"] == "IN"
        assert result.meta["factor_scope"] == "baseline"
        assert result.meta["factor_version"] == "v2"
        assert result.meta["requested_region"] == "IN"

    def test_resolved_factor_uncertainty_applied(self, registry):
        result = convert(1000, "kWh", region="IND", registry=registry)
        assert result.uncertainty is not None
        assert result.uncertainty.plus_minus_pct == 10
        assert result.uncertainty.lower_tco2e == pytest.approx(0.6372)
        assert result.uncertainty.upper_tco2e == pytest.approx(0.7788)

    def test_world_fallback(self, registry):
        result = convert(1000, "kWh", region="UNKNOWN", registry=registry)
        assert result.factor_kg_per_kwh == 0.82
        assert result.meta["factor_region"] == "WORLD"
        assert result.meta["requested_region"] == "UNKNOWN"

    def test_no_factor_for_date(self, registry):
        with pytest.raises(NoFactorForDateError):
            convert(1000, "kWh", region="IN", date="2020-01-01", registry=registry)

    def test_empty_registry_raises(self):
        with pytest.raises(RegistryUninitializedError):
            convert(1000, "kWh", region="IN", registry=FactorRegistry())

    def test_explicit_factor_skips_registry(self):
        result = convert(1000, "kWh", factor_kg_per_kwh=0.5, registry=FactorRegistry())
        assert result.t_co2e == 0.5

    def test_validation_errors_propagate(self, registry):
        with pytest.raises(NegativeEnergyError):
            convert(-1, "kWh", region="IN", registry=registry)
        with pytest.raises(InvalidUnitError):
            convert(1, "Wh", factor_kg_per_kwh=0.5)

    def test_energy_checked_before_resolution(self, registry):
        with pytest.raises(NegativeEnergyError):
            convert(-1, "kWh", region="IN", date="2020-01-01", registry=registry)
        with pytest.raises(NonFiniteInputError):
            convert(float("nan"), "kWh", region="IN", date="2020-01-01", registry=registry)

    def test_unit_checked_before_resolution(self, registry):
        with pytest.raises(InvalidUnitError):
            convert(1, "Wh", region="IN", date="2020-01-01", registry=registry)

    def test_input_checked_before_empty_registry(self):
        with pytest.raises(NegativeEnergyError):
            convert(-1, "kWh", region="IN", registry=FactorRegistry())

    def test_calculated_at_is_recorded(self):
        with patch("carbon_conversion.grid._utc_now", return_value="2024-06-30T00:00:00+00:00"):
            result = convert(1, "kWh", factor_kg_per_kwh=0.5)
        assert result.meta["calculated_at"] == "2024-06-30T00:00:00+00:00"

    def test_results_are_finite(self):
        result = convert(9.87e9, "GWh", factor_kg_per_kwh=2.0)
        assert math.isfinite(result.kg_co2e)
        assert math.isfinite(result.t_co2e)
