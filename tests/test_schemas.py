"""
Unit tests for carbon_conversion/schemas.py
"""
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from carbon_conversion.default_pack import DEFAULT_FACTORS, DEFAULT_REGIONS
from carbon_conversion.errors import InvalidFactorError
from carbon_conversion.models import EmissionFactor, RoundingSpec
from carbon_conversion.schemas import (
    coerce_date,
    validate_conversion_input,
    validate_factor,
    validate_factor_filter,
    validate_factor_pack,
    validate_region_pack,
    validate_rounding,
)


def factor_dict(**overrides):
    data = {
        "id": "IN-2024-BASELINE",
        "region": "IN",
        "scope": "baseline",
        "gas": "CO2e",
        "valueKgPerKWh": 0.708,
        "effectiveFrom": "2024-01-01",
        "source": {"name": "Illustrative India factor (demo)"},
        "version": "v1",
    }
    data.update(overrides)
    return data


# ─────────────────────────────────────────────────────────────────────────────
# coerce_date
# ─────────────────────────────────────────────────────────────────────────────

class TestCoerceDate:

    def test_iso_string(self):
        assert coerce_date("2024-06-30") == date(2024, 6, 30)

    def test_iso_datetime_string(self):
        assert coerce_date("2024-06-30T15:45:00Z") == date(2024, 6, 30)

    def test_date_and_datetime(self):
        assert coerce_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert coerce_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)

    def test_none(self):
        assert coerce_date(None) is None

    @pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2024-13-01", "01/02/2024"])
    def test_invalid_strings(self, value):
        with pytest.raises(ValueError):
            coerce_date(value)

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported date value"):
            coerce_date(20240101)


# ─────────────────────────────────────────────────────────────────────────────
# Factor packs
# ─────────────────────────────────────────────────────────────────────────────

class TestValidateFactor:

    def test_camel_case_record(self):
        factor = validate_factor(factor_dict())
        assert isinstance(factor, EmissionFactor)
        assert factor.value_kg_per_kwh == 0.708
        assert factor.effective_from == date(2024, 1, 1)
        assert factor.effective_to is None
        assert factor.gas == "CO2e"

    def test_snake_case_record(self):
        data = factor_dict()
        data["value_kg_per_kwh"] = data.pop("valueKgPerKWh")
        data["effective_from"] = data.pop("effectiveFrom")
        assert validate_factor(data).value_kg_per_kwh == 0.708

    def test_region_upper_cased(self):
        assert validate_factor(factor_dict(region=" in ")).region == "IN"

    def test_optional_fields(self):
        factor = validate_factor(
            factor_dict(
                effectiveTo="2024-12-31",
                uncertaintyPct=7.5,
                methodology="location-based",
                source={
                    "name": "CEA",
                    "url": "https://cea.nic.in/",
                    "publishedAt": "2024-03-01",
                },
            )
        )
        assert factor.effective_to == date(2024, 12, 31)
        assert factor.uncertainty_pct == 7.5
        assert factor.methodology == "location-based"
        assert factor.source.url == "https://cea.nic.in/"
        assert factor.source.published_at == date(2024, 3, 1)

    @pytest.mark.parametrize("value", [0, -0.1, 2.5, float("nan"), float("inf")])
    def test_factor_value_bounds(self, value):
        with pytest.raises(InvalidFactorError):
            validate_factor(factor_dict(valueKgPerKWh=value))

    def test_upper_bound_inclusive(self):
        assert validate_factor(factor_dict(valueKgPerKWh=2.0)).value_kg_per_kwh == 2.0

    def test_window_order(self):
        with pytest.raises(InvalidFactorError, match="is after effectiveTo"):
            validate_factor(factor_dict(effectiveFrom="2024-06-01", effectiveTo="2024-01-01"))

    def test_bad_date(self):
        with pytest.raises(InvalidFactorError):
            validate_factor(factor_dict(effectiveFrom="2024-13-01"))

    def test_unknown_scope_and_gas(self):
        with pytest.raises(InvalidFactorError):
            validate_factor(factor_dict(scope="lifecycle"))
        with pytest.raises(InvalidFactorError):
            validate_factor(factor_dict(gas="CH4"))

    def test_missing_required_field(self):
        data = factor_dict()
        del data["version"]
        with pytest.raises(InvalidFactorError, match="version"):
            validate_factor(data)


class TestValidateFactorPack:

    def test_default_pack(self):
        records = validate_factor_pack(DEFAULT_FACTORS)
        assert [r.id for r in records] == [
            "WORLD-DEFAULT-2024",
            "IN-2024-BASELINE",
            "US-2024-BASELINE",
            "EU-2024-BASELINE",
        ]

    def test_not_a_list(self):
        with pytest.raises(InvalidFactorError):
            validate_factor_pack({"id": "x"})

    def test_one_bad_record_fails_pack(self):
        with pytest.raises(InvalidFactorError):
            validate_factor_pack([factor_dict(), factor_dict(id="B", valueKgPerKWh=-1)])


class TestValidateRegionPack:

    def test_default_regions(self):
        regions = validate_region_pack(DEFAULT_REGIONS)
        india = next(r for r in regions if r.code == "IN")
        assert india.iso3 == "IND"
        assert india.un_m49 == "356"
        assert india.aliases() == ("IN", "IN", "IND", "356")

    def test_code_upper_cased(self):
        assert validate_region_pack([{"code": "fr", "name": "France"}])[0].code == "FR"

    def test_bad_iso2(self):
        with pytest.raises(InvalidFactorError, match="region pack"):
            validate_region_pack([{"code": "FR", "name": "France", "iso2": "FRA"}])


# ─────────────────────────────────────────────────────────────────────────────
# Caller input
# ─────────────────────────────────────────────────────────────────────────────

class TestValidateConversionInput:

    def test_camel_case(self):
        item = validate_conversion_input(
            {"energy": 5100, "inputUnit": "kWh", "factorKgPerKWh": 0.708, "rounding": {"decimals": 2}}
        )
        assert item.energy == 5100
        assert item.input_unit == "kWh"
        assert item.factor_kg_per_kwh == 0.708
        assert item.rounding == RoundingSpec(2, "HALF_UP")

    def test_no_rounding(self):
        item = validate_conversion_input({"energy": 1, "input_unit": "MWh", "factor_kg_per_kwh": 0.5})
        assert item.rounding is None

    @pytest.mark.parametrize(
        "data",
        [
            {"energy": -1, "inputUnit": "kWh", "factorKgPerKWh": 0.5},
            {"energy": 1, "inputUnit": "Wh", "factorKgPerKWh": 0.5},
            {"energy": 1, "inputUnit": "kWh", "factorKgPerKWh": 0},
            {"energy": float("nan"), "inputUnit": "kWh", "factorKgPerKWh": 0.5},
            {"energy": 1, "inputUnit": "kWh", "factorKgPerKWh": 0.5, "rounding": {"decimals": 11}},
        ],
    )
    def test_rejected(self, data):
        with pytest.raises(ValidationError):
            validate_conversion_input(data)


class TestValidateRounding:

    def test_defaults(self):
        assert validate_rounding({}) == RoundingSpec(6, "HALF_UP")

    def test_mode(self):
        assert validate_rounding({"decimals": 0, "mode": "TRUNC"}) == RoundingSpec(0, "TRUNC")

    def test_bad_mode(self):
        with pytest.raises(ValidationError):
            validate_rounding({"mode": "HALF_EVEN"})


class TestValidateFactorFilter:

    def test_aliases(self):
        criteria = validate_factor_filter({"region": "IN", "from": "2024-01-01", "to": "2024-12-31"})
        assert criteria.region == "IN"
        assert criteria.date_from == date(2024, 1, 1)
        assert criteria.date_to == date(2024, 12, 31)

    def test_empty(self):
        criteria = validate_factor_filter({})
        assert criteria.region is None
        assert criteria.date_from is None
