"""
Unit Tests for Schedule Tables and Schedule Validation

Tests verify point/rate lookups and that broken schedules are rejected at load time.
"""

import copy
from decimal import Decimal

import pytest

from cvd_engine.exceptions import ConfigurationError, UnknownProductError
from cvd_engine.schedule import SCHEDULES, ProductPointTable, ScheduleConfig, TierSchedule, get_schedule
from cvd_engine.validators import InputValidator, ScheduleValidator
from cvd_engine.models import CalculationRequest, Sale


class TestProductPointTable:
    """Test product -> points lookups."""

    @pytest.fixture
    def table(self, schedule):
        return ProductPointTable(schedule)

    @pytest.mark.parametrize("product,points", [
        ("Freebox Ultra", 6),
        ("Freebox Essentiel", 5),
        ("Freebox Pop", 4),
        ("Forfait 5G", 1),
    ])
    def test_points_per_product(self, table, product, points):
        assert table.points_for(product) == points

    def test_alias_resolves_to_product(self, table):
        assert table.canonical("5G") == "Forfait 5G"
        assert table.points_for("5G") == 1

    def test_unknown_product_raises_controlled_error(self, table):
        with pytest.raises(UnknownProductError) as exc_info:
            table.points_for("Freebox Delta")
        assert exc_info.value.product == "Freebox Delta"
        assert not table.is_known("Freebox Delta")


class TestTierSchedule:
    """Test (tier, product) -> rate lookups."""

    @pytest.fixture
    def rates(self, schedule):
        return TierSchedule(schedule)

    def test_corrected_tier_4_rates(self, rates):
        """Tier 4 was corrected to Pop 90 and Essentiel 100."""
        assert rates.rate_for(4, "Freebox Pop") == Decimal("90")
        assert rates.rate_for(4, "Freebox Essentiel") == Decimal("100")
        assert rates.rate_for(4, "Freebox Ultra") == Decimal("120")

    def test_previous_version_keeps_its_rates(self):
        rates = TierSchedule(get_schedule("2025-07-01"))
        assert rates.rate_for(4, "Freebox Pop") == Decimal("80")
        assert rates.rate_for(4, "Freebox Essentiel") == Decimal("110")

    def test_forfait_5g_is_flat(self, rates):
        assert {rates.rate_for(t, "5G") for t in (1, 2, 3, 4)} == {Decimal("10")}

    def test_rates_for_tier(self, rates):
        assert rates.rates_for_tier(2) == {
            "Freebox Ultra": Decimal("80"),
            "Freebox Essentiel": Decimal("70"),
            "Freebox Pop": Decimal("60"),
            "Forfait 5G": Decimal("10"),
        }

    def test_unknown_tier_is_configuration_error(self, rates):
        with pytest.raises(ConfigurationError):
            rates.rate_for(5, "Freebox Pop")

    def test_unknown_product(self, rates):
        with pytest.raises(UnknownProductError):
            rates.rate_for(1, "Freebox Delta")

    def test_unknown_version(self):
        with pytest.raises(ConfigurationError, match="Unknown schedule version"):
            get_schedule("1999-01-01")


class TestScheduleValidator:
    """Test that configuration errors surface at load time."""

    @pytest.fixture
    def validator(self):
        return ScheduleValidator()

    @pytest.fixture
    def raw(self):
        return copy.deepcopy(SCHEDULES["2025-08-28"])

    def test_builtin_schedules_are_valid(self, validator):
        for version in SCHEDULES:
            validator.validate(get_schedule(version))

    def test_missing_rates_for_product(self, validator, raw):
        del raw["rates"]["Freebox Pop"]
        with pytest.raises(ConfigurationError, match="Missing rates"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_incomplete_rate_row(self, validator, raw):
        raw["rates"]["Freebox Pop"] = ["50", "60", "70"]
        with pytest.raises(ConfigurationError, match="needs 4 rates"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_rates_without_points(self, validator, raw):
        raw["rates"]["Freebox Delta"] = ["50", "60", "70", "80"]
        with pytest.raises(ConfigurationError, match="no point value"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_non_monotonic_rates(self, validator, raw):
        raw["rates"]["Freebox Ultra"] = ["50", "80", "70", "120"]
        with pytest.raises(ConfigurationError, match="must not decrease"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_negative_rate(self, validator, raw):
        raw["rates"]["Forfait 5G"] = ["-10", "10", "10", "10"]
        with pytest.raises(ConfigurationError, match="cannot be negative"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_non_positive_points(self, validator, raw):
        raw["points"] = dict(raw["points"], **{"Forfait 5G": 0})
        with pytest.raises(ConfigurationError, match="must be positive"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_first_tier_must_start_at_zero(self, validator, raw):
        raw["tiers"][0]["lower_bound"] = 1
        with pytest.raises(ConfigurationError, match="start at 0"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_bounds_must_increase(self, validator, raw):
        raw["tiers"][2]["lower_bound"] = 26
        with pytest.raises(ConfigurationError, match="strictly increasing"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_tiers_numbered_from_one(self, validator, raw):
        raw["tiers"][3]["number"] = 5
        with pytest.raises(ConfigurationError, match="numbered"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_alias_must_target_product(self, validator, raw):
        raw["aliases"] = {"Ultra": "Freebox Ultra Max"}
        with pytest.raises(ConfigurationError, match="unknown product"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_palier_size_positive(self, validator, raw):
        raw["palier_size"] = 0
        with pytest.raises(ConfigurationError, match="palier_size"):
            validator.validate(ScheduleConfig.from_dict(raw))

    def test_malformed_definition(self):
        with pytest.raises(ConfigurationError, match="Malformed"):
            ScheduleConfig.from_dict({"version": "broken"})


class TestInputValidator:
    """Test request-level validation."""

    @pytest.fixture
    def validator(self):
        return InputValidator()

    def test_valid_request(self, validator):
        request = CalculationRequest(sales=(Sale("Freebox Pop", "2025-08-01"),), period="2025-08")
        validator.validate(request)

    def test_empty_product(self, validator):
        request = CalculationRequest(sales=(Sale("", "2025-08-01"),))
        with pytest.raises(ValueError, match="empty product"):
            validator.validate(request)

    def test_bad_period_format(self, validator):
        request = CalculationRequest(sales=(), period="08/2025")
        with pytest.raises(ValueError, match="YYYY-MM"):
            validator.validate(request)
