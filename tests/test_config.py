"""
Tests for environment settings and schedule loading.
"""

import copy
import json

import pytest

from cvd_engine.config import Settings, load_schedule, processor_from_env
from cvd_engine.exceptions import ConfigurationError
from cvd_engine.schedule import SCHEDULES


class TestSettings:
    """Test environment parsing."""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.environment == "dev"
        assert settings.port == 8080
        assert settings.schedule_version == "2025-08-28"
        assert settings.schedule_path is None
        assert settings.crossing_sale_tier == "new"

    def test_overrides(self):
        settings = Settings.from_env({
            "ENVIRONMENT": "prod",
            "PORT": "9000",
            "CVD_SCHEDULE_VERSION": "2025-07-01",
            "CVD_CROSSING_SALE_TIER": "OLD",
        })

        assert settings.environment == "prod"
        assert settings.port == 9000
        assert settings.schedule_version == "2025-07-01"
        assert settings.crossing_sale_tier == "old"

    def test_invalid_crossing_policy(self):
        with pytest.raises(ConfigurationError, match="CVD_CROSSING_SALE_TIER"):
            Settings.from_env({"CVD_CROSSING_SALE_TIER": "both"})


class TestLoadSchedule:
    """Test built-in and file-based schedules."""

    def test_builtin_version(self):
        assert load_schedule("2025-07-01").version == "2025-07-01"

    def test_file_overrides_version(self, tmp_path):
        raw = copy.deepcopy(SCHEDULES["2025-08-28"])
        raw["version"] = "2026-01-01"
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps(raw), encoding="utf-8")

        assert load_schedule("2025-07-01", str(path)).version == "2026-01-01"

    def test_invalid_file_schedule_refused(self, tmp_path):
        raw = copy.deepcopy(SCHEDULES["2025-08-28"])
        raw["rates"]["Freebox Pop"] = ["90", "60", "70", "80"]
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps(raw), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must not decrease"):
            load_schedule(path=str(path))

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_schedule(path=str(tmp_path / "missing.json"))

    def test_processor_from_env(self):
        processor = processor_from_env(Settings(crossing_sale_tier="old"))

        assert processor.crossing_sale_tier == "old"
        assert processor.progressive_calculator.crossing_sale_tier == "old"
        assert processor.config.version == "2025-08-28"
