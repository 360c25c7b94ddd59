"""
Runtime configuration for the CVD Commission Engine.

Settings come from environment variables; the schedule is either a built-in
version or a JSON file with the same shape as the entries of SCHEDULES.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .cache import ReportCache
from .calculators import CROSSING_SALE_TIERS, NEW_TIER
from .exceptions import ConfigurationError
from .processor import CommissionProcessor
from .schedule import DEFAULT_SCHEDULE_VERSION, ScheduleConfig, get_schedule
from .validators import ScheduleValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Environment-driven settings shared by the Flask app and the Lambda handler."""

    environment: str = "dev"
    port: int = 8080
    schedule_version: str = DEFAULT_SCHEDULE_VERSION
    schedule_path: str | None = None
    crossing_sale_tier: str = NEW_TIER

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        crossing = env.get("CVD_CROSSING_SALE_TIER", NEW_TIER).lower()
        if crossing not in CROSSING_SALE_TIERS:
            raise ConfigurationError(
                f"CVD_CROSSING_SALE_TIER must be one of {', '.join(CROSSING_SALE_TIERS)}, got: {crossing}"
            )
        return cls(
            environment=env.get("ENVIRONMENT", "dev"),
            port=int(env.get("PORT", 8080)),
            schedule_version=env.get("CVD_SCHEDULE_VERSION", DEFAULT_SCHEDULE_VERSION),
            schedule_path=env.get("CVD_SCHEDULE_PATH") or None,
            crossing_sale_tier=crossing,
        )


def load_schedule(version: str = DEFAULT_SCHEDULE_VERSION, path: str | None = None) -> ScheduleConfig:
    """Load and validate a schedule. A file path takes precedence over the version."""
    if path:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read schedule file {path}: {e}") from e
        config = ScheduleConfig.from_dict(data)
    else:
        config = get_schedule(version)

    ScheduleValidator().validate(config)
    logger.info(f"Loaded CVD schedule {config.version}")
    return config


def processor_from_env(settings: Settings | None = None, cache: ReportCache | None = None) -> CommissionProcessor:
    """Build the processor the HTTP entry points share."""
    settings = settings or Settings.from_env()
    config = load_schedule(settings.schedule_version, settings.schedule_path)
    return CommissionProcessor(config, settings.crossing_sale_tier, cache)
