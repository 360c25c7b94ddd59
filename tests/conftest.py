"""
Pytest configuration and fixtures.
"""

from datetime import date, timedelta

import pytest

from cvd_engine.schedule import ScheduleConfig, get_schedule

# Two tiers, boundary at 5 points: small enough to walk by hand
TWO_TIER_SCHEDULE = {
    "version": "test-two-tier",
    "tiers": [
        {"number": 1, "lower_bound": 0, "name": "Low"},
        {"number": 2, "lower_bound": 5, "name": "High"},
    ],
    "points": {"X": 4, "Y": 1},
    "rates": {"X": ["50", "60"], "Y": ["10", "15"]},
}


@pytest.fixture
def schedule() -> ScheduleConfig:
    return get_schedule("2025-08-28")


@pytest.fixture
def two_tier_schedule() -> ScheduleConfig:
    return ScheduleConfig.from_dict(TWO_TIER_SCHEDULE)


@pytest.fixture
def make_sales():
    """Build Sale objects one day apart, starting 2025-08-01, with ids s1, s2, ..."""
    from cvd_engine.models import Sale

    def _make(*products, start=date(2025, 8, 1)):
        return [
            Sale(product=product, occurred_at=start + timedelta(days=i), sale_id=f"s{i + 1}")
            for i, product in enumerate(products)
        ]

    return _make
