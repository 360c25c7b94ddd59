"""
Validation for the CVD Commission Engine

Schedules are validated once, when loaded, so that a missing rate or a
non-monotonic grid is a configuration error and never surfaces mid-calculation.
Requests are validated before processing begins.
Raises ConfigurationError / ValueError with clear messages for any violation.
"""

import re

from .exceptions import ConfigurationError
from .models import CalculationRequest
from .schedule import ScheduleConfig

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class ScheduleValidator:
    """Validates a schedule configuration according to the CVD rules."""

    def validate(self, config: ScheduleConfig) -> None:
        """
        Run all validations. Raises ConfigurationError if any check fails.
        """
        self._validate_tiers(config)
        self._validate_points(config)
        self._validate_rates(config)
        self._validate_aliases(config)

    def _validate_tiers(self, config: ScheduleConfig) -> None:
        """Tiers must be numbered 1..n and cover every point total exactly once."""
        if not config.tiers:
            raise ConfigurationError(f"Schedule {config.version} defines no tiers")

        numbers = [t.number for t in config.tiers]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ConfigurationError(f"Tiers must be numbered 1..{len(numbers)}, got: {numbers}")

        bounds = config.tier_bounds
        if bounds[0] != 0:
            raise ConfigurationError(f"Tier 1 must start at 0 points, got: {bounds[0]}")

        for lower, upper in zip(bounds, bounds[1:]):
            if upper <= lower:
                raise ConfigurationError(f"Tier lower bounds must be strictly increasing, got: {list(bounds)}")

        if config.palier_size <= 0:
            raise ConfigurationError(f"palier_size must be positive, got: {config.palier_size}")

    def _validate_points(self, config: ScheduleConfig) -> None:
        """Every product must be worth a positive number of points."""
        if not config.points:
            raise ConfigurationError(f"Schedule {config.version} defines no products")

        for product, points in config.points.items():
            if points <= 0:
                raise ConfigurationError(f"Points for {product!r} must be positive, got: {points}")

    def _validate_rates(self, config: ScheduleConfig) -> None:
        """The rate grid must be complete and non-decreasing in tier for each product."""
        tier_count = len(config.tiers)

        for product in config.points:
            if product not in config.rates:
                raise ConfigurationError(f"Missing rates for product {product!r}")

        for product, rates in config.rates.items():
            if product not in config.points:
                raise ConfigurationError(f"Product {product!r} has rates but no point value")

            if len(rates) != tier_count:
                raise ConfigurationError(
                    f"Product {product!r} needs {tier_count} rates (one per tier), got: {len(rates)}"
                )

            for tier, rate in enumerate(rates, start=1):
                if rate < 0:
                    raise ConfigurationError(f"Tier {tier} rate for {product!r} cannot be negative, got: {rate}")

            for tier, (lower, higher) in enumerate(zip(rates, rates[1:]), start=2):
                if higher < lower:
                    raise ConfigurationError(
                        f"Rates for {product!r} must not decrease with tier: "
                        f"tier {tier - 1} pays {lower}, tier {tier} pays {higher}"
                    )

    def _validate_aliases(self, config: ScheduleConfig) -> None:
        """Aliases must point at a real product and not shadow one."""
        for alias, product in config.aliases.items():
            if product not in config.points:
                raise ConfigurationError(f"Alias {alias!r} points to unknown product {product!r}")
            if alias in config.points:
                raise ConfigurationError(f"Alias {alias!r} shadows an existing product")


class InputValidator:
    """Validates a calculation request before it reaches the calculators."""

    def validate(self, request: CalculationRequest) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        for index, sale in enumerate(request.sales):
            if not sale.product:
                raise ValueError(f"Sale {index} has an empty product")

        if request.period is not None and not PERIOD_PATTERN.match(str(request.period)):
            raise ValueError(f"period must use the YYYY-MM format, got: {request.period}")
