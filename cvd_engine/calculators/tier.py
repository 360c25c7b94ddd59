"""
Tier Resolver

The only place where cumulative points are compared against tier bounds.
Both calculators and the projection estimator go through it.
"""

from bisect import bisect_right

from ..schedule import ScheduleConfig

DEFAULT_TIER_BOUNDS = (0, 26, 51, 101)


class TierResolver:
    """Maps cumulative points to a tier number (1 = lowest)."""

    def __init__(self, bounds: tuple[int, ...] = DEFAULT_TIER_BOUNDS):
        self.bounds = tuple(bounds)

    @classmethod
    def from_config(cls, config: ScheduleConfig) -> "TierResolver":
        return cls(config.tier_bounds)

    @property
    def top_tier(self) -> int:
        return len(self.bounds)

    def resolve(self, points: int) -> int:
        """
        Resolve the tier for a cumulative point total.

        With the default bounds: 101+ -> 4, 51+ -> 3, 26+ -> 2, else 1.
        """
        if points < 0:
            raise ValueError(f"Cumulative points cannot be negative, got: {points}")
        return bisect_right(self.bounds, points)

    def lower_bound(self, tier: int) -> int:
        return self.bounds[tier - 1]

    def upper_bound(self, tier: int) -> int | None:
        """Highest point total still in this tier (None = open-ended)."""
        if tier >= self.top_tier:
            return None
        return self.bounds[tier] - 1

    def points_to_next_tier(self, points: int) -> int | None:
        tier = self.resolve(points)
        if tier >= self.top_tier:
            return None
        return self.bounds[tier] - points
