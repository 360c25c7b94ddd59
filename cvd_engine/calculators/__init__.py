"""
Calculators Package

Provides the tier resolver, both commission calculators and the projection estimator.
"""

from .progressive import CROSSING_SALE_TIERS, NEW_TIER, OLD_TIER, ProgressiveCommissionCalculator
from .projection import ProjectionEstimator, days_in_period
from .tier import DEFAULT_TIER_BOUNDS, TierResolver
from .tranche import TrancheCommissionCalculator

__all__ = [
    "TierResolver",
    "TrancheCommissionCalculator",
    "ProgressiveCommissionCalculator",
    "ProjectionEstimator",
    "days_in_period",
    "DEFAULT_TIER_BOUNDS",
    "CROSSING_SALE_TIERS",
    "NEW_TIER",
    "OLD_TIER",
]
