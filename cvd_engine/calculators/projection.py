"""
Projection Estimator

Extrapolates the elapsed part of a period to an end-of-period estimate.
Advisory only: projections are labeled as estimates and never feed a payout.
"""

import calendar
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..models import CommissionReport, Projection
from .pricing import quantize_money
from .tier import TierResolver


def quantize_points(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def days_in_period(period: str, today: date) -> tuple[int, int]:
    """
    Return (elapsed_days, remaining_days) of a "YYYY-MM" period as of today.

    Today counts as elapsed. A finished month has no remaining days and a
    month that has not started has no elapsed days.
    """
    year, month = int(period[:4]), int(period[5:7])
    total_days = calendar.monthrange(year, month)[1]
    period_start = date(year, month, 1)
    period_end = date(year, month, total_days)

    if today < period_start:
        return 0, total_days
    if today > period_end:
        return total_days, 0
    return today.day, total_days - today.day


class ProjectionEstimator:
    """Estimates end-of-period points, commission and tier."""

    def __init__(self, resolver: TierResolver):
        self.resolver = resolver

    def estimate(self, report: CommissionReport, elapsed_days: int, remaining_days: int) -> Projection:
        """
        Project the report to the end of the period.

        daily average      = actual / elapsed_days
        projected remaining = daily average x remaining_days
        projected total    = actual + projected remaining

        With no elapsed days nothing can be extrapolated, so the projection
        equals the actuals.
        """
        if elapsed_days < 0 or remaining_days < 0:
            raise ValueError(
                f"Day counts cannot be negative, got: elapsed={elapsed_days}, remaining={remaining_days}"
            )

        actual_points = Decimal(report.total_points)
        actual_commission = report.total_commission

        if elapsed_days == 0:
            daily_points = Decimal("0")
            daily_commission = Decimal("0")
        else:
            daily_points = actual_points / Decimal(elapsed_days)
            daily_commission = actual_commission / Decimal(elapsed_days)

        remaining_points = quantize_points(daily_points * remaining_days)
        remaining_commission = quantize_money(daily_commission * remaining_days)
        projected_points = actual_points + remaining_points
        projected_tier = self.resolver.resolve(int(projected_points))

        next_tier, days_to_next = self._next_tier(report.total_points, daily_points)

        return Projection(
            mode=report.mode,
            elapsed_days=elapsed_days,
            remaining_days=remaining_days,
            actual_points=report.total_points,
            actual_commission=actual_commission,
            current_tier=report.final_tier,
            daily_points_average=quantize_points(daily_points),
            daily_commission_average=quantize_money(daily_commission),
            projected_remaining_points=remaining_points,
            projected_total_points=projected_points,
            projected_remaining_commission=remaining_commission,
            projected_total_commission=quantize_money(actual_commission + remaining_commission),
            projected_tier=projected_tier,
            tier_change_likely=projected_tier > report.final_tier,
            next_tier=next_tier,
            days_to_next_tier=days_to_next,
        )

    def _next_tier(self, points: int, daily_points: Decimal) -> tuple[int | None, int | None]:
        gap = self.resolver.points_to_next_tier(points)
        if gap is None:
            return None, None
        next_tier = self.resolver.resolve(points) + 1
        if daily_points <= 0:
            return next_tier, None
        return next_tier, math.ceil(Decimal(gap) / daily_points)
