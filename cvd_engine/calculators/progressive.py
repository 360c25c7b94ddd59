"""
Progressive Commission Calculator

Walks the period's sales chronologically and re-resolves the tier each time
the running point total crosses a palier (a multiple of five points).
Each sale is priced at the tier in force when it occurred.
"""

import logging
from decimal import Decimal
from typing import Iterable

from ..models import PROGRESSIVE_MODE, CommissionReport, Sale, SaleLine
from ..output import ReportBuilder
from ..schedule import ScheduleConfig
from .pricing import SalePricer, order_sales
from .tier import TierResolver

logger = logging.getLogger(__name__)

# Tier applied to the sale that itself crosses a palier
NEW_TIER = "new"
OLD_TIER = "old"
CROSSING_SALE_TIERS = (NEW_TIER, OLD_TIER)


class ProgressiveCommissionCalculator:
    """Calculates the palier-by-palier commission for a period."""

    def __init__(
        self,
        config: ScheduleConfig,
        resolver: TierResolver | None = None,
        crossing_sale_tier: str = NEW_TIER,
        report_builder: ReportBuilder | None = None,
    ):
        if crossing_sale_tier not in CROSSING_SALE_TIERS:
            raise ValueError(
                f"Invalid crossing_sale_tier: {crossing_sale_tier}. Must be 'new' or 'old'"
            )
        self.config = config
        self.resolver = resolver or TierResolver.from_config(config)
        self.crossing_sale_tier = crossing_sale_tier
        self.palier_size = config.palier_size
        self.pricer = SalePricer(config)
        self.report_builder = report_builder or ReportBuilder()

    def calculate(
        self,
        sales: Iterable[Sale],
        distributor_id: str | None = None,
        period: str | None = None,
    ) -> CommissionReport:
        """
        Calculate the progressive commission.

        For each sale, in chronological order:
        1. Add its points to the running total
        2. If floor(total / 5) moved past floor(previous / 5), a palier was
           crossed: re-resolve the tier from the new total
        3. Price the sale at the current tier. With crossing_sale_tier='old'
           the sale that crossed is still priced at the previous tier and
           the new tier only applies from the next sale.
        """
        cumulative = 0
        current_tier = self.resolver.resolve(0)
        total_commission = Decimal("0.00")
        lines = []
        paliers = []

        for position, sale in enumerate(order_sales(sales)):
            points, unknown = self.pricer.points(sale)
            points_before = cumulative
            cumulative += points

            tier_before = current_tier
            crossed = self._palier_index(cumulative) > self._palier_index(points_before)
            if crossed:
                paliers.extend(self._paliers_between(points_before, cumulative))
                current_tier = self.resolver.resolve(cumulative)
                if current_tier != tier_before:
                    logger.debug(
                        f"Tier {tier_before} -> {current_tier} at {cumulative} points "
                        f"(sale {sale.sale_id or position})"
                    )

            pricing_tier = current_tier if self.crossing_sale_tier == NEW_TIER else tier_before
            rate, commission = self.pricer.price(pricing_tier, sale, unknown)
            total_commission += commission

            lines.append(SaleLine(
                position=position,
                product=self.pricer.product_name(sale),
                occurred_at=sale.occurred_at,
                points=points,
                cumulative_points=cumulative,
                tier=pricing_tier,
                rate=rate,
                commission=commission,
                sale_id=sale.sale_id,
                palier_crossed=crossed,
                unknown_product=unknown,
            ))

        return self.report_builder.build(
            mode=PROGRESSIVE_MODE,
            schedule_version=self.config.version,
            resolver=self.resolver,
            lines=lines,
            total_points=cumulative,
            total_commission=total_commission,
            paliers_reached=paliers,
            active_tier=current_tier,
            distributor_id=distributor_id,
            period=period,
        )

    def _palier_index(self, points: int) -> int:
        return points // self.palier_size

    def _paliers_between(self, points_before: int, points_after: int) -> list[int]:
        """Palier boundaries (in points) crossed going from points_before to points_after."""
        first = self._palier_index(points_before) + 1
        last = self._palier_index(points_after)
        return [index * self.palier_size for index in range(first, last + 1)]
