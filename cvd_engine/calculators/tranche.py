"""
Tranche Commission Calculator

Prices every sale of the period at the rate of the distributor's final tier.
"""

from decimal import Decimal
from typing import Iterable

from ..models import TRANCHE_MODE, CommissionReport, Sale, SaleLine
from ..output import ReportBuilder
from ..schedule import ScheduleConfig
from .pricing import SalePricer, order_sales
from .tier import TierResolver


class TrancheCommissionCalculator:
    """Calculates the tier-snapshot commission for a period."""

    def __init__(
        self,
        config: ScheduleConfig,
        resolver: TierResolver | None = None,
        report_builder: ReportBuilder | None = None,
    ):
        self.config = config
        self.resolver = resolver or TierResolver.from_config(config)
        self.pricer = SalePricer(config)
        self.report_builder = report_builder or ReportBuilder()

    def calculate(
        self,
        sales: Iterable[Sale],
        distributor_id: str | None = None,
        period: str | None = None,
    ) -> CommissionReport:
        """
        Calculate the tranche commission.

        1. Sum the points of every sale
        2. Resolve the final tier from that total
        3. Price each sale at the final tier's rate for its product

        The result does not depend on sale order; sales are only sorted
        so the per-sale lines read chronologically.
        """
        ordered = order_sales(sales)
        scored = [(sale, *self.pricer.points(sale)) for sale in ordered]

        total_points = sum(points for _, points, _ in scored)
        final_tier = self.resolver.resolve(total_points)

        lines = []
        cumulative = 0
        total_commission = Decimal("0.00")

        for position, (sale, points, unknown) in enumerate(scored):
            cumulative += points
            rate, commission = self.pricer.price(final_tier, sale, unknown)
            total_commission += commission
            lines.append(SaleLine(
                position=position,
                product=self.pricer.product_name(sale),
                occurred_at=sale.occurred_at,
                points=points,
                cumulative_points=cumulative,
                tier=final_tier,
                rate=rate,
                commission=commission,
                sale_id=sale.sale_id,
                unknown_product=unknown,
            ))

        return self.report_builder.build(
            mode=TRANCHE_MODE,
            schedule_version=self.config.version,
            resolver=self.resolver,
            lines=lines,
            total_points=total_points,
            total_commission=total_commission,
            distributor_id=distributor_id,
            period=period,
        )
