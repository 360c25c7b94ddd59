"""
Output Builder

Assembles per-sale lines into a CommissionReport and converts reports,
statements and projections into plain dicts for the API response.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Sequence

from .exceptions import ReconciliationError
from .models import BreakdownLine, CommissionReport, CommissionStatement, Projection, SaleLine
from .schedule import ScheduleConfig, TierSchedule

if TYPE_CHECKING:
    from .calculators.tier import TierResolver

logger = logging.getLogger(__name__)


def to_money(value: Decimal) -> str:
    """Format a Decimal as a fixed-point string with 2 decimal places."""
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _fmt(value) -> str:
    """Format a number as currency string for descriptions."""
    return f"{value:,.2f} €"


class ReportBuilder:
    """Builds a reconciled CommissionReport from priced sale lines."""

    def build(
        self,
        mode: str,
        schedule_version: str,
        resolver: "TierResolver",
        lines: Sequence[SaleLine],
        total_points: int,
        total_commission: Decimal,
        paliers_reached: Sequence[int] = (),
        active_tier: int | None = None,
        distributor_id: str | None = None,
        period: str | None = None,
    ) -> CommissionReport:
        """Construct the report, refusing to return one whose breakdown does not add up."""
        breakdown = self._build_breakdown(lines)
        self._check_conservation(mode, breakdown, total_points, total_commission)

        return CommissionReport(
            mode=mode,
            schedule_version=schedule_version,
            total_points=total_points,
            final_tier=resolver.resolve(total_points),
            total_commission=total_commission,
            breakdown=tuple(breakdown),
            sale_lines=tuple(lines),
            commission_by_tier=self._build_commission_by_tier(lines),
            paliers_reached=tuple(paliers_reached),
            points_to_next_tier=resolver.points_to_next_tier(total_points),
            unknown_products=tuple(sorted({line.product for line in lines if line.unknown_product})),
            active_tier=active_tier,
            distributor_id=distributor_id,
            period=period,
        )

    def _build_breakdown(self, lines: Sequence[SaleLine]) -> list[BreakdownLine]:
        """Group lines by (product, tier, rate) in order of first occurrence."""
        groups: dict[tuple, list[SaleLine]] = {}
        for line in lines:
            key = (line.product, line.tier, line.rate, line.unknown_product)
            groups.setdefault(key, []).append(line)

        breakdown = []
        for (product, tier, rate, unknown), group in groups.items():
            breakdown.append(BreakdownLine(
                product=product,
                count=len(group),
                points_each=group[0].points,
                points_subtotal=sum(line.points for line in group),
                tier=tier,
                rate=rate,
                commission_subtotal=sum((line.commission for line in group), Decimal("0.00")),
                unknown_product=unknown,
            ))
        return breakdown

    def _build_commission_by_tier(self, lines: Sequence[SaleLine]) -> tuple[tuple[int, Decimal], ...]:
        totals: dict[int, Decimal] = {}
        for line in lines:
            totals[line.tier] = totals.get(line.tier, Decimal("0.00")) + line.commission
        return tuple(sorted(totals.items()))

    def _check_conservation(
        self,
        mode: str,
        breakdown: Sequence[BreakdownLine],
        total_points: int,
        total_commission: Decimal,
    ) -> None:
        points = sum(line.points_subtotal for line in breakdown)
        commission = sum((line.commission_subtotal for line in breakdown), Decimal("0.00"))

        if points != total_points or commission != total_commission:
            logger.error(
                f"{mode} breakdown does not reconcile: points {points} vs {total_points}, "
                f"commission {commission} vs {total_commission}"
            )
            raise ReconciliationError(
                f"{mode} breakdown does not sum to report totals "
                f"(points {points} != {total_points} or commission {commission} != {total_commission})"
            )


# =============================================================================
# SERIALIZATION
# =============================================================================


def report_to_dict(report: CommissionReport) -> dict:
    """Convert a CommissionReport to a JSON-compatible dict."""
    return {
        "mode": report.mode,
        "schedule_version": report.schedule_version,
        "distributor_id": report.distributor_id,
        "period": report.period,
        "total_points": report.total_points,
        "final_tier": report.final_tier,
        "active_tier": report.active_tier,
        "total_commission": to_money(report.total_commission),
        "points_to_next_tier": report.points_to_next_tier,
        "sales_count": report.sales_count,
        "breakdown": [
            {
                "product": line.product,
                "count": line.count,
                "points_each": line.points_each,
                "points_subtotal": line.points_subtotal,
                "tier": line.tier,
                "rate": to_money(line.rate),
                "commission_subtotal": to_money(line.commission_subtotal),
                "unknown_product": line.unknown_product,
                "description": _describe_breakdown_line(line),
            }
            for line in report.breakdown
        ],
        "sales": [
            {
                "position": line.position,
                "sale_id": line.sale_id,
                "product": line.product,
                "occurred_at": line.occurred_at.isoformat(),
                "points": line.points,
                "cumulative_points": line.cumulative_points,
                "tier": line.tier,
                "rate": to_money(line.rate),
                "commission": to_money(line.commission),
                "palier_crossed": line.palier_crossed,
                "unknown_product": line.unknown_product,
            }
            for line in report.sale_lines
        ],
        "commission_by_tier": {str(tier): to_money(amount) for tier, amount in report.commission_by_tier},
        "paliers_reached": list(report.paliers_reached),
        "unknown_products": list(report.unknown_products),
    }


def statement_to_dict(statement: CommissionStatement) -> dict:
    """Both reports, labeled by mode. Only reconciled statements reach this point."""
    return {
        "tranche": report_to_dict(statement.tranche),
        "progressive": report_to_dict(statement.progressive),
        "reconciled": True,
        "fingerprint": statement.fingerprint,
    }


def projection_to_dict(projection: Projection) -> dict:
    """Convert a Projection to a JSON-compatible dict."""
    return {
        "is_estimate": projection.is_estimate,
        "mode": projection.mode,
        "elapsed_days": projection.elapsed_days,
        "remaining_days": projection.remaining_days,
        "actual_points": projection.actual_points,
        "actual_commission": to_money(projection.actual_commission),
        "current_tier": projection.current_tier,
        "daily_points_average": str(projection.daily_points_average),
        "daily_commission_average": to_money(projection.daily_commission_average),
        "projected_remaining_points": str(projection.projected_remaining_points),
        "projected_total_points": str(projection.projected_total_points),
        "projected_remaining_commission": to_money(projection.projected_remaining_commission),
        "projected_total_commission": to_money(projection.projected_total_commission),
        "projected_tier": projection.projected_tier,
        "tier_change_likely": projection.tier_change_likely,
        "next_tier": projection.next_tier,
        "days_to_next_tier": projection.days_to_next_tier,
    }


def tier_details(config: ScheduleConfig, resolver: "TierResolver", number: int) -> dict:
    """Describe one tier: its name, point range and rate per product."""
    definition = config.tier(number)
    upper = resolver.upper_bound(number)
    rates = TierSchedule(config).rates_for_tier(number)

    return {
        "number": definition.number,
        "name": definition.name,
        "description": definition.description,
        "lower_bound": resolver.lower_bound(number),
        "upper_bound": upper,
        "points_range": f"{resolver.lower_bound(number)} - {upper if upper is not None else '∞'} points",
        "schedule_version": config.version,
        "rates": {product: to_money(rate) for product, rate in rates.items()},
        "points": dict(config.points),
    }


def _describe_breakdown_line(line: BreakdownLine) -> str:
    if line.unknown_product:
        return f"{line.count} × {line.product}: unknown product, not priced"
    return (
        f"{line.count} × {line.product} ({line.points_each} pts) at tier {line.tier}: "
        f"{line.count} × {_fmt(line.rate)} = {_fmt(line.commission_subtotal)}"
    )
