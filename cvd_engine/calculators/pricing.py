"""
Shared pricing helpers for the CVD calculators.

All money is Decimal, quantized to cents with ROUND_HALF_UP.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..exceptions import UnknownProductError
from ..models import Sale
from ..schedule import ProductPointTable, ScheduleConfig, TierSchedule

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def sale_id_key(sale_id: str | None) -> tuple[int, int, str]:
    """Order ledger ids numerically when they are integers, as the ledger does."""
    if sale_id is None:
        return 0, 0, ""
    sale_id = str(sale_id)
    if sale_id.isdecimal():
        return 1, int(sale_id), ""
    return 2, 0, sale_id


def order_sales(sales: Iterable[Sale]) -> list[Sale]:
    """
    Sort sales chronologically.

    Identical timestamps are ordered by sale_id (numerically for integer
    ids), then by input position, so the same snapshot always walks in the
    same order.
    """
    indexed = list(enumerate(sales))
    ordered = sorted(indexed, key=lambda item: (item[1].occurred_at, sale_id_key(item[1].sale_id), item[0]))
    if [i for i, _ in ordered] != list(range(len(indexed))):
        logger.warning(f"Received {len(indexed)} sales out of chronological order; re-sorted")
    return [sale for _, sale in ordered]


class SalePricer:
    """Looks up points and rates for sales, flagging unknown products."""

    def __init__(self, config: ScheduleConfig):
        self.points_table = ProductPointTable(config)
        self.schedule = TierSchedule(config)

    def product_name(self, sale: Sale) -> str:
        return self.points_table.canonical(sale.product)

    def points(self, sale: Sale) -> tuple[int, bool]:
        """Return (points, unknown_product) for a sale."""
        try:
            return self.points_table.points_for(sale.product), False
        except UnknownProductError:
            logger.warning(f"Unknown product {sale.product!r} on sale {sale.sale_id or '-'}: priced at zero")
            return 0, True

    def price(self, tier: int, sale: Sale, unknown_product: bool) -> tuple[Decimal, Decimal]:
        """Return (rate, commission) for one sale at the given tier."""
        if unknown_product:
            return ZERO, ZERO
        rate = self.schedule.rate_for(tier, sale.product)
        return rate, quantize_money(rate)
