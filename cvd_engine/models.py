"""
Domain Models for the CVD Commission Engine

These dataclasses provide type-safe representations of sales, per-sale
pricing lines and the reports built from them.
All monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal

TRANCHE_MODE = "tranche"
PROGRESSIVE_MODE = "progressive"
MODES = (TRANCHE_MODE, PROGRESSIVE_MODE)

# =============================================================================
# INPUT MODELS
# =============================================================================


def parse_timestamp(value) -> datetime:
    """Normalize a date, datetime or ISO string to a naive datetime (aware values converted to UTC)."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return parse_timestamp(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    raise TypeError(f"occurred_at must be a date, datetime or ISO string, got: {value!r}")


@dataclass(frozen=True)
class Sale:
    """One qualifying installation, as supplied by the sales ledger."""

    product: str
    occurred_at: datetime
    sale_id: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "occurred_at", parse_timestamp(self.occurred_at))

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        sale_id = data.get("sale_id", data.get("id"))
        return cls(
            product=str(data["product"]).strip(),
            occurred_at=data["occurred_at"],
            sale_id=str(sale_id) if sale_id is not None else None,
        )


@dataclass(frozen=True)
class CalculationRequest:
    """Sales snapshot for one distributor and period."""

    sales: tuple[Sale, ...]
    distributor_id: str | None = None
    period: str | None = None  # e.g. "2025-08"; filtering is the caller's job

    @classmethod
    def from_dict(cls, data: dict) -> "CalculationRequest":
        raw_sales = data.get("sales")
        if raw_sales is None:
            raise ValueError("sales is required")
        if not isinstance(raw_sales, list):
            raise ValueError(f"sales must be a list, got: {type(raw_sales).__name__}")
        distributor = data.get("distributor_id")
        return cls(
            sales=tuple(Sale.from_dict(s) for s in raw_sales),
            distributor_id=str(distributor) if distributor is not None else None,
            period=data.get("period"),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class SaleLine:
    """How a single sale was priced."""

    position: int
    product: str
    occurred_at: datetime
    points: int
    cumulative_points: int
    tier: int
    rate: Decimal
    commission: Decimal
    sale_id: str | None = None
    palier_crossed: bool = False
    unknown_product: bool = False


@dataclass(frozen=True)
class BreakdownLine:
    """Sales of one product priced at one tier and rate."""

    product: str
    count: int
    points_each: int
    points_subtotal: int
    tier: int
    rate: Decimal
    commission_subtotal: Decimal
    unknown_product: bool = False


@dataclass(frozen=True)
class CommissionReport:
    """Commission for one distributor, period and calculation mode."""

    mode: str
    schedule_version: str
    total_points: int
    final_tier: int
    total_commission: Decimal
    breakdown: tuple[BreakdownLine, ...] = ()
    sale_lines: tuple[SaleLine, ...] = ()
    commission_by_tier: tuple[tuple[int, Decimal], ...] = ()
    paliers_reached: tuple[int, ...] = ()
    points_to_next_tier: int | None = None
    unknown_products: tuple[str, ...] = ()
    # Palier-gated tier after the last sale; progressive mode only
    active_tier: int | None = None
    distributor_id: str | None = None
    period: str | None = None

    @property
    def sales_count(self) -> int:
        return len(self.sale_lines)


@dataclass(frozen=True)
class CommissionStatement:
    """Both reports for one snapshot, reconciled against each other."""

    tranche: CommissionReport
    progressive: CommissionReport
    fingerprint: str = ""

    def report_for(self, mode: str) -> CommissionReport:
        if mode == TRANCHE_MODE:
            return self.tranche
        if mode == PROGRESSIVE_MODE:
            return self.progressive
        raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(MODES)}")


@dataclass(frozen=True)
class Projection:
    """End-of-period estimate. Advisory only, never used for payout."""

    mode: str
    elapsed_days: int
    remaining_days: int
    actual_points: int
    actual_commission: Decimal
    current_tier: int
    daily_points_average: Decimal = Decimal("0")
    daily_commission_average: Decimal = Decimal("0")
    projected_remaining_points: Decimal = Decimal("0")
    projected_total_points: Decimal = Decimal("0")
    projected_remaining_commission: Decimal = Decimal("0")
    projected_total_commission: Decimal = Decimal("0")
    projected_tier: int = 1
    tier_change_likely: bool = False
    next_tier: int | None = None
    days_to_next_tier: int | None = None
    is_estimate: bool = field(default=True, init=False)
