"""
Exceptions for the CVD Commission Engine.

Configuration problems are fatal at load time, unknown products are
recovered by the calculators, and reconciliation failures indicate a bug.
"""


class CommissionEngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(CommissionEngineError, ValueError):
    """Schedule or point table is incomplete or inconsistent."""


class UnknownProductError(CommissionEngineError, KeyError):
    """A sale references a product missing from the schedule."""

    def __init__(self, product: str):
        super().__init__(product)
        self.product = product

    def __str__(self) -> str:
        return f"Unknown product: {self.product!r}"


class ReconciliationError(CommissionEngineError):
    """Tranche and progressive results, or a report and its breakdown, disagree."""
