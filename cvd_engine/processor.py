"""
Commission Processor - Main Orchestrator

Coordinates the CVD calculation pipeline through discrete, testable steps.
"""

import logging
from datetime import date
from typing import Any, Dict

from .cache import ReportCache, snapshot_fingerprint
from .calculators import (
    NEW_TIER,
    ProgressiveCommissionCalculator,
    ProjectionEstimator,
    TierResolver,
    TrancheCommissionCalculator,
    days_in_period,
)
from .exceptions import ReconciliationError
from .models import MODES, PROGRESSIVE_MODE, CalculationRequest, CommissionStatement
from .output import ReportBuilder, projection_to_dict, report_to_dict, statement_to_dict, tier_details
from .schedule import ProductPointTable, ScheduleConfig, get_schedule
from .validators import InputValidator, ScheduleValidator

logger = logging.getLogger(__name__)


class CommissionProcessor:
    """
    Main orchestrator for CVD commission calculation.

    Implements a clear pipeline pattern:
    1. Validate Schedule (once, at construction)
    2. Validate Input
    3. Fingerprint the sales snapshot (and check the cache)
    4. Calculate Tranche Report
    5. Calculate Progressive Report
    6. Reconcile both reports
    7. Build Output
    """

    def __init__(
        self,
        config: ScheduleConfig | None = None,
        crossing_sale_tier: str = NEW_TIER,
        cache: ReportCache | None = None,
    ):
        self.config = config or get_schedule()
        ScheduleValidator().validate(self.config)

        self.crossing_sale_tier = crossing_sale_tier
        self.cache = cache
        self.validator = InputValidator()
        self.points_table = ProductPointTable(self.config)
        self.resolver = TierResolver.from_config(self.config)
        report_builder = ReportBuilder()
        self.tranche_calculator = TrancheCommissionCalculator(self.config, self.resolver, report_builder)
        self.progressive_calculator = ProgressiveCommissionCalculator(
            self.config, self.resolver, crossing_sale_tier, report_builder
        )
        self.projection_estimator = ProjectionEstimator(self.resolver)

    def with_version(self, version: str) -> "CommissionProcessor":
        """Processor for another built-in schedule version, sharing policy and cache."""
        if version == self.config.version:
            return self
        return CommissionProcessor(get_schedule(version), self.crossing_sale_tier, self.cache)

    def process(self, request: CalculationRequest) -> CommissionStatement:
        """
        Calculate both reports for a sales snapshot.

        Args:
            request: Sales for one distributor and period

        Returns:
            CommissionStatement with reconciled tranche and progressive reports
        """
        # Step 2: Validate
        self.validator.validate(request)

        # Step 3: Fingerprint, serve from cache if the snapshot is unchanged
        fingerprint = snapshot_fingerprint(request.sales, self.config.version, self.crossing_sale_tier)
        use_cache = self.cache is not None and request.distributor_id and request.period
        if use_cache:
            cached = self.cache.get(request.distributor_id, request.period, self.config.version, fingerprint)
            if cached is not None:
                return cached

        # Steps 4-5: Both modes over the same immutable snapshot
        tranche = self.tranche_calculator.calculate(request.sales, request.distributor_id, request.period)
        progressive = self.progressive_calculator.calculate(request.sales, request.distributor_id, request.period)

        statement = CommissionStatement(tranche=tranche, progressive=progressive, fingerprint=fingerprint)

        # Step 6: Reconcile before either report is surfaced
        self.reconcile(request, statement)

        if use_cache:
            self.cache.put(request.distributor_id, request.period, self.config.version, statement)

        return statement

    def reconcile(self, request: CalculationRequest, statement: CommissionStatement) -> None:
        """
        Check that both modes agree on what they must agree on.

        Points and final tier are shared logic; only total_commission may differ.
        """
        expected_points = sum(
            self.points_table.points_for(sale.product)
            for sale in request.sales
            if self.points_table.is_known(sale.product)
        )
        tranche = statement.tranche
        progressive = statement.progressive

        problems = []
        if not tranche.total_points == progressive.total_points == expected_points:
            problems.append(
                f"total_points tranche={tranche.total_points} progressive={progressive.total_points} "
                f"expected={expected_points}"
            )
        if tranche.final_tier != progressive.final_tier:
            problems.append(f"final_tier tranche={tranche.final_tier} progressive={progressive.final_tier}")

        if problems:
            logger.error(
                f"Commission reports diverged for {request.distributor_id or '-'} "
                f"{request.period or '-'}: {'; '.join(problems)}"
            )
            raise ReconciliationError("Tranche and progressive reports disagree: " + "; ".join(problems))

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Calculate both reports from raw dictionary input.

        Convenience method for API usage.
        """
        processor = self._processor_for(data)
        request = CalculationRequest.from_dict(data)
        return statement_to_dict(processor.process(request))

    def report_from_dict(self, data: Dict[str, Any], mode: str) -> Dict[str, Any]:
        """Single labeled report; both modes are still computed and reconciled."""
        if mode not in MODES:
            raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(MODES)}")
        processor = self._processor_for(data)
        request = CalculationRequest.from_dict(data)
        return report_to_dict(processor.process(request).report_for(mode))

    def project_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Report for the elapsed part of a period plus an end-of-period estimate."""
        mode = data.get("mode", PROGRESSIVE_MODE)
        processor = self._processor_for(data)
        request = CalculationRequest.from_dict(data)
        self.validator.validate(request)

        if "elapsed_days" in data and "remaining_days" in data:
            elapsed_days, remaining_days = int(data["elapsed_days"]), int(data["remaining_days"])
        elif request.period:
            elapsed_days, remaining_days = days_in_period(request.period, date.today())
        else:
            raise ValueError("elapsed_days and remaining_days are required when no period is given")

        report = processor.process(request).report_for(mode)
        projection = processor.projection_estimator.estimate(report, elapsed_days, remaining_days)
        return {"report": report_to_dict(report), "projection": projection_to_dict(projection)}

    def tier_details(self, number: int) -> Dict[str, Any]:
        if not 1 <= number <= self.resolver.top_tier:
            raise ValueError(f"Invalid tier: {number}. Must be between 1 and {self.resolver.top_tier}")
        return tier_details(self.config, self.resolver, number)

    def _processor_for(self, data: Dict[str, Any]) -> "CommissionProcessor":
        version = data.get("schedule_version")
        return self.with_version(str(version)) if version else self
