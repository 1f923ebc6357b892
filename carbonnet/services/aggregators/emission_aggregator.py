"""
Emission Aggregation Service.

Groups computed activities into category, scope, month and day buckets
over a report period and derives the headline statistics.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from carbonnet.pydantic_models.activity import ActivityRecord
from carbonnet.pydantic_models.report import (
    AggregatedReport,
    CategorySummary,
    MonthlyTrendPoint,
    ReportPeriod,
    ReportStatistics,
    ScopeBreakdown,
    SkippedRecord,
)
from carbonnet.services.calculators.unit_converter import UnitConverter
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import AggregationInputError
from carbonnet.services.recommendations import RecommendationEngine
from carbonnet.utils.constants import Scope, scope_for_category

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def estimate_per_capita_emissions(total_emissions, population: int) -> Decimal:
    """
    Emissions per person, rounded to 3 decimals.

    Returns 0 when the population is not positive.
    """
    if not population or population <= 0:
        return UnitConverter.round_emission(ZERO)
    total = UnitConverter.normalize_number(total_emissions)
    return UnitConverter.round_emission(total / Decimal(population))


def calculate_reduction_percentage(baseline, current) -> Decimal:
    """
    Percentage reduction from a baseline, rounded to 2 decimals.

    Negative when emissions grew. Returns 0 when the baseline is not positive.

    Example:
        >>> calculate_reduction_percentage(200, 150)
        Decimal('25.00')
    """
    baseline = UnitConverter.normalize_number(baseline)
    if baseline <= 0:
        return UnitConverter.round_percentage(ZERO)
    current = UnitConverter.normalize_number(current)
    return UnitConverter.round_percentage((baseline - current) / baseline * 100)


class ReportAggregator:
    """
    Service for aggregating computed activities into an AggregatedReport.

    Aggregates emissions by:
    - Category (keys emitted in name order)
    - Scope (transportation and heating are Scope 1, electricity Scope 2, the rest Scope 3)
    - Month (YYYY-MM, ascending)
    - Day (for peak detection)
    """

    def __init__(self, recommendation_engine: Optional[RecommendationEngine] = None):
        self.recommendation_engine = recommendation_engine or RecommendationEngine()

    @staticmethod
    def _coerce(record: ActivityRecord | Mapping[str, Any]) -> ActivityRecord:
        if isinstance(record, ActivityRecord):
            return record

        record_id = record.get("id") if isinstance(record, Mapping) else None
        if not isinstance(record, Mapping):
            raise AggregationInputError(record_id, f"unsupported record type {type(record).__name__}")
        if record.get("carbon_emission_kg") is None:
            raise AggregationInputError(record_id, "missing carbon_emission_kg")
        try:
            return ActivityRecord.model_validate(record)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise AggregationInputError(record_id, f"invalid fields: {fields}") from e

    @staticmethod
    def _emission_of(record: ActivityRecord) -> Decimal:
        emission = record.carbon_emission_kg
        if not emission.is_finite() or emission < 0:
            raise AggregationInputError(record.id, f"invalid carbon_emission_kg {emission}")
        return emission

    def aggregate(
        self,
        records: Iterable[ActivityRecord | Mapping[str, Any]],
        period: ReportPeriod,
        deadline: Optional[Deadline] = None,
        baseline_emissions=None,
    ) -> AggregatedReport:
        """
        Aggregate records over a period.

        Args:
            records: Computed activities (models or plain mappings)
            period: Inclusive report period
            deadline: Optional deadline checked while iterating records
            baseline_emissions: Optional baseline total for reduction statistics

        Returns:
            AggregatedReport; empty input yields zeros and empty collections

        Raises:
            DeadlineExceeded: If the deadline passes or is cancelled
        """
        deadline = deadline or Deadline.unlimited()

        total = ZERO
        by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        count_by_category: dict[str, int] = defaultdict(int)
        by_scope = {Scope.SCOPE_1: ZERO, Scope.SCOPE_2: ZERO, Scope.SCOPE_3: ZERO}
        by_month: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
        errors: list[SkippedRecord] = []
        counted = 0

        for raw in records:
            deadline.check("aggregation")
            try:
                record = self._coerce(raw)
                emission = self._emission_of(record)
            except AggregationInputError as e:
                logger.warning(f"Skipping activity record: {e}")
                errors.append(
                    SkippedRecord(
                        record_id=str(e.record_id) if e.record_id is not None else None,
                        error=e.message,
                    )
                )
                continue

            category = record.category.value
            counted += 1
            total += emission
            by_category[category] += emission
            count_by_category[category] += 1
            by_scope[scope_for_category(category)] += emission
            by_month[record.activity_date.strftime("%Y-%m")] += emission
            by_day[record.activity_date] += emission

        peak_date = None
        peak_value = ZERO
        # Strict comparison over ascending days: ties go to the earliest day
        for day in sorted(by_day):
            if by_day[day] > peak_value:
                peak_date = day
                peak_value = by_day[day]

        statistics = ReportStatistics(
            total_activities=counted,
            average_daily_emissions=UnitConverter.round_emission(
                total / Decimal(max(1, period.day_count))
            ),
            peak_emission_date=peak_date,
            peak_emission_value=UnitConverter.round_emission(peak_value),
        )

        if baseline_emissions is not None:
            baseline = UnitConverter.normalize_number(baseline_emissions)
            statistics.reduction_from_baseline = UnitConverter.round_emission(baseline - total)
            statistics.reduction_percentage = calculate_reduction_percentage(baseline, total)

        category_summary = [
            CategorySummary(
                category=category,
                total_emissions=value,
                activity_count=count_by_category[category],
                average_emissions=UnitConverter.round_emission(
                    value / Decimal(count_by_category[category])
                ),
            )
            for category, value in by_category.items()
        ]
        category_summary.sort(key=lambda s: (-s.total_emissions, s.category))

        emissions_by_category = {key: by_category[key] for key in sorted(by_category)}

        report = AggregatedReport(
            period=period,
            total_emissions=total,
            emissions_by_category=emissions_by_category,
            emissions_by_scope=ScopeBreakdown(
                scope1=by_scope[Scope.SCOPE_1],
                scope2=by_scope[Scope.SCOPE_2],
                scope3=by_scope[Scope.SCOPE_3],
            ),
            monthly_trend=[
                MonthlyTrendPoint(month=month, emissions=by_month[month])
                for month in sorted(by_month)
            ],
            category_summary=category_summary,
            statistics=statistics,
            recommendations=self.recommendation_engine.generate(emissions_by_category),
            errors=errors,
        )

        logger.info(
            f"Aggregated {counted} activities for {period.start_date}..{period.end_date}: "
            f"{total} kg CO2e ({len(errors)} skipped)"
        )
        return report
