"""
Pydantic models for the statistics endpoints.
"""
from decimal import Decimal

from carbonnet.pydantic_models.report import (
    CamelModel,
    CategorySummary,
    MonthlyTrendPoint,
    ReportPeriod,
    ScopeBreakdown,
)


class CategoryStatisticsResponse(CamelModel):
    period: ReportPeriod
    total_emissions: Decimal
    emissions_by_scope: ScopeBreakdown
    categories: list[CategorySummary]


class MonthlyStatisticsResponse(CamelModel):
    period: ReportPeriod
    total_emissions: Decimal
    trends: list[MonthlyTrendPoint]


class RecommendationsResponse(CamelModel):
    period: ReportPeriod
    total_emissions: Decimal
    emissions_by_category: dict[str, Decimal]
    recommendations: list[str]
