"""
Pydantic models for aggregated reports and report records.

Aggregated report payloads use camelCase aliases so that exported
artifacts keep the field names dashboards already consume.
"""
from datetime import date as DateType
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from carbonnet.services.exceptions import InvalidPeriod
from carbonnet.utils.constants import (
    ReportFormat,
    ReportScope,
    ReportStatus,
    ReportType,
)


class CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportPeriod(CamelModel):
    """
    Inclusive date range a report covers.

    Raises:
        InvalidPeriod: If end_date is not after start_date
    """

    start_date: DateType
    end_date: DateType

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date >= self.end_date:
            raise InvalidPeriod(self.start_date, self.end_date)
        return self

    @property
    def day_count(self) -> int:
        """Number of calendar days in the period, both ends included."""
        return (self.end_date - self.start_date).days + 1


class ScopeBreakdown(CamelModel):
    """Emissions split by GHG Protocol scope."""

    scope1: Decimal = Decimal("0")
    scope2: Decimal = Decimal("0")
    scope3: Decimal = Decimal("0")


class MonthlyTrendPoint(CamelModel):
    """Emissions in one calendar month (YYYY-MM)."""

    month: str
    emissions: Decimal


class CategorySummary(CamelModel):
    """Per-category totals, counts and averages."""

    category: str
    total_emissions: Decimal
    activity_count: int
    average_emissions: Decimal


class ReportStatistics(CamelModel):
    """Headline statistics of an aggregated report."""

    total_activities: int = 0
    average_daily_emissions: Decimal = Decimal("0")
    peak_emission_date: Optional[DateType] = None
    peak_emission_value: Decimal = Decimal("0")
    reduction_from_baseline: Optional[Decimal] = None
    reduction_percentage: Optional[Decimal] = None


class SkippedRecord(CamelModel):
    """A record the aggregator could not use."""

    record_id: Optional[str] = None
    error: str


class AggregatedReport(CamelModel):
    """
    Aggregated emissions over a report period.

    A disposable value: recomputed from the activity list on every request.
    """

    period: ReportPeriod
    total_emissions: Decimal = Decimal("0")
    emissions_by_category: dict[str, Decimal] = Field(default_factory=dict)
    emissions_by_scope: ScopeBreakdown = Field(default_factory=ScopeBreakdown)
    monthly_trend: list[MonthlyTrendPoint] = Field(default_factory=list)
    category_summary: list[CategorySummary] = Field(default_factory=list)
    statistics: ReportStatistics = Field(default_factory=ReportStatistics)
    recommendations: list[str] = Field(default_factory=list)
    errors: list[SkippedRecord] = Field(default_factory=list)

    def export_payload(self) -> dict[str, Any]:
        """
        The ``{data, statistics}`` payload every export format derives from.

        Values keep their Python types (Decimal, date); serializers convert them.
        """
        data = self.model_dump(by_alias=True, exclude={"statistics"})
        statistics = self.statistics.model_dump(by_alias=True)
        return {"data": data, "statistics": statistics}


class ExportArtifact(BaseModel):
    """Rendered report file, ready to hand to storage."""

    content: bytes
    file_name: str
    file_size: int
    media_type: str
    export_format: ReportFormat


class ReportPeriodRequest(BaseModel):
    """Period as submitted by clients (validated by the report service)."""

    start_date: DateType = Field(..., examples=["2024-01-01"])
    end_date: DateType = Field(..., examples=["2024-01-31"])


class ReportGenerateRequest(BaseModel):
    """Request model for generating a report."""

    type: ReportType = Field(..., description="Kind of report")
    format: str = Field("json", description="json, csv, excel (xlsx) or pdf")
    period: ReportPeriodRequest
    title: Optional[str] = Field(None, max_length=200)
    scope: Optional[ReportScope] = Field(
        None, description="individual or institution; derived from type when omitted"
    )
    user_id: UUID = Field(..., description="Requesting user")
    institution_id: Optional[UUID] = None
    department: Optional[str] = Field(None, max_length=100)
    baseline_emissions: Optional[Decimal] = Field(
        None, ge=0, description="Baseline total used for reduction statistics"
    )


class ReportPydModel(BaseModel):
    """Model for report record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    type: ReportType
    format: str
    period_start: DateType
    period_end: DateType
    scope: ReportScope
    user_id: Optional[UUID] = None
    institution_id: Optional[UUID] = None
    department: Optional[str] = None
    status: ReportStatus
    data: Optional[dict[str, Any]] = None
    statistics: Optional[dict[str, Any]] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    error_message: Optional[str] = None
    generated_by: UUID
    download_count: int
    last_downloaded: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ReportListResponse(BaseModel):
    """Paginated list of reports."""

    reports: list[ReportPydModel]
    total_pages: int
    current_page: int
    total_reports: int
