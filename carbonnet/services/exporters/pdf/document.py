"""
Declarative document tree for paginated reports.

The tree is renderer-agnostic: it holds already formatted strings, and a
backend (see ``renderer.py``) lays it out on pages.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.calculators.unit_converter import UnitConverter

BRAND = "CarbonNet"
FOOTER_TEMPLATE = "Page {page} of {pages}"


class KeyValueTable(BaseModel):
    kind: Literal["key_value"] = "key_value"
    rows: list[tuple[str, str]]


class DataTable(BaseModel):
    kind: Literal["table"] = "table"
    headers: list[str]
    rows: list[list[str]]


class Notice(BaseModel):
    """Single line shown in place of an empty table."""

    kind: Literal["notice"] = "notice"
    text: str


class BulletList(BaseModel):
    kind: Literal["bullets"] = "bullets"
    items: list[str]


Block = Annotated[
    Union[KeyValueTable, DataTable, Notice, BulletList], Field(discriminator="kind")
]


class DocumentSection(BaseModel):
    """A titled section in the report."""

    title: str
    blocks: list[Block] = Field(default_factory=list)


class PdfDocument(BaseModel):
    """
    Whole document: branded header, metadata lines, ordered sections and a
    footer template filled with ``page`` and ``pages`` on every page.
    """

    brand: str = BRAND
    title: str
    metadata: list[tuple[str, str]] = Field(default_factory=list)
    sections: list[DocumentSection] = Field(default_factory=list)
    footer_template: str = FOOTER_TEMPLATE

    def section_titles(self) -> list[str]:
        return [section.title for section in self.sections]


def _kg(value) -> str:
    return f"{UnitConverter.format_number(value)} kg CO2e"


def build_report_document(
    report: AggregatedReport,
    generated_at: datetime,
    title: Optional[str] = None,
) -> PdfDocument:
    """
    Build the document tree for an aggregated report.

    Section order: Summary, Emissions by Category, Trends (Monthly), then
    Recommendations when there are any.
    """
    stats = report.statistics

    summary_rows = [
        ("Total Emissions", _kg(report.total_emissions)),
        ("Total Activities", str(stats.total_activities)),
        ("Average Daily Emissions", _kg(stats.average_daily_emissions)),
        (
            "Peak Emission Date",
            stats.peak_emission_date.isoformat() if stats.peak_emission_date else "-",
        ),
        ("Peak Emission Value", _kg(stats.peak_emission_value)),
        ("Scope 1", _kg(report.emissions_by_scope.scope1)),
        ("Scope 2", _kg(report.emissions_by_scope.scope2)),
        ("Scope 3", _kg(report.emissions_by_scope.scope3)),
    ]
    if stats.reduction_percentage is not None:
        summary_rows.append(
            ("Reduction from Baseline", f"{UnitConverter.format_number(stats.reduction_percentage)}%")
        )

    sections = [DocumentSection(title="Summary", blocks=[KeyValueTable(rows=summary_rows)])]

    if report.emissions_by_category:
        counts = {s.category: s.activity_count for s in report.category_summary}
        category_block = DataTable(
            headers=["Category", "Emissions (kg CO2e)", "Activities"],
            rows=[
                [category.title(), UnitConverter.format_number(value), str(counts.get(category, 0))]
                for category, value in report.emissions_by_category.items()
            ],
        )
    else:
        category_block = Notice(text="No category data")
    sections.append(DocumentSection(title="Emissions by Category", blocks=[category_block]))

    if report.monthly_trend:
        trend_block = DataTable(
            headers=["Month", "Emissions (kg CO2e)"],
            rows=[
                [point.month, UnitConverter.format_number(point.emissions)]
                for point in report.monthly_trend
            ],
        )
    else:
        trend_block = Notice(text="No trend data")
    sections.append(DocumentSection(title="Trends (Monthly)", blocks=[trend_block]))

    if report.recommendations:
        sections.append(
            DocumentSection(
                title="Recommendations", blocks=[BulletList(items=list(report.recommendations))]
            )
        )

    return PdfDocument(
        title=title or "Carbon Emissions Report",
        metadata=[
            (
                "Period",
                f"{report.period.start_date.isoformat()} to {report.period.end_date.isoformat()}",
            ),
            ("Generated", generated_at.strftime("%Y-%m-%d %H:%M:%S")),
        ],
        sections=sections,
    )
