"""
Excel (xlsx) report exporter using openpyxl.
"""
import io
from datetime import datetime

import openpyxl
from openpyxl.styles import Font

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.deadline import Deadline
from carbonnet.services.exporters.base import (
    NO_CATEGORY_DATA,
    NO_TREND_DATA,
    FormatExporter,
    to_plain_number,
)
from carbonnet.utils.constants import ReportFormat


class ExcelExporter(FormatExporter):
    """Workbook with exactly the sheets ``summary``, ``by_category`` and ``trends``."""

    export_format = ReportFormat.EXCEL
    extension = "xlsx"
    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @staticmethod
    def _write_rows(sheet, headers: list[str], rows: list[list]):
        sheet.append(headers)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in rows:
            sheet.append(row)

    def render(
        self, report: AggregatedReport, generated_at: datetime, deadline: Deadline
    ) -> bytes:
        stats = report.statistics
        workbook = openpyxl.Workbook()
        workbook.properties.creator = "CarbonNet"
        workbook.properties.created = generated_at

        summary = workbook.active
        summary.title = "summary"
        self._write_rows(
            summary,
            [
                "totalEmissions",
                "totalActivities",
                "avgDaily",
                "peakEmissionDate",
                "peakEmissionValue",
                "scope1",
                "scope2",
                "scope3",
                "periodStart",
                "periodEnd",
                "generatedAt",
            ],
            [
                [
                    to_plain_number(report.total_emissions),
                    stats.total_activities,
                    to_plain_number(stats.average_daily_emissions),
                    stats.peak_emission_date.isoformat() if stats.peak_emission_date else None,
                    to_plain_number(stats.peak_emission_value),
                    to_plain_number(report.emissions_by_scope.scope1),
                    to_plain_number(report.emissions_by_scope.scope2),
                    to_plain_number(report.emissions_by_scope.scope3),
                    report.period.start_date.isoformat(),
                    report.period.end_date.isoformat(),
                    generated_at.isoformat(),
                ]
            ],
        )
        deadline.check("export")

        counts = {s.category: s.activity_count for s in report.category_summary}
        by_category = workbook.create_sheet("by_category")
        category_rows = [
            [category, to_plain_number(value), counts.get(category, 0)]
            for category, value in report.emissions_by_category.items()
        ]
        self._write_rows(
            by_category,
            ["category", "emissions", "activityCount"],
            category_rows or [[NO_CATEGORY_DATA]],
        )
        deadline.check("export")

        trends = workbook.create_sheet("trends")
        trend_rows = [
            [point.month, to_plain_number(point.emissions)] for point in report.monthly_trend
        ]
        self._write_rows(trends, ["month", "emissions"], trend_rows or [[NO_TREND_DATA]])

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
