"""
CSV report exporter.
"""
import csv
import io
from datetime import datetime

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.calculators.unit_converter import UnitConverter
from carbonnet.services.deadline import Deadline
from carbonnet.services.exporters.base import NO_CATEGORY_DATA, FormatExporter
from carbonnet.utils.constants import ReportFormat


class CsvExporter(FormatExporter):
    """
    Flat ``metric,value`` rows.

    The first data row is the report total, followed by one
    ``category_<name>`` row per category in name order, or a single
    ``categories,No category data`` row when there are none.
    """

    export_format = ReportFormat.CSV
    extension = "csv"
    media_type = "text/csv"

    def render(
        self, report: AggregatedReport, generated_at: datetime, deadline: Deadline
    ) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["metric", "value"])
        writer.writerow(["totalEmissions", UnitConverter.format_number(report.total_emissions)])
        for category, value in report.emissions_by_category.items():
            writer.writerow([f"category_{category}", UnitConverter.format_number(value)])
        if not report.emissions_by_category:
            writer.writerow(["categories", NO_CATEGORY_DATA])
        return buffer.getvalue().encode("utf-8")
