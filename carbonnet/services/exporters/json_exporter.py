"""
JSON report exporter.
"""
import json
from datetime import datetime

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.deadline import Deadline
from carbonnet.services.exporters.base import FormatExporter, json_default
from carbonnet.utils.constants import ReportFormat


class JsonExporter(FormatExporter):
    """Pretty-printed ``{data, statistics}`` payload with camelCase keys."""

    export_format = ReportFormat.JSON
    extension = "json"
    media_type = "application/json"

    def render(
        self, report: AggregatedReport, generated_at: datetime, deadline: Deadline
    ) -> bytes:
        payload = report.export_payload()
        return json.dumps(payload, indent=2, default=json_default).encode("utf-8")
