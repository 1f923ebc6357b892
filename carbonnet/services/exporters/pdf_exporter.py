"""
PDF report exporter.
"""
from datetime import datetime
from typing import Optional

from carbonnet.pydantic_models.report import AggregatedReport
from carbonnet.services.deadline import Deadline
from carbonnet.services.exporters.base import FormatExporter
from carbonnet.services.exporters.pdf import ReportlabRenderer, build_report_document
from carbonnet.utils.constants import ReportFormat


class PdfExporter(FormatExporter):
    """Builds the document tree, then hands it to the renderer backend."""

    export_format = ReportFormat.PDF
    extension = "pdf"
    media_type = "application/pdf"

    def __init__(self, renderer: Optional[ReportlabRenderer] = None, title: Optional[str] = None):
        self.renderer = renderer or ReportlabRenderer()
        self.title = title

    def render(
        self, report: AggregatedReport, generated_at: datetime, deadline: Deadline
    ) -> bytes:
        document = build_report_document(report, generated_at, title=self.title)
        deadline.check("export")
        return self.renderer.render(document)
