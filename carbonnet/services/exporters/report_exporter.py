"""
Report export dispatcher.

Picks the format exporter, renders the artifact and wraps it with its
file metadata. Nothing is written to disk here; see ``services.storage``.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from carbonnet.pydantic_models.report import AggregatedReport, ExportArtifact
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import (
    CarbonNetError,
    ExportIOError,
    UnsupportedFormatError,
)
from carbonnet.services.exporters.base import FormatExporter
from carbonnet.services.exporters.csv_exporter import CsvExporter
from carbonnet.services.exporters.excel_exporter import ExcelExporter
from carbonnet.services.exporters.json_exporter import JsonExporter
from carbonnet.services.exporters.pdf_exporter import PdfExporter
from carbonnet.utils.constants import REPORT_FORMAT_ALIASES, ReportFormat

logger = logging.getLogger(__name__)


def resolve_format(export_format: ReportFormat | str) -> ReportFormat:
    """
    Map a requested format (case-insensitive, ``xlsx`` allowed) to ReportFormat.

    Raises:
        UnsupportedFormatError: For anything else
    """
    if isinstance(export_format, ReportFormat):
        return export_format
    key = str(export_format or "").strip().lower()
    if key not in REPORT_FORMAT_ALIASES:
        raise UnsupportedFormatError(export_format)
    return REPORT_FORMAT_ALIASES[key]


class ReportExporter:
    """
    Serializes an AggregatedReport into json, csv, excel or pdf.

    Example:
        >>> exporter = ReportExporter()
        >>> artifact = exporter.export(report, "csv", report_id="r1")
        >>> artifact.file_name
        'r1.csv'
    """

    def __init__(self, exporters: Optional[list[FormatExporter]] = None):
        exporters = exporters or [JsonExporter(), CsvExporter(), ExcelExporter(), PdfExporter()]
        self.exporters = {exporter.export_format: exporter for exporter in exporters}

    def export(
        self,
        report: AggregatedReport,
        export_format: ReportFormat | str,
        report_id: str,
        generated_at: Optional[datetime] = None,
        deadline: Optional[Deadline] = None,
    ) -> ExportArtifact:
        """
        Render a report.

        Args:
            report: Aggregated report
            export_format: json, csv, excel, xlsx or pdf
            report_id: Used as the file name stem
            generated_at: Timestamp printed in the artifact (defaults to now, UTC)
            deadline: Optional deadline checked around rendering

        Raises:
            UnsupportedFormatError: Unknown format; nothing is rendered
            DeadlineExceeded: Deadline passed or cancelled
            ExportIOError: The renderer failed
        """
        fmt = resolve_format(export_format)
        exporter = self.exporters.get(fmt)
        if exporter is None:
            raise UnsupportedFormatError(export_format)

        deadline = deadline or Deadline.unlimited()
        generated_at = generated_at or datetime.now(timezone.utc)

        deadline.check("export")
        try:
            content = exporter.render(report, generated_at, deadline)
        except CarbonNetError:
            raise
        except Exception as e:
            logger.error(f"Failed to render {fmt.value} report {report_id}: {e}", exc_info=True)
            raise ExportIOError(f"Failed to render {fmt.value} report", original_exception=e) from e
        deadline.check("export")

        file_name = f"{report_id}.{exporter.extension}"
        logger.info(f"Exported report {report_id} as {fmt.value} ({len(content)} bytes)")
        return ExportArtifact(
            content=content,
            file_name=file_name,
            file_size=len(content),
            media_type=exporter.media_type,
            export_format=fmt,
        )
