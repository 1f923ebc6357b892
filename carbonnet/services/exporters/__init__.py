from carbonnet.services.exporters.report_exporter import ReportExporter, resolve_format

__all__ = ["ReportExporter", "resolve_format"]
