from carbonnet.services.exporters.pdf.document import PdfDocument, build_report_document
from carbonnet.services.exporters.pdf.renderer import ReportlabRenderer

__all__ = ["PdfDocument", "ReportlabRenderer", "build_report_document"]
