"""
reportlab backend for PdfDocument trees.
"""
import io
from functools import partial
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from carbonnet.services.exporters.pdf.document import (
    BulletList,
    DataTable,
    KeyValueTable,
    Notice,
    PdfDocument,
)

BRAND_COLOR = colors.HexColor("#1A936F")
HEADER_FILL = colors.HexColor("#e6f5ef")
GRID_COLOR = colors.HexColor("#cbd5e1")


class NumberedCanvas(canvas.Canvas):
    """
    Canvas that defers page output until the page count is known, then
    draws the footer on every page.
    """

    def __init__(self, *args, footer_template: str = "Page {page} of {pages}", **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self._footer_template = footer_template

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(pages)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, pages: int):
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(
            width / 2,
            1.2 * cm,
            self._footer_template.format(page=self._pageNumber, pages=pages),
        )


class ReportlabRenderer:
    """
    Renders a PdfDocument with reportlab platypus.

    Args:
        page_compression: Compress page streams (disable to inspect output)
    """

    def __init__(self, page_compression: bool = True):
        self.page_compression = page_compression
        styles = getSampleStyleSheet()
        self.styles = {
            "brand": ParagraphStyle(
                "Brand", parent=styles["Title"], textColor=BRAND_COLOR, fontSize=22, spaceAfter=4
            ),
            "title": ParagraphStyle("ReportTitle", parent=styles["Heading2"], spaceAfter=8),
            "meta": ParagraphStyle(
                "Meta", parent=styles["Normal"], textColor=colors.HexColor("#64748b"), fontSize=9
            ),
            "section": ParagraphStyle(
                "Section", parent=styles["Heading3"], textColor=BRAND_COLOR, spaceBefore=10
            ),
            "body": styles["Normal"],
        }

    def _table(self, rows: list[list[str]], header: bool) -> Table:
        table = Table(
            [[Paragraph(escape(cell), self.styles["body"]) for cell in row] for row in rows],
            hAlign="LEFT",
        )
        commands = [
            ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ]
        if header:
            commands.append(("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL))
        else:
            commands.append(("BACKGROUND", (0, 0), (0, -1), HEADER_FILL))
        table.setStyle(TableStyle(commands))
        return table

    def _flowables(self, document: PdfDocument) -> list:
        story = [
            Paragraph(escape(document.brand), self.styles["brand"]),
            Paragraph(escape(document.title), self.styles["title"]),
        ]
        for label, value in document.metadata:
            story.append(Paragraph(f"<b>{escape(label)}:</b> {escape(value)}", self.styles["meta"]))
        story.append(Spacer(1, 12))

        for section in document.sections:
            story.append(Paragraph(escape(section.title), self.styles["section"]))
            for block in section.blocks:
                if isinstance(block, KeyValueTable):
                    story.append(self._table([list(row) for row in block.rows], header=False))
                elif isinstance(block, DataTable):
                    story.append(self._table([block.headers, *block.rows], header=True))
                elif isinstance(block, Notice):
                    story.append(Paragraph(f"<i>{escape(block.text)}</i>", self.styles["body"]))
                elif isinstance(block, BulletList):
                    for item in block.items:
                        story.append(
                            Paragraph(escape(item), self.styles["body"], bulletText="•")
                        )
            story.append(Spacer(1, 8))
        return story

    def render(self, document: PdfDocument) -> bytes:
        buffer = io.BytesIO()
        pdf = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2 * cm,
            leftMargin=2 * cm,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
            title=document.title,
            author=document.brand,
            invariant=1,
            pageCompression=1 if self.page_compression else 0,
        )
        pdf.build(
            self._flowables(document),
            canvasmaker=partial(NumberedCanvas, footer_template=document.footer_template),
        )
        return buffer.getvalue()
