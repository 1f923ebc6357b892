"""
Service tests for the report exporters.
"""
import io
import json
from datetime import date, datetime
from decimal import Decimal

import openpyxl
import pytest

from carbonnet.pydantic_models.activity import ActivityRecord
from carbonnet.pydantic_models.report import ReportPeriod
from carbonnet.services.aggregators import ReportAggregator
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import (
    DeadlineExceeded,
    ExportIOError,
    UnsupportedFormatError,
)
from carbonnet.services.exporters import ReportExporter, resolve_format
from carbonnet.services.exporters.base import FormatExporter
from carbonnet.services.exporters.pdf import ReportlabRenderer, build_report_document
from carbonnet.services.exporters.pdf.document import DataTable, Notice
from carbonnet.services.exporters.pdf_exporter import PdfExporter
from carbonnet.utils.constants import ReportFormat

GENERATED_AT = datetime(2024, 2, 1, 9, 30)
JANUARY = ReportPeriod(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))


@pytest.fixture
def january_report():
    records = [
        ActivityRecord(
            id="t1",
            user_id="u1",
            category="transportation",
            activity_date=date(2024, 1, 5),
            carbon_emission_kg=Decimal("3.42"),
        ),
        ActivityRecord(
            id="e1",
            user_id="u1",
            category="electricity",
            activity_date=date(2024, 1, 20),
            carbon_emission_kg=Decimal("82"),
        ),
    ]
    return ReportAggregator().aggregate(records, JANUARY)


@pytest.fixture
def empty_report():
    return ReportAggregator().aggregate([], JANUARY)


@pytest.fixture
def exporter():
    return ReportExporter()


def test_csv_rows(exporter, january_report):
    artifact = exporter.export(january_report, "csv", report_id="r1", generated_at=GENERATED_AT)

    lines = artifact.content.decode("utf-8").splitlines()
    assert lines == [
        "metric,value",
        "totalEmissions,85.42",
        "category_electricity,82",
        "category_transportation,3.42",
    ]
    assert artifact.file_name == "r1.csv"
    assert artifact.media_type == "text/csv"
    assert artifact.file_size == len(artifact.content)


def test_json_payload_uses_camel_case(exporter, january_report):
    artifact = exporter.export(january_report, "json", report_id="r1", generated_at=GENERATED_AT)

    payload = json.loads(artifact.content)
    assert set(payload) == {"data", "statistics"}
    assert payload["data"]["totalEmissions"] == 85.42
    assert payload["data"]["emissionsByScope"] == {"scope1": 3.42, "scope2": 82, "scope3": 0}
    assert payload["data"]["period"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
    assert payload["data"]["monthlyTrend"] == [{"month": "2024-01", "emissions": 85.42}]
    assert payload["statistics"]["totalActivities"] == 2
    assert payload["statistics"]["averageDailyEmissions"] == 2.755
    assert payload["statistics"]["peakEmissionDate"] == "2024-01-20"
    assert artifact.content.startswith(b'{\n  "data"')


def test_excel_workbook_sheets(exporter, january_report):
    artifact = exporter.export(january_report, "xlsx", report_id="r1", generated_at=GENERATED_AT)

    workbook = openpyxl.load_workbook(io.BytesIO(artifact.content))
    assert workbook.sheetnames == ["summary", "by_category", "trends"]
    assert workbook["summary"]["A1"].value == "totalEmissions"
    assert workbook["summary"]["A2"].value == 85.42
    assert workbook["summary"]["A1"].font.bold
    rows = list(workbook["by_category"].iter_rows(min_row=2, values_only=True))
    assert rows == [("electricity", 82, 1), ("transportation", 3.42, 1)]
    assert artifact.file_name == "r1.xlsx"
    assert artifact.export_format == ReportFormat.EXCEL


def test_csv_empty_report_marker(exporter, empty_report):
    artifact = exporter.export(empty_report, "csv", report_id="r0", generated_at=GENERATED_AT)

    assert artifact.content.decode("utf-8").splitlines() == [
        "metric,value",
        "totalEmissions,0",
        "categories,No category data",
    ]


def test_json_empty_report_keeps_every_section(exporter, empty_report):
    artifact = exporter.export(empty_report, "json", report_id="r0", generated_at=GENERATED_AT)

    payload = json.loads(artifact.content)
    assert payload["data"]["totalEmissions"] == 0
    assert payload["data"]["emissionsByCategory"] == {}
    assert payload["data"]["monthlyTrend"] == []
    assert payload["data"]["emissionsByScope"] == {"scope1": 0, "scope2": 0, "scope3": 0}
    assert len(payload["data"]["recommendations"]) == 1
    assert payload["statistics"]["averageDailyEmissions"] == 0
    assert payload["statistics"]["peakEmissionDate"] is None


def test_excel_empty_report_placeholders(exporter, empty_report):
    artifact = exporter.export(empty_report, "excel", report_id="r2", generated_at=GENERATED_AT)

    workbook = openpyxl.load_workbook(io.BytesIO(artifact.content))
    assert workbook["by_category"]["A2"].value == "No category data"
    assert workbook["trends"]["A2"].value == "No trend data"


def test_pdf_document_sections(january_report):
    document = build_report_document(january_report, GENERATED_AT)

    assert document.brand == "CarbonNet"
    assert document.section_titles() == [
        "Summary",
        "Emissions by Category",
        "Trends (Monthly)",
        "Recommendations",
    ]
    assert ("Period", "2024-01-01 to 2024-01-31") in document.metadata
    assert isinstance(document.sections[1].blocks[0], DataTable)


def test_pdf_document_empty_report_notices():
    report = ReportAggregator().aggregate([], JANUARY).model_copy(update={"recommendations": []})

    document = build_report_document(report, GENERATED_AT)

    assert document.section_titles() == ["Summary", "Emissions by Category", "Trends (Monthly)"]
    assert document.sections[1].blocks[0] == Notice(text="No category data")
    assert document.sections[2].blocks[0] == Notice(text="No trend data")


def test_pdf_render_has_page_footer(empty_report):
    exporter = PdfExporter(renderer=ReportlabRenderer(page_compression=False))

    content = exporter.render(empty_report, GENERATED_AT, Deadline.unlimited())

    assert content.startswith(b"%PDF")
    assert b"Page 1 of 1" in content


def test_pdf_render_is_deterministic(exporter, january_report):
    first = exporter.export(january_report, "pdf", report_id="r1", generated_at=GENERATED_AT)
    second = exporter.export(january_report, "pdf", report_id="r1", generated_at=GENERATED_AT)

    assert first.content == second.content
    assert first.media_type == "application/pdf"


@pytest.mark.parametrize(
    "requested, expected",
    [
        ("json", ReportFormat.JSON),
        ("CSV", ReportFormat.CSV),
        ("xlsx", ReportFormat.EXCEL),
        (" Excel ", ReportFormat.EXCEL),
        ("pdf", ReportFormat.PDF),
    ],
)
def test_resolve_format(requested, expected):
    assert resolve_format(requested) == expected


def test_unsupported_format(exporter, january_report):
    with pytest.raises(UnsupportedFormatError):
        exporter.export(january_report, "docx", report_id="r1")


class BrokenExporter(FormatExporter):
    export_format = ReportFormat.CSV
    extension = "csv"
    media_type = "text/csv"

    def render(self, report, generated_at, deadline):
        raise ValueError("disk on fire")


def test_renderer_failure_becomes_export_io_error(january_report):
    exporter = ReportExporter(exporters=[BrokenExporter()])

    with pytest.raises(ExportIOError) as exc_info:
        exporter.export(january_report, "csv", report_id="r1")

    assert isinstance(exc_info.value.original_exception, ValueError)


def test_cancelled_deadline_stops_export(exporter, january_report):
    deadline = Deadline.unlimited()
    deadline.cancel()

    with pytest.raises(DeadlineExceeded):
        exporter.export(january_report, "json", report_id="r1", deadline=deadline)
