"""
Service tests for report file storage and deadlines.
"""
import os

import pytest

from carbonnet.pydantic_models.report import ExportArtifact
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import DeadlineExceeded, ExportIOError
from carbonnet.services.storage import ReportFileStorage
from carbonnet.utils.constants import ReportFormat


def make_artifact(content=b"metric,value\n", file_name="r1.csv"):
    return ExportArtifact(
        content=content,
        file_name=file_name,
        file_size=len(content),
        media_type="text/csv",
        export_format=ReportFormat.CSV,
    )


@pytest.mark.asyncio
async def test_save_and_read(report_storage):
    path = await report_storage.save(make_artifact())

    assert path.name == "r1.csv"
    assert report_storage.exists("r1.csv")
    assert report_storage.read("r1.csv") == b"metric,value\n"
    # no temp files left behind
    assert os.listdir(report_storage.base_dir) == ["r1.csv"]


def test_overwrite_replaces_content(report_storage):
    report_storage.write(make_artifact(b"old"))
    report_storage.write(make_artifact(b"new"))

    assert report_storage.read("r1.csv") == b"new"


def test_file_names_cannot_escape_base_dir(report_storage):
    path = report_storage.path_for("../../etc/passwd")

    assert path.parent == report_storage.base_dir


def test_delete(report_storage):
    report_storage.write(make_artifact())

    assert report_storage.delete("r1.csv") is True
    assert report_storage.delete("r1.csv") is False
    with pytest.raises(FileNotFoundError):
        report_storage.read("r1.csv")


def test_unwritable_directory_raises_export_io_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_bytes(b"")
    storage = ReportFileStorage(blocker / "reports")

    with pytest.raises(ExportIOError):
        storage.write(make_artifact())


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_deadline_expires():
    clock = FakeClock()
    deadline = Deadline(seconds=5, clock=clock)

    deadline.check("aggregation")
    assert deadline.remaining() == 5.0

    clock.now = 105.0
    assert deadline.expired
    with pytest.raises(DeadlineExceeded) as exc_info:
        deadline.check("export")
    assert exc_info.value.stage == "export"


def test_unlimited_deadline_only_stops_on_cancel():
    deadline = Deadline.unlimited()

    deadline.check("aggregation")
    assert deadline.remaining() is None

    deadline.cancel()
    assert deadline.cancelled
    with pytest.raises(DeadlineExceeded):
        deadline.check("aggregation")
