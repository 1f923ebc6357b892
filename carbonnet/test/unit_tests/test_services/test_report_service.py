"""
Service tests for report generation over the database.
"""
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from carbonnet.database.repositories import ReportRepository
from carbonnet.database.session_manager.db_session import Database
from carbonnet.pydantic_models.report import ReportGenerateRequest
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import (
    DeadlineExceeded,
    InvalidPeriod,
    UnsupportedFormatError,
)
from carbonnet.services.report_service import ReportGenerationService
from carbonnet.test.factory.activity import ActivityFactory, TransportationActivityFactory
from carbonnet.test.factory.report import ReportFactory
from carbonnet.utils.constants import ReportScope, ReportStatus

GENERATED_AT = datetime(2024, 2, 1, 9, 30)


def make_request(user_id, **kwargs):
    fields = {
        "type": "individual",
        "format": "csv",
        "period": {"start_date": "2024-01-01", "end_date": "2024-01-31"},
        "user_id": user_id,
    }
    fields.update(kwargs)
    return ReportGenerateRequest(**fields)


async def create_january_activities(user_id, institution_id=None):
    await TransportationActivityFactory(
        user_id=user_id, institution_id=institution_id, activity_date=date(2024, 1, 5)
    )
    await ActivityFactory(
        user_id=user_id, institution_id=institution_id, activity_date=date(2024, 1, 20)
    )


@pytest.mark.asyncio
async def test_generate_csv_report(test_db_session, report_storage):
    user_id = uuid.uuid4()
    await create_january_activities(user_id)
    # outside the period and deleted activities are ignored
    await ActivityFactory(user_id=user_id, activity_date=date(2024, 2, 1))
    await ActivityFactory(user_id=user_id, activity_date=date(2024, 1, 7), is_deleted=True)

    service = ReportGenerationService(test_db_session, report_storage)
    report = await service.generate(make_request(user_id), generated_at=GENERATED_AT)

    assert report.status == ReportStatus.COMPLETED.value
    assert report.scope == ReportScope.INDIVIDUAL.value
    assert report.file_name == f"{report.id}.csv"
    assert report.statistics["totalActivities"] == 2
    assert report.data["totalEmissions"] == 85.42
    assert report.expires_at > datetime.utcnow() + timedelta(days=6)
    content = report_storage.read(report.file_name).decode("utf-8")
    assert content.splitlines()[1:] == [
        "totalEmissions,85.42",
        "category_electricity,82",
        "category_transportation,3.42",
    ]
    assert report.file_size == len(content.encode("utf-8"))


@pytest.mark.asyncio
async def test_institution_report_covers_all_members(test_db_session, report_storage):
    institution_id = uuid.uuid4()
    await create_january_activities(uuid.uuid4(), institution_id)
    await ActivityFactory(
        institution_id=institution_id,
        activity_date=date(2024, 1, 22),
        carbon_emission_kg=Decimal("10"),
    )

    service = ReportGenerationService(test_db_session, report_storage)
    report = await service.generate(
        make_request(
            uuid.uuid4(), type="institutional", format="json", institution_id=institution_id
        )
    )

    assert report.scope == ReportScope.INSTITUTION.value
    assert report.statistics["totalActivities"] == 3
    assert report.data["totalEmissions"] == 95.42


@pytest.mark.asyncio
async def test_invalid_period_records_nothing(test_db_session, report_storage):
    service = ReportGenerationService(test_db_session, report_storage)
    request = make_request(
        uuid.uuid4(), period={"start_date": "2024-01-31", "end_date": "2024-01-01"}
    )

    with pytest.raises(InvalidPeriod):
        await service.generate(request)

    assert await ReportRepository(test_db_session).count_for_user() == 0


@pytest.mark.asyncio
async def test_unsupported_format_marks_report_failed(test_db_session, report_storage):
    user_id = uuid.uuid4()
    service = ReportGenerationService(test_db_session, report_storage)

    with pytest.raises(UnsupportedFormatError):
        await service.generate(make_request(user_id, format="docx"))

    reports = await ReportRepository(test_db_session).list_for_user(generated_by=user_id)
    assert len(reports) == 1
    assert reports[0].status == ReportStatus.FAILED.value
    assert "docx" in reports[0].error_message
    assert reports[0].file_name is None


@pytest.mark.asyncio
async def test_cancelled_generation_marks_report_failed(test_db_session, report_storage):
    user_id = uuid.uuid4()
    await create_january_activities(user_id)
    deadline = Deadline.unlimited()
    deadline.cancel()
    service = ReportGenerationService(test_db_session, report_storage)

    with pytest.raises(DeadlineExceeded):
        await service.generate(make_request(user_id), deadline=deadline)

    reports = await ReportRepository(test_db_session).list_for_user(generated_by=user_id)
    assert reports[0].status == ReportStatus.FAILED.value
    assert not report_storage.base_dir.exists()


@pytest.mark.asyncio
async def test_open_download_counts_downloads(test_db_session, report_storage):
    user_id = uuid.uuid4()
    await create_january_activities(user_id)
    service = ReportGenerationService(test_db_session, report_storage)
    report = await service.generate(make_request(user_id, format="pdf"))

    report, content = await service.open_download(report.id)

    assert content.startswith(b"%PDF")
    assert report.download_count == 1
    assert report.last_downloaded is not None


@pytest.mark.asyncio
async def test_cleanup_expired_reports(test_db_session, report_storage):
    expired = await ReportFactory(expires_at=datetime.utcnow() - timedelta(days=1))
    current = await ReportFactory()

    service = ReportGenerationService(test_db_session, report_storage)
    removed = await service.cleanup_expired_reports()

    assert removed == 1
    repo = ReportRepository(test_db_session)
    assert await repo.get_by_id(expired.id) is None
    assert await repo.get_by_id(current.id) is not None


@pytest.mark.asyncio
async def test_malformed_stored_activity_is_skipped(test_db_session, report_storage):
    user_id = uuid.uuid4()
    await ActivityFactory(user_id=user_id, activity_date=date(2024, 1, 10))
    broken = await ActivityFactory(
        user_id=user_id,
        activity_date=date(2024, 1, 11),
        electricity={"consumption_kwh": "not-a-number"},
    )

    service = ReportGenerationService(test_db_session, report_storage)
    report = await service.generate(make_request(user_id, format="json"))

    assert report.status == ReportStatus.COMPLETED.value
    assert report.statistics["totalActivities"] == 1
    assert report.data["totalEmissions"] == 82
    assert len(report.data["errors"]) == 1
    assert report.data["errors"][0]["recordId"] == str(broken.id)


class ExplodingAggregator:
    def aggregate(self, *args, **kwargs):
        raise RuntimeError("aggregation crashed")


@pytest.mark.asyncio
async def test_unexpected_error_marks_report_failed(test_db_session, report_storage):
    user_id = uuid.uuid4()
    await create_january_activities(user_id)
    service = ReportGenerationService(
        test_db_session, report_storage, aggregator=ExplodingAggregator()
    )

    with pytest.raises(RuntimeError):
        await service.generate(make_request(user_id))

    reports = await ReportRepository(test_db_session).list_for_user(generated_by=user_id)
    assert reports[0].status == ReportStatus.FAILED.value
    assert reports[0].error_message == "aggregation crashed"


@pytest.mark.asyncio
async def test_download_counter_survives_stale_reads(test_db_session):
    report = await ReportFactory(download_count=3)
    repo = ReportRepository(test_db_session)
    stale = await repo.get_by_id(report.id)
    assert stale.download_count == 3

    async with Database() as other_session:
        await ReportRepository(other_session).record_download(report.id)

    updated = await repo.record_download(report.id)

    assert updated.download_count == 5
