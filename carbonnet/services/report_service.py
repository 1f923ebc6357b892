"""
Report generation service - async version.

Runs one report request end to end: validate the period, record the
request, fetch the activity snapshot, aggregate, export, store the
artifact and mark the record completed or failed.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.database.repositories import ActivityRepository, ReportRepository
from carbonnet.database.schemas import ReportDBModel
from carbonnet.pydantic_models.report import ReportGenerateRequest, ReportPeriod
from carbonnet.services.aggregators import ReportAggregator
from carbonnet.services.deadline import Deadline
from carbonnet.services.exceptions import CarbonNetError
from carbonnet.services.exporters import ReportExporter, resolve_format
from carbonnet.services.exporters.base import json_default
from carbonnet.services.recommendations import RecommendationEngine
from carbonnet.services.storage import ReportFileStorage
from carbonnet.utils.constants import (
    REPORT_EXPIRY_DAYS,
    ReportScope,
    ReportStatus,
    ReportType,
)

logger = logging.getLogger(__name__)


def resolve_report_scope(request: ReportGenerateRequest) -> ReportScope:
    """
    Explicit scope wins; otherwise individual reports are individual and
    everything else covers the institution when one is given.
    """
    if request.scope is not None:
        return request.scope
    if request.type == ReportType.INDIVIDUAL or request.institution_id is None:
        return ReportScope.INDIVIDUAL
    return ReportScope.INSTITUTION


def _plain_json(payload: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(payload, default=json_default))


class ReportGenerationService:
    """
    Orchestrates report generation over the database collaborators.

    The service flushes through the repositories and commits after the
    terminal status is recorded, so a failed report stays visible even
    when the caller's session is rolled back.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: ReportFileStorage,
        exporter: Optional[ReportExporter] = None,
        aggregator: Optional[ReportAggregator] = None,
        deadline_seconds: Optional[float] = None,
        expiry_days: int = REPORT_EXPIRY_DAYS,
    ):
        self.session = session
        self.storage = storage
        self.exporter = exporter or ReportExporter()
        self.aggregator = aggregator or ReportAggregator()
        self.deadline_seconds = deadline_seconds
        self.expiry_days = expiry_days
        self.reports = ReportRepository(session)
        self.activities = ActivityRepository(session)

    @classmethod
    def from_config(
        cls, session: AsyncSession, storage: ReportFileStorage, config_data: dict[str, Any]
    ) -> "ReportGenerationService":
        """Build a service from the ``[reports]`` and ``[recommendations]`` tables."""
        reports = config_data.get("reports", {})
        engine = RecommendationEngine.from_config(config_data.get("recommendations"))
        return cls(
            session,
            storage,
            aggregator=ReportAggregator(engine),
            deadline_seconds=reports.get("deadline_seconds"),
            expiry_days=int(reports.get("expiry_days", REPORT_EXPIRY_DAYS)),
        )

    async def _fail(self, report: ReportDBModel, error: Exception) -> None:
        await self.reports.update(
            report.id, status=ReportStatus.FAILED.value, error_message=str(error)
        )
        await self.session.commit()
        logger.error(f"Report {report.id} failed: {error}")

    async def generate(
        self,
        request: ReportGenerateRequest,
        deadline: Optional[Deadline] = None,
        generated_at: Optional[datetime] = None,
    ) -> ReportDBModel:
        """
        Generate a report.

        Returns:
            The completed report record

        Raises:
            InvalidPeriod: Before anything is recorded
            UnsupportedFormatError: Report recorded as failed
            ExportIOError: Report recorded as failed
            DeadlineExceeded: Report recorded as failed
        """
        period = ReportPeriod(
            start_date=request.period.start_date, end_date=request.period.end_date
        )
        scope = resolve_report_scope(request)
        requested_format = str(request.format).strip().lower()
        now = datetime.utcnow()

        report = await self.reports.create(
            title=request.title or f"{request.type.value} report ({requested_format})",
            type=request.type.value,
            format=requested_format[:10],
            period_start=period.start_date,
            period_end=period.end_date,
            scope=scope.value,
            user_id=request.user_id,
            institution_id=request.institution_id,
            department=request.department,
            status=ReportStatus.PENDING.value,
            generated_by=request.user_id,
            expires_at=now + timedelta(days=self.expiry_days),
        )
        logger.info(
            f"Report {report.id} requested: {request.type.value}/{requested_format} "
            f"{period.start_date}..{period.end_date} ({scope.value})"
        )

        try:
            export_format = resolve_format(requested_format)
            await self.reports.update(report.id, status=ReportStatus.PROCESSING.value)

            deadline = deadline or Deadline(self.deadline_seconds)
            if scope == ReportScope.INSTITUTION:
                records = await self.activities.get_for_period(
                    period.start_date, period.end_date, institution_id=request.institution_id
                )
            else:
                records = await self.activities.get_for_period(
                    period.start_date, period.end_date, user_id=request.user_id
                )

            aggregated = self.aggregator.aggregate(
                records,
                period,
                deadline=deadline,
                baseline_emissions=request.baseline_emissions,
            )
            artifact = self.exporter.export(
                aggregated,
                export_format,
                report_id=str(report.id),
                generated_at=generated_at or now,
                deadline=deadline,
            )
            path = await self.storage.save(artifact)
        except CarbonNetError as e:
            await self._fail(report, e)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error generating report {report.id}")
            await self._fail(report, e)
            raise

        payload = _plain_json(aggregated.export_payload())
        report = await self.reports.update(
            report.id,
            status=ReportStatus.COMPLETED.value,
            format=export_format.value,
            data=payload["data"],
            statistics=payload["statistics"],
            file_name=artifact.file_name,
            file_path=str(path),
            file_size=artifact.file_size,
        )
        await self.session.commit()
        logger.info(f"Report {report.id} completed ({artifact.file_size} bytes)")
        return report

    async def open_download(self, report_id: UUID) -> tuple[ReportDBModel, bytes]:
        """
        Read a completed report's artifact and count the download.

        Raises:
            FileNotFoundError: If the report has no artifact on disk
        """
        report = await self.reports.get_by_id(report_id)
        if report is None or not report.file_name:
            raise FileNotFoundError(f"Report {report_id} has no file")
        content = self.storage.read(report.file_name)
        report = await self.reports.record_download(report_id)
        return report, content

    async def delete_report(self, report_id: UUID) -> bool:
        report = await self.reports.get_by_id(report_id)
        if report is None:
            return False
        if report.file_name:
            self.storage.delete(report.file_name)
        return await self.reports.delete(report_id)

    async def cleanup_expired_reports(self, now: Optional[datetime] = None) -> int:
        """
        Delete reports (and their files) whose expiry has passed.

        Returns:
            Number of reports removed
        """
        now = now or datetime.utcnow()
        expired = await self.reports.get_expired(now)
        for report in expired:
            if report.file_name:
                self.storage.delete(report.file_name)
            await self.reports.delete(report.id)
        if expired:
            logger.info(f"Removed {len(expired)} expired reports")
        return len(expired)
