"""
Reports API router.

Generates report artifacts in json, csv, excel or pdf and serves them for
download until they expire.
"""

import logging
import math
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.core.dependencies import get_db_session, get_report_service
from carbonnet.database.repositories import ReportRepository
from carbonnet.pydantic_models.report import (
    ReportGenerateRequest,
    ReportListResponse,
    ReportPydModel,
)
from carbonnet.services.exceptions import (
    DeadlineExceeded,
    ExportIOError,
    InvalidPeriod,
    UnsupportedFormatError,
)
from carbonnet.services.exporters import resolve_format
from carbonnet.services.report_service import ReportGenerationService
from carbonnet.utils.constants import ReportStatus, ReportType

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["Reports"],
)

logger = logging.getLogger(__name__)


@router.post("/generate", response_model=ReportPydModel, status_code=status.HTTP_201_CREATED)
async def generate_report(
    request: ReportGenerateRequest,
    service: ReportGenerationService = Depends(get_report_service),
):
    """
    Generate a report for a period and store the exported file.

    Errors:
    - 400: invalid period or unsupported format
    - 500: the artifact could not be rendered or written in time
    """
    try:
        return await service.generate(request)
    except (InvalidPeriod, UnsupportedFormatError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except (ExportIOError, DeadlineExceeded) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate report: {e}",
        ) from e


@router.get("/", response_model=ReportListResponse)
async def list_reports(
    user_id: UUID | None = None,
    type: ReportType | None = None,
    report_status: ReportStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    """List reports newest first, paginated."""
    repo = ReportRepository(session)
    filters = {
        "generated_by": user_id,
        "type": type.value if type else None,
        "status": report_status.value if report_status else None,
    }
    total = await repo.count_for_user(**filters)
    reports = await repo.list_for_user(**filters, skip=(page - 1) * limit, limit=limit)

    return ReportListResponse(
        reports=[ReportPydModel.model_validate(r) for r in reports],
        total_pages=math.ceil(total / limit),
        current_page=page,
        total_reports=total,
    )


@router.get("/{report_id}", response_model=ReportPydModel)
async def get_report(
    report_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    repo = ReportRepository(session)
    report = await repo.get_by_id(report_id)

    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report {report_id} not found",
        )

    return report


@router.get("/{report_id}/download")
async def download_report(
    report_id: UUID,
    service: ReportGenerationService = Depends(get_report_service),
):
    """Download the exported file of a completed report."""
    report = await service.reports.get_by_id(report_id)
    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report {report_id} not found",
        )
    if report.status != ReportStatus.COMPLETED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Report {report_id} is {report.status}, not downloadable",
        )

    try:
        report, content = await service.open_download(report_id)
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report file for {report_id} not found",
        ) from e

    exporter = service.exporter.exporters[resolve_format(report.format)]
    logger.info(f"Report {report_id} downloaded ({report.download_count} downloads)")
    return Response(
        content=content,
        media_type=exporter.media_type,
        headers={"Content-Disposition": f'attachment; filename="{report.file_name}"'},
    )


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: UUID,
    service: ReportGenerationService = Depends(get_report_service),
):
    """Delete a report and its file."""
    if not await service.delete_report(report_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Report {report_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
