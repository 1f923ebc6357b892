"""
Statistics API router.

Live aggregates for dashboards. Computed on every request from the stored
activities; nothing is persisted.
"""

import logging
from datetime import date, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.core.config import Config
from carbonnet.core.dependencies import get_app_config, get_db_session
from carbonnet.database.repositories import ActivityRepository
from carbonnet.pydantic_models.report import AggregatedReport, ReportPeriod
from carbonnet.pydantic_models.statistics import (
    CategoryStatisticsResponse,
    MonthlyStatisticsResponse,
    RecommendationsResponse,
)
from carbonnet.services.aggregators import ReportAggregator
from carbonnet.services.exceptions import InvalidPeriod
from carbonnet.services.recommendations import RecommendationEngine

router = APIRouter(
    prefix="/api/v1/statistics",
    tags=["Statistics"],
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


async def _aggregate(
    session: AsyncSession,
    config: Config,
    user_id: UUID | None,
    institution_id: UUID | None,
    start_date: date | None,
    end_date: date | None,
) -> AggregatedReport:
    if user_id is None and institution_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either user_id or institution_id is required",
        )

    end_date = end_date or date.today()
    start_date = start_date or end_date - timedelta(days=DEFAULT_WINDOW_DAYS)
    try:
        period = ReportPeriod(start_date=start_date, end_date=end_date)
    except InvalidPeriod as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    repo = ActivityRepository(session)
    records = await repo.get_for_period(
        period.start_date, period.end_date, user_id=user_id, institution_id=institution_id
    )
    engine = RecommendationEngine.from_config(config.section("recommendations"))
    return ReportAggregator(engine).aggregate(records, period)


@router.get(
    "/categories",
    response_model=CategoryStatisticsResponse,
    response_model_by_alias=True,
)
async def get_category_statistics(
    user_id: UUID | None = None,
    institution_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_db_session),
    config: Config = Depends(get_app_config),
):
    """
    Emissions per category and per GHG scope.

    The period defaults to the last 30 days.
    """
    report = await _aggregate(session, config, user_id, institution_id, start_date, end_date)
    return CategoryStatisticsResponse(
        period=report.period,
        total_emissions=report.total_emissions,
        emissions_by_scope=report.emissions_by_scope,
        categories=report.category_summary,
    )


@router.get("/monthly", response_model=MonthlyStatisticsResponse)
async def get_monthly_statistics(
    user_id: UUID | None = None,
    institution_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_db_session),
    config: Config = Depends(get_app_config),
):
    """Emissions per calendar month, oldest month first."""
    report = await _aggregate(session, config, user_id, institution_id, start_date, end_date)
    return MonthlyStatisticsResponse(
        period=report.period,
        total_emissions=report.total_emissions,
        trends=report.monthly_trend,
    )


@router.get("/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(
    user_id: UUID | None = None,
    institution_id: UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_db_session),
    config: Config = Depends(get_app_config),
):
    report = await _aggregate(session, config, user_id, institution_id, start_date, end_date)
    logger.debug(f"{len(report.recommendations)} recommendations for period {report.period}")
    return RecommendationsResponse(
        period=report.period,
        total_emissions=report.total_emissions,
        emissions_by_category=report.emissions_by_category,
        recommendations=report.recommendations,
    )
