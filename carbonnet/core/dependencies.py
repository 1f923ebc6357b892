"""
FastAPI dependencies.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.core.config import Config
from carbonnet.database.repositories import EmissionFactorRepository
from carbonnet.database.session_manager.db_session import Database
from carbonnet.services.calculators.default_factors import DefaultFactorTable
from carbonnet.services.calculators.emission_calculator import EmissionCalculationService
from carbonnet.services.report_service import ReportGenerationService
from carbonnet.services.storage import ReportFileStorage


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for one request.

    Committed when the handler returns, rolled back when it raises.
    """
    async with Database() as session:
        yield session


def get_app_config(request: Request) -> Config:
    return request.app.state.config


def get_report_storage(request: Request) -> ReportFileStorage:
    return request.app.state.report_storage


def get_calculation_service(
    config: Config = Depends(get_app_config),
    session: AsyncSession = Depends(get_db_session),
) -> EmissionCalculationService:
    """Calculation service over the database factor store."""
    section = config.section("emission_calculation")
    return EmissionCalculationService.from_store(
        EmissionFactorRepository(session),
        propagate_lookup_errors=bool(section.get("propagate_lookup_errors", False)),
        defaults=DefaultFactorTable.standard(str(section.get("default_factor_version", "2023"))),
    )


def get_report_service(
    config: Config = Depends(get_app_config),
    session: AsyncSession = Depends(get_db_session),
    storage: ReportFileStorage = Depends(get_report_storage),
) -> ReportGenerationService:
    return ReportGenerationService.from_config(session, storage, config.data)
