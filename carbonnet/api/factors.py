"""
Emission Factors API router.

Factor management and resolution through the institution -> global ->
default fallback chain.
"""
import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.core.dependencies import get_calculation_service, get_db_session
from carbonnet.database.repositories import EmissionFactorRepository
from carbonnet.pydantic_models.emission_factor import (
    EmissionFactor,
    EmissionFactorCreate,
    EmissionFactorPydModel,
    EmissionFactorUpdate,
    ResolvedFactorResponse,
)
from carbonnet.services.calculators.emission_calculator import EmissionCalculationService
from carbonnet.services.exceptions import FactorLookupError
from carbonnet.utils.constants import ActivityCategory

router = APIRouter(
    prefix="/api/v1/factors",
    tags=["Emission Factors"],
)

logger = logging.getLogger(__name__)

# Fields a client may clear by sending null
CLEARABLE_FACTOR_FIELDS = {"description", "source_year", "version", "valid_until"}


@router.get("/", response_model=list[EmissionFactorPydModel])
async def list_emission_factors(
    skip: int = 0,
    limit: int = 100,
    category: ActivityCategory | None = None,
    scope: int | None = Query(None, ge=1, le=3),
    institution_id: UUID | None = None,
    active_only: bool = False,
    session: AsyncSession = Depends(get_db_session),
):
    """
    List emission factors with pagination and optional filtering.

    Args:
        category: Filter by activity category (optional)
        scope: Filter by GHG scope (optional)
        institution_id: Only factors owned by this institution (optional)
        active_only: Hide deactivated factors
    """
    repo = EmissionFactorRepository(session)
    return await repo.list_filtered(
        category=category.value if category else None,
        scope=scope,
        institution_id=institution_id,
        active_only=active_only,
        skip=skip,
        limit=limit,
    )


@router.get("/resolve", response_model=ResolvedFactorResponse)
async def resolve_emission_factor(
    category: ActivityCategory,
    subcategory_key: str,
    institution_id: UUID | None = None,
    as_of: date | None = None,
    service: EmissionCalculationService = Depends(get_calculation_service),
):
    """
    Resolve the factor an activity on ``as_of`` (default today) would use.

    Which fallback tier answered is not exposed.
    """
    as_of = as_of or date.today()
    try:
        factor = await service.calculator.resolver.resolve_with_fallback(
            category, subcategory_key, institution_id, as_of
        )
    except FactorLookupError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        ) from e

    return ResolvedFactorResponse(
        category=category,
        subcategory_key=subcategory_key,
        as_of=as_of,
        factor_value=factor.factor_value,
        unit=factor.unit,
        scope=factor.scope,
        source=factor.source,
        version=factor.version,
    )


@router.get("/{factor_id}", response_model=EmissionFactorPydModel)
async def get_emission_factor(
    factor_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Get emission factor by ID.
    """
    repo = EmissionFactorRepository(session)
    factor = await repo.get_by_id(factor_id)

    if not factor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Emission factor {factor_id} not found",
        )

    return factor


@router.post("/", response_model=EmissionFactorPydModel, status_code=status.HTTP_201_CREATED)
async def create_emission_factor(
    factor_in: EmissionFactorCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """Create a global (no institution) or institution scoped factor."""
    repo = EmissionFactorRepository(session)
    factor = await repo.create_from_model(factor_in)
    logger.info(
        f"Created emission factor {factor.id} for {factor.category}/{factor.subcategory_key}"
    )
    return factor


@router.patch("/{factor_id}", response_model=EmissionFactorPydModel)
async def update_emission_factor(
    factor_id: UUID,
    factor_in: EmissionFactorUpdate,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Edit a factor.

    The merged factor is validated again, so an edit cannot leave
    ``valid_until`` before ``valid_from``.
    """
    repo = EmissionFactorRepository(session)
    factor = await repo.get_by_id(factor_id)
    if not factor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Emission factor {factor_id} not found",
        )

    changes = {
        field: value
        for field, value in factor_in.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FACTOR_FIELDS
    }
    current = EmissionFactor.model_validate(factor).model_dump(exclude={"id"})
    try:
        updated = EmissionFactorCreate.model_validate({**current, **changes})
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="; ".join(err["msg"] for err in e.errors()),
        ) from e

    factor = await repo.update_from_model(factor_id, updated)
    logger.info(f"Updated emission factor {factor_id}: {', '.join(sorted(changes))}")
    return factor


@router.post("/{factor_id}/deactivate", response_model=EmissionFactorPydModel)
async def deactivate_emission_factor(
    factor_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Deactivate a factor. Factors are never deleted so that past
    calculations stay traceable.
    """
    repo = EmissionFactorRepository(session)
    factor = await repo.deactivate(factor_id)

    if not factor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Emission factor {factor_id} not found",
        )

    logger.info(f"Deactivated emission factor {factor_id}")
    return factor
