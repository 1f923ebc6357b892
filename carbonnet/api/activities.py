"""
Activity API router.

Activities are submitted with their category details; the emission figure
is always computed server side.
"""

import logging
import uuid
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.core.dependencies import get_calculation_service, get_db_session
from carbonnet.database.repositories import ActivityRepository
from carbonnet.pydantic_models.activity import (
    ActivityBulkCreate,
    ActivityBulkCreateResponse,
    ActivityCreate,
    ActivityEstimateResponse,
    ActivityPydModel,
    ActivityRecord,
    ActivityUpdate,
    BulkActivityError,
    PublicProvenance,
)
from carbonnet.services.calculators.emission_calculator import EmissionCalculationService
from carbonnet.services.exceptions import FactorLookupError
from carbonnet.utils.constants import ActivityCategory, DataSource

router = APIRouter(
    prefix="/api/v1/activities",
    tags=["Activity Data"],
)

logger = logging.getLogger(__name__)


def _lookup_unavailable(e: FactorLookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post("/", response_model=ActivityPydModel, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity_in: ActivityCreate,
    session: AsyncSession = Depends(get_db_session),
    service: EmissionCalculationService = Depends(get_calculation_service),
):
    """Submit an activity and compute its emissions."""
    record = ActivityRecord(
        id=uuid.uuid4(),
        **activity_in.model_dump(exclude={"notes"}),
    )
    try:
        record = await service.apply(record)
    except FactorLookupError as e:
        raise _lookup_unavailable(e) from e

    repo = ActivityRepository(session)
    activity = await repo.create_from_record(record, notes=activity_in.notes)
    logger.info(
        f"Created {record.category.value} activity {activity.id}: "
        f"{record.carbon_emission_kg} kg CO2e"
    )
    return activity


@router.post("/estimate", response_model=ActivityEstimateResponse)
async def estimate_activity(
    activity_in: ActivityCreate,
    service: EmissionCalculationService = Depends(get_calculation_service),
):
    """Preview the emission of an activity without storing it."""
    record = ActivityRecord(id=uuid.uuid4(), **activity_in.model_dump(exclude={"notes"}))
    try:
        record = await service.apply(record)
    except FactorLookupError as e:
        raise _lookup_unavailable(e) from e

    provenance = record.emission_factor_provenance
    return ActivityEstimateResponse(
        carbon_emission_kg=record.carbon_emission_kg,
        emission_factor_provenance=(
            PublicProvenance.model_validate(provenance.model_dump()) if provenance else None
        ),
        activity=activity_in,
    )


def _validation_message(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


@router.post(
    "/bulk", response_model=ActivityBulkCreateResponse, status_code=status.HTTP_201_CREATED
)
async def bulk_create_activities(
    bulk_in: ActivityBulkCreate,
    session: AsyncSession = Depends(get_db_session),
    service: EmissionCalculationService = Depends(get_calculation_service),
):
    """
    Create many activities at once.

    Each item is validated and calculated on its own; failures are listed
    by their position in the request and do not stop the other items.
    """
    errors: list[BulkActivityError] = []
    records: list[ActivityRecord] = []
    index_of: dict[str, int] = {}
    notes: dict[UUID, str | None] = {}

    for index, item in enumerate(bulk_in.activities):
        try:
            activity_in = ActivityCreate.model_validate(
                {"data_source": DataSource.FILE_UPLOAD.value, **item}
            )
        except ValidationError as e:
            errors.append(BulkActivityError(index=index, error=_validation_message(e)))
            continue
        record = ActivityRecord(id=uuid.uuid4(), **activity_in.model_dump(exclude={"notes"}))
        records.append(record)
        index_of[str(record.id)] = index
        notes[record.id] = activity_in.notes

    batch = await service.calculate_batch(records)
    for failure in batch["errors"]:
        errors.append(
            BulkActivityError(index=index_of[failure["activity_id"]], error=failure["error"])
        )
    errors.sort(key=lambda e: e.index)

    repo = ActivityRepository(session)
    created = await repo.create_many_from_records(batch["results"], notes=notes)
    logger.info(f"Bulk created {len(created)} activities ({len(errors)} failed)")

    return ActivityBulkCreateResponse(
        created=len(created),
        failed=len(errors),
        activities=[ActivityPydModel.model_validate(activity) for activity in created],
        errors=errors,
    )


@router.get("/", response_model=list[ActivityPydModel])
async def list_activities(
    user_id: UUID | None = None,
    institution_id: UUID | None = None,
    category: ActivityCategory | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    skip: int = 0,
    limit: int = 100,
    session: AsyncSession = Depends(get_db_session),
):
    """List activities, newest first."""
    repo = ActivityRepository(session)
    return await repo.list_filtered(
        user_id=user_id,
        institution_id=institution_id,
        category=category.value if category else None,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.get("/{activity_id}", response_model=ActivityPydModel)
async def get_activity(
    activity_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    """Get activity by ID."""
    repo = ActivityRepository(session)
    activity = await repo.get_by_id_active(activity_id)

    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Activity {activity_id} not found",
        )

    return activity


@router.patch("/{activity_id}", response_model=ActivityPydModel)
async def update_activity(
    activity_id: UUID,
    activity_in: ActivityUpdate,
    session: AsyncSession = Depends(get_db_session),
    service: EmissionCalculationService = Depends(get_calculation_service),
):
    """
    Update an activity.

    Emissions are recomputed only when a quantity-bearing field changes.
    """
    repo = ActivityRepository(session)
    activity = await repo.get_by_id_active(activity_id)
    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Activity {activity_id} not found",
        )

    previous = ActivityRecord.model_validate(activity)
    changes = {
        field: getattr(activity_in, field)
        for field in activity_in.model_fields_set
        if field != "notes"
    }
    # category and activity_date cannot be cleared
    for field in ("category", "activity_date"):
        if changes.get(field, previous) is None:
            changes.pop(field)
    updated = ActivityRecord.model_validate({**previous.model_dump(), **changes})

    try:
        updated = await service.recalculate_if_changed(previous, updated)
    except FactorLookupError as e:
        raise _lookup_unavailable(e) from e

    extra = {"notes": activity_in.notes} if "notes" in activity_in.model_fields_set else {}
    return await repo.update_from_record(activity_id, updated, **extra)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    activity_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    """Soft delete an activity."""
    repo = ActivityRepository(session)
    activity = await repo.get_by_id_active(activity_id)
    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Activity {activity_id} not found",
        )

    await repo.soft_delete(activity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
