"""
Repository for Activity database operations.
"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.database.repositories.base import BaseRepository
from carbonnet.database.schemas import ActivityDBModel
from carbonnet.pydantic_models.activity import ActivityRecord

DETAIL_COLUMNS = ("transportation", "electricity", "food", "waste", "water")


def record_to_columns(record: ActivityRecord) -> Dict[str, Any]:
    """Column values for an activity record (JSON columns get plain JSON data)."""
    json_data = record.model_dump(
        mode="json", include={*DETAIL_COLUMNS, "emission_factor_provenance"}
    )
    return {
        "user_id": record.user_id,
        "institution_id": record.institution_id,
        "category": record.category.value,
        "subcategory": record.subcategory,
        "description": record.description,
        "activity_date": record.activity_date,
        "quantity": record.quantity,
        "unit": record.unit,
        "carbon_emission_kg": record.carbon_emission_kg,
        "data_source": record.data_source.value,
        **json_data,
    }


def row_to_mapping(row: ActivityDBModel) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


class ActivityRepository(BaseRepository[ActivityDBModel]):
    """Repository for activity operations. Soft-deleted rows are never returned."""

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityDBModel, session)

    def _active(self):
        return select(self.model).where(self.model.is_deleted.is_(False))

    async def create_from_record(
        self, record: ActivityRecord, notes: Optional[str] = None
    ) -> ActivityDBModel:
        """Insert a computed activity record."""
        data = record_to_columns(record)
        if isinstance(record.id, UUID):
            data["id"] = record.id
        return await self.create(notes=notes, **data)

    async def create_many_from_records(
        self, records: List[ActivityRecord], notes: Optional[Dict[Any, Optional[str]]] = None
    ) -> List[ActivityDBModel]:
        """Insert computed records in one flush; notes are keyed by record id."""
        notes = notes or {}
        items = [
            {**record_to_columns(record), "id": record.id, "notes": notes.get(record.id)}
            for record in records
        ]
        return await self.bulk_create(items)

    async def update_from_record(
        self, id: UUID, record: ActivityRecord, **extra: Any
    ) -> Optional[ActivityDBModel]:
        return await self.update(id, **record_to_columns(record), **extra)

    async def get_by_id_active(self, id: UUID) -> Optional[ActivityDBModel]:
        """
        Get active (non-deleted) activity by ID.

        Returns:
            Activity if found and not deleted, None otherwise
        """
        stmt = self._active().where(self.model.id == id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    def _filtered(
        self,
        stmt,
        user_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ):
        stmt = stmt.where(self.model.is_deleted.is_(False))
        if user_id is not None:
            stmt = stmt.where(self.model.user_id == user_id)
        if institution_id is not None:
            stmt = stmt.where(self.model.institution_id == institution_id)
        if category:
            stmt = stmt.where(self.model.category == category)
        if start_date is not None:
            stmt = stmt.where(self.model.activity_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(self.model.activity_date <= end_date)
        return stmt

    async def list_filtered(
        self,
        user_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ActivityDBModel]:
        """List activities, newest activity date first."""
        stmt = self._filtered(
            select(self.model), user_id, institution_id, category, start_date, end_date
        )
        stmt = (
            stmt.order_by(self.model.activity_date.desc(), self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_filtered(
        self,
        user_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(self.model),
            user_id,
            institution_id,
            category,
            start_date,
            end_date,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_for_period(
        self,
        start_date: date,
        end_date: date,
        user_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch the activity snapshot a report aggregates.

        Rows are returned as column mappings; the aggregator validates them
        and lists malformed rows in its errors.

        Args:
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            user_id: Owner filter (individual reports)
            institution_id: Institution filter (institution reports)

        Returns:
            Column mappings ordered by activity date
        """
        stmt = self._filtered(
            select(self.model),
            user_id=user_id,
            institution_id=institution_id,
            start_date=start_date,
            end_date=end_date,
        ).order_by(self.model.activity_date, self.model.created_at)
        result = await self.session.execute(stmt)
        return [row_to_mapping(row) for row in result.scalars().all()]
