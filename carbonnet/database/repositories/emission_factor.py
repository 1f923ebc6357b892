"""
Repository for EmissionFactor database operations.

Also serves as the resolver's factor store (see ``find_applicable``).
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.database.repositories.base import BaseRepository
from carbonnet.database.schemas import EmissionFactorDBModel
from carbonnet.pydantic_models.emission_factor import EmissionFactor, EmissionFactorBase


class EmissionFactorRepository(BaseRepository[EmissionFactorDBModel]):
    """Repository for emission factor operations."""

    def __init__(self, session: AsyncSession):
        """
        Initialize emission factor repository.

        Args:
            session: Async database session
        """
        super().__init__(EmissionFactorDBModel, session)

    async def find_applicable(
        self,
        category: str,
        subcategory_key: str,
        institution_id: Optional[UUID | str],
        as_of: date,
    ) -> List[EmissionFactor]:
        """
        Active factors for the exact category/key/institution whose validity
        window covers ``as_of``. ``institution_id=None`` selects global factors.
        """
        stmt = select(self.model).where(
            self.model.category == category,
            self.model.subcategory_key == subcategory_key,
            self.model.is_active.is_(True),
            self.model.valid_from <= as_of,
            or_(self.model.valid_until.is_(None), self.model.valid_until >= as_of),
        )
        if institution_id is None:
            stmt = stmt.where(self.model.institution_id.is_(None))
        else:
            if not isinstance(institution_id, UUID):
                institution_id = UUID(str(institution_id))
            stmt = stmt.where(self.model.institution_id == institution_id)

        result = await self.session.execute(stmt)
        return [EmissionFactor.model_validate(row) for row in result.scalars().all()]

    async def list_filtered(
        self,
        category: Optional[str] = None,
        scope: Optional[int] = None,
        institution_id: Optional[UUID] = None,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> List[EmissionFactorDBModel]:
        """
        List emission factors with optional filters.

        Args:
            category: Activity category
            scope: GHG Protocol scope (1, 2, or 3)
            institution_id: Only this institution's factors
            active_only: Skip deactivated factors
        """
        stmt = select(self.model)
        if category:
            stmt = stmt.where(self.model.category == category)
        if scope is not None:
            stmt = stmt.where(self.model.scope == scope)
        if institution_id is not None:
            stmt = stmt.where(self.model.institution_id == institution_id)
        if active_only:
            stmt = stmt.where(self.model.is_active.is_(True))

        stmt = (
            stmt.order_by(
                self.model.category, self.model.subcategory_key, self.model.valid_from.desc()
            )
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_global(
        self, category: str, subcategory_key: str, valid_from: date
    ) -> Optional[EmissionFactorDBModel]:
        """Global factor with an exact key and start date (used by the seeder)."""
        stmt = select(self.model).where(
            self.model.category == category,
            self.model.subcategory_key == subcategory_key,
            self.model.institution_id.is_(None),
            self.model.valid_from == valid_from,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def deactivate(self, id: UUID) -> Optional[EmissionFactorDBModel]:
        """Deactivate a factor; its history stays queryable."""
        return await self.update(id, is_active=False)

    async def create_from_model(self, factor: EmissionFactorBase) -> EmissionFactorDBModel:
        """Insert a validated factor."""
        data = factor.model_dump()
        data["category"] = factor.category.value
        data["source"] = factor.source.value
        return await self.create(**data)

    async def update_from_model(
        self, id: UUID, factor: EmissionFactorBase
    ) -> Optional[EmissionFactorDBModel]:
        """Overwrite a factor with a validated version of itself."""
        data = factor.model_dump()
        data["category"] = factor.category.value
        data["source"] = factor.source.value
        return await self.update(id, **data)
