"""
Repository for Report database operations.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carbonnet.database.repositories.base import BaseRepository
from carbonnet.database.schemas import ReportDBModel


class ReportRepository(BaseRepository[ReportDBModel]):
    """Repository for report records."""

    def __init__(self, session: AsyncSession):
        super().__init__(ReportDBModel, session)

    def _owned(self, stmt, generated_by: Optional[UUID], type: Optional[str], status: Optional[str]):
        if generated_by is not None:
            stmt = stmt.where(self.model.generated_by == generated_by)
        if type:
            stmt = stmt.where(self.model.type == type)
        if status:
            stmt = stmt.where(self.model.status == status)
        return stmt

    async def list_for_user(
        self,
        generated_by: Optional[UUID] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 10,
    ) -> List[ReportDBModel]:
        """Reports newest first."""
        stmt = self._owned(select(self.model), generated_by, type, status)
        stmt = stmt.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(
        self,
        generated_by: Optional[UUID] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> int:
        stmt = self._owned(
            select(func.count()).select_from(self.model), generated_by, type, status
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_expired(self, now: datetime) -> List[ReportDBModel]:
        stmt = select(self.model).where(
            self.model.expires_at.is_not(None), self.model.expires_at < now
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def record_download(self, id: UUID) -> Optional[ReportDBModel]:
        """Atomically increment the download counter."""
        return await self.update(
            id,
            download_count=func.coalesce(self.model.download_count, 0) + 1,
            last_downloaded=datetime.utcnow(),
        )
