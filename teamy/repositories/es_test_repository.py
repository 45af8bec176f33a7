from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teamy.models.domain import ESTest


class ESTestRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_with_tournament(self, test_id: UUID) -> ESTest | None:
        res = await self.db.execute(
            select(ESTest).where(ESTest.id == test_id).options(selectinload(ESTest.tournament))
        )
        return res.scalar_one_or_none()

    async def access_target(self, test_id: UUID) -> tuple[UUID, UUID | None] | None:
        """(tournament_id, event_id) of a test, or None when it does not exist."""
        res = await self.db.execute(
            select(ESTest.tournament_id, ESTest.event_id).where(ESTest.id == test_id)
        )
        row = res.one_or_none()
        if row is None:
            return None
        return row.tournament_id, row.event_id
