from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teamy.core.constants import HostingRequestStatus, StaffStatus
from teamy.models.domain import (
    Tournament,
    TournamentAdmin,
    TournamentHostingRequest,
    TournamentStaff,
)


class TournamentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_admin(self, tournament_id: UUID, user_id: UUID) -> bool:
        res = await self.db.execute(
            select(TournamentAdmin.id).where(
                TournamentAdmin.tournament_id == tournament_id,
                TournamentAdmin.user_id == user_id,
            )
        )
        return res.scalar_one_or_none() is not None

    async def get_creator_id(self, tournament_id: UUID) -> UUID | None:
        res = await self.db.execute(
            select(Tournament.created_by_id).where(Tournament.id == tournament_id)
        )
        return res.scalar_one_or_none()

    async def has_approved_hosting_request(self, tournament_id: UUID, director_email: str) -> bool:
        res = await self.db.execute(
            select(TournamentHostingRequest.id)
            .where(
                TournamentHostingRequest.tournament_id == tournament_id,
                func.lower(TournamentHostingRequest.director_email) == director_email.lower(),
                TournamentHostingRequest.status == HostingRequestStatus.APPROVED,
            )
            .limit(1)
        )
        return res.scalar_one_or_none() is not None

    async def accepted_staff_for(
        self, tournament_id: UUID, user_id: UUID, email: str
    ) -> list[TournamentStaff]:
        res = await self.db.execute(
            select(TournamentStaff)
            .where(
                TournamentStaff.tournament_id == tournament_id,
                TournamentStaff.status == StaffStatus.ACCEPTED,
                or_(
                    TournamentStaff.user_id == user_id,
                    func.lower(TournamentStaff.email) == email.lower(),
                ),
            )
            .options(selectinload(TournamentStaff.events))
        )
        return list(res.scalars().all())
