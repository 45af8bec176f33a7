from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from teamy.core.security import Identity
from teamy.repositories.es_test_repository import ESTestRepository
from teamy.repositories.tournament_repository import TournamentRepository

logger = structlog.get_logger()


class AccessService:
    """Single home for the tournament/ES-test authorization policy.

    A tournament director is a tournament admin, the tournament's creator, or
    the director named on an approved hosting request (email compared
    case-insensitively). Directors may act on every test of their tournament.

    Everyone else needs an ACCEPTED staff membership of the tournament, matched
    by user id or by email so that invitations sent before the invitee had an
    account still count. For a test bound to a catalog event, one of the
    memberships must list that event. Trial-event tests (no event id) are open
    to any accepted staff member of the tournament.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tournaments = TournamentRepository(db)
        self.tests = ESTestRepository(db)

    async def is_tournament_director(self, identity: Identity, tournament_id: UUID) -> bool:
        if await self.tournaments.is_admin(tournament_id, identity.id):
            return True
        if await self.tournaments.get_creator_id(tournament_id) == identity.id:
            return True
        return await self.tournaments.has_approved_hosting_request(tournament_id, identity.email)

    async def can_grade_test(self, identity: Identity, test_id: UUID) -> bool:
        target = await self.tests.access_target(test_id)
        if target is None:
            return False
        tournament_id, event_id = target

        if await self.is_tournament_director(identity, tournament_id):
            return True

        memberships = await self.tournaments.accepted_staff_for(
            tournament_id, identity.id, identity.email
        )
        if event_id is not None:
            allowed = any(
                assigned.event_id == event_id
                for staff in memberships
                for assigned in staff.events
            )
        else:
            allowed = len(memberships) > 0

        if not allowed:
            logger.info(
                "es_access_denied",
                test_id=str(test_id),
                user_id=str(identity.id),
                memberships=len(memberships),
            )
        return allowed
