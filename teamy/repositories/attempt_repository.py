from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from teamy.core.constants import RESULT_VISIBLE_STATUSES
from teamy.models.domain import ESTestAttempt, ESTestAttemptAnswer, ESTestQuestion


def _with_answer_detail():
    return (
        selectinload(ESTestAttempt.answers)
        .selectinload(ESTestAttemptAnswer.question)
        .selectinload(ESTestQuestion.options)
    )


class AttemptRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_grading(self, attempt_id: UUID) -> ESTestAttempt | None:
        res = await self.db.execute(
            select(ESTestAttempt)
            .where(ESTestAttempt.id == attempt_id)
            .options(selectinload(ESTestAttempt.answers).selectinload(ESTestAttemptAnswer.question))
        )
        return res.scalar_one_or_none()

    async def list_answers(self, attempt_id: UUID) -> list[ESTestAttemptAnswer]:
        res = await self.db.execute(
            select(ESTestAttemptAnswer).where(ESTestAttemptAnswer.attempt_id == attempt_id)
        )
        return list(res.scalars().all())

    async def get_detailed(self, attempt_id: UUID) -> ESTestAttempt | None:
        res = await self.db.execute(
            select(ESTestAttempt)
            .where(ESTestAttempt.id == attempt_id)
            .options(_with_answer_detail())
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def list_for_test(self, test_id: UUID) -> list[ESTestAttempt]:
        res = await self.db.execute(
            select(ESTestAttempt)
            .where(ESTestAttempt.test_id == test_id)
            .options(_with_answer_detail())
            .order_by(
                ESTestAttempt.submitted_at.desc().nulls_last(),
                ESTestAttempt.created_at.desc(),
            )
        )
        return list(res.scalars().all())

    async def latest_result_for_user(self, test_id: UUID, user_id: UUID) -> ESTestAttempt | None:
        res = await self.db.execute(
            select(ESTestAttempt)
            .where(
                ESTestAttempt.test_id == test_id,
                ESTestAttempt.user_id == user_id,
                ESTestAttempt.status.in_(RESULT_VISIBLE_STATUSES),
            )
            .options(_with_answer_detail())
            .order_by(ESTestAttempt.submitted_at.desc().nulls_last())
            .limit(1)
        )
        return res.scalar_one_or_none()
