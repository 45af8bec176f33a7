import structlog
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from teamy.core.constants import AUDIT_ACTION_SCORES_RELEASED
from teamy.core.errors import APIError
from teamy.core.security import Identity
from teamy.events.audit import record_audit
from teamy.models.domain import ESTest, ESTestAttempt, ESTestAttemptAnswer, ESTestQuestion
from teamy.repositories.attempt_repository import AttemptRepository
from teamy.repositories.es_test_repository import ESTestRepository
from teamy.services.access_service import AccessService
from teamy.services.release_service import filter_result, scores_are_released
from teamy.utils.ids import parse_uuid
from teamy.utils.time import ensure_utc, utcnow

logger = structlog.get_logger()


class AttemptService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AttemptRepository(db)
        self.tests = ESTestRepository(db)
        self.access = AccessService(db)

    async def get_test_or_404(self, test_id: str) -> ESTest:
        test_uuid = parse_uuid(test_id)
        row = await self.tests.get_with_tournament(test_uuid) if test_uuid else None
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Test not found")
        return row

    async def list_attempts(self, test_id: str, identity: Identity) -> dict:
        test = await self.get_test_or_404(test_id)
        if not await self.access.can_grade_test(identity, test.id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only tournament directors, event supervisors, and admins can view test attempts",
            )
        rows = await self.repo.list_for_test(test.id)
        return {"attempts": [self.serialize_attempt(row) for row in rows]}

    async def release_scores(self, test_id: str, identity: Identity) -> dict:
        test = await self.get_test_or_404(test_id)
        if not await self.access.can_grade_test(identity, test.id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only tournament directors, event supervisors, and admins can release scores",
            )
        end_at = ensure_utc(test.tournament.end_at)
        if utcnow() < end_at:
            raise APIError(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot release scores until the tournament has ended",
                tournamentEndDateTime=end_at.isoformat(),
            )

        test.scores_released = True
        await record_audit(
            self.db,
            actor=identity,
            action=AUDIT_ACTION_SCORES_RELEASED,
            entity_type="es_test",
            entity_id=str(test.id),
            payload={"name": test.name},
        )
        await self.db.commit()
        logger.info("es_scores_released", test_id=str(test.id), user_id=str(identity.id))
        return {"success": True, "message": "Scores released successfully"}

    async def my_results(self, test_id: str, identity: Identity) -> dict:
        test = await self.get_test_or_404(test_id)
        attempt = await self.repo.latest_result_for_user(test.id, identity.id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No attempt found")

        released = scores_are_released(test)
        return {
            "attempt": filter_result(self.serialize_attempt(attempt), released, test.score_release_mode),
            "test": {
                "releaseScoresAt": ensure_utc(test.release_scores_at),
                "scoreReleaseMode": test.score_release_mode.value,
                "scoresReleased": released,
            },
        }

    def serialize_attempt(self, row: ESTestAttempt) -> dict:
        answers = sorted(row.answers, key=lambda a: a.question.order)
        return {
            "id": row.id,
            "testId": row.test_id,
            "userId": row.user_id,
            "status": row.status.value,
            "startedAt": ensure_utc(row.started_at),
            "submittedAt": ensure_utc(row.submitted_at),
            "gradeEarned": float(row.grade_earned) if row.grade_earned is not None else None,
            "answers": [self._serialize_answer(a) for a in answers],
        }

    def _serialize_answer(self, answer: ESTestAttemptAnswer) -> dict:
        return {
            "id": answer.id,
            "questionId": answer.question_id,
            "answerText": answer.answer_text,
            "selectedOptionIds": [str(v) for v in answer.selected_option_ids or []],
            "numericAnswer": float(answer.numeric_answer) if answer.numeric_answer is not None else None,
            "pointsAwarded": float(answer.points_awarded) if answer.points_awarded is not None else None,
            "gradedAt": ensure_utc(answer.graded_at),
            "graderNote": answer.grader_note,
            "question": self._serialize_question(answer.question),
        }

    def _serialize_question(self, question: ESTestQuestion) -> dict:
        return {
            "id": question.id,
            "promptMd": question.prompt_md,
            "type": question.type.value,
            "points": float(question.points),
            "explanation": question.explanation,
            "order": question.order,
            "options": [
                {"id": opt.id, "label": opt.label, "isCorrect": opt.is_correct, "order": opt.order}
                for opt in question.options
            ],
        }
