import structlog
from fastapi import HTTPException, status
from prometheus_client import Counter
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from teamy.core.constants import AUDIT_ACTION_ATTEMPT_GRADED, AttemptStatus
from teamy.core.errors import AnswerNotFoundError, GradingError
from teamy.core.security import Identity
from teamy.events.audit import record_audit
from teamy.models.domain import ESTestAttempt, ESTestAttemptAnswer
from teamy.repositories.attempt_repository import AttemptRepository
from teamy.schemas.grading import GradeIn
from teamy.services.access_service import AccessService
from teamy.services.attempt_service import AttemptService
from teamy.services.scoring_service import check_award, status_for_tally, tally_answers, to_points
from teamy.utils.ids import parse_uuid
from teamy.utils.time import utcnow

logger = structlog.get_logger()

GRADING_OUTCOMES = Counter("teamy_es_grading_total", "ES attempt grading requests", ["outcome"])

SERIALIZATION_FAILURE = "40001"


def _answer_key(raw: str) -> str:
    parsed = parse_uuid(raw)
    return str(parsed) if parsed else raw


def _is_serialization_failure(exc: DBAPIError) -> bool:
    return getattr(exc.orig, "sqlstate", None) == SERIALIZATION_FAILURE


class GradingService:
    """Applies a grader's batch of per-answer awards to one ES test attempt.

    The batch is all-or-nothing: every answer id must belong to the attempt and
    every award must stay within its question's points, otherwise nothing is
    written. After the writes, the attempt total is recomputed from every answer
    of the attempt (ungraded answers count zero) and the attempt becomes GRADED
    only once no answer is left without a grade.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AttemptRepository(db)
        self.access = AccessService(db)
        self.attempts = AttemptService(db)

    async def grade_attempt(
        self, test_id: str, attempt_id: str, identity: Identity, grades: list[GradeIn]
    ) -> dict:
        test_uuid = parse_uuid(test_id)
        if test_uuid is None or not await self.access.can_grade_test(identity, test_uuid):
            GRADING_OUTCOMES.labels(outcome="forbidden").inc()
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to grade test attempts"
            )

        attempt_uuid = parse_uuid(attempt_id)
        attempt = await self.repo.get_for_grading(attempt_uuid) if attempt_uuid else None
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attempt not found")
        if attempt.test_id != test_uuid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Attempt does not belong to this test"
            )
        if attempt.status == AttemptStatus.IN_PROGRESS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Attempt has not been submitted"
            )

        try:
            self._apply_grades(attempt, grades)
            await self.db.flush()
            answers = await self.repo.list_answers(attempt.id)
            tally = tally_answers(answers)
            attempt.grade_earned = tally.earned
            attempt.status = status_for_tally(tally)
            # Unchanged totals still bump the version, so overlapping batches collide on this row.
            flag_modified(attempt, "status")
            await record_audit(
                self.db,
                actor=identity,
                action=AUDIT_ACTION_ATTEMPT_GRADED,
                entity_type="es_test_attempt",
                entity_id=str(attempt.id),
                payload={
                    "testId": str(test_uuid),
                    "answerIds": [g.answerId for g in grades],
                    "gradeEarned": str(tally.earned),
                    "status": attempt.status.value,
                },
            )
            await self.db.commit()
        except GradingError as exc:
            await self.db.rollback()
            GRADING_OUTCOMES.labels(outcome=exc.code).inc()
            logger.info(
                "es_grading_rejected",
                code=exc.code,
                test_id=test_id,
                attempt_id=attempt_id,
                user_id=str(identity.id),
            )
            raise
        except (DBAPIError, StaleDataError) as exc:
            await self.db.rollback()
            if isinstance(exc, StaleDataError) or _is_serialization_failure(exc):
                GRADING_OUTCOMES.labels(outcome="conflict").inc()
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Attempt was modified concurrently, retry the request",
                ) from exc
            raise

        GRADING_OUTCOMES.labels(outcome="graded").inc()
        logger.info(
            "es_attempt_graded",
            test_id=test_id,
            attempt_id=attempt_id,
            user_id=str(identity.id),
            grades=len(grades),
            status=attempt.status.value,
            earned=str(tally.earned),
            graded=tally.graded,
            total=tally.total,
        )

        updated = await self.repo.get_detailed(attempt.id)
        if not updated:
            # deleted between commit and reload
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attempt not found")
        return {"success": True, "attempt": self.attempts.serialize_attempt(updated)}

    def _apply_grades(self, attempt: ESTestAttempt, grades: list[GradeIn]) -> None:
        answers: dict[str, ESTestAttemptAnswer] = {str(a.id): a for a in attempt.answers}
        graded_at = utcnow()
        for grade in grades:
            answer = answers.get(_answer_key(grade.answerId))
            if answer is None:
                raise AnswerNotFoundError(grade.answerId)
            awarded = to_points(grade.pointsAwarded)
            check_award(grade.answerId, awarded, to_points(answer.question.points))
            answer.points_awarded = awarded
            answer.grader_note = grade.graderNote or None
            answer.graded_at = graded_at
