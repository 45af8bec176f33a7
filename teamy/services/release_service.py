from datetime import datetime

from teamy.core.constants import ScoreReleaseMode
from teamy.models.domain import ESTest
from teamy.utils.time import ensure_utc, utcnow


def scores_are_released(test: ESTest, now: datetime | None = None) -> bool:
    if test.scores_released:
        return True
    release_at = ensure_utc(test.release_scores_at)
    if release_at is None:
        return False
    return (now or utcnow()) >= release_at


def _hide_answer_scoring(answer: dict) -> dict:
    question = answer["question"]
    return {
        **answer,
        "pointsAwarded": None,
        "question": {
            **question,
            "explanation": None,
            "options": [{**opt, "isCorrect": None} for opt in question["options"]],
        },
    }


def filter_result(attempt: dict, released: bool, mode: ScoreReleaseMode) -> dict:
    """Trim a serialized attempt down to what a student may see."""
    if not released:
        return {
            **attempt,
            "gradeEarned": None,
            "answers": [_hide_answer_scoring(a) for a in attempt["answers"]],
        }
    if mode == ScoreReleaseMode.NONE:
        return {**attempt, "gradeEarned": None, "answers": None}
    if mode == ScoreReleaseMode.SCORE_ONLY:
        return {**attempt, "answers": None}
    if mode == ScoreReleaseMode.SCORE_WITH_WRONG:
        return {
            **attempt,
            "answers": [
                a for a in attempt["answers"] if (a["pointsAwarded"] or 0) < a["question"]["points"]
            ],
        }
    return attempt
