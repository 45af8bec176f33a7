from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from teamy.core.constants import AttemptStatus
from teamy.core.errors import PointsExceedMaximumError
from teamy.models.domain import ESTestAttemptAnswer

ZERO = Decimal("0")


@dataclass(frozen=True)
class AttemptTally:
    earned: Decimal
    graded: int
    total: int

    @property
    def fully_graded(self) -> bool:
        return self.graded == self.total


def to_points(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 0.1 stays 0.1 rather than its binary expansion
    return Decimal(str(value))


def check_award(answer_id: str, awarded: Decimal, maximum: Decimal) -> None:
    """Reject over-awards outright; they are never clamped."""
    if awarded > maximum:
        raise PointsExceedMaximumError(answer_id, awarded, maximum)


def tally_answers(answers: Iterable[ESTestAttemptAnswer]) -> AttemptTally:
    earned = ZERO
    graded = 0
    total = 0
    for answer in answers:
        total += 1
        if answer.graded_at is None:
            continue
        graded += 1
        if answer.points_awarded is not None:
            earned += to_points(answer.points_awarded)
    return AttemptTally(earned=earned, graded=graded, total=total)


def status_for_tally(tally: AttemptTally) -> AttemptStatus:
    return AttemptStatus.GRADED if tally.fully_graded else AttemptStatus.SUBMITTED
