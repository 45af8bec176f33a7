from enum import StrEnum


class Division(StrEnum):
    B = "B"
    C = "C"


class StaffRole(StrEnum):
    EVENT_SUPERVISOR = "EVENT_SUPERVISOR"
    TOURNAMENT_DIRECTOR = "TOURNAMENT_DIRECTOR"


class StaffStatus(StrEnum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class HostingRequestStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TestStatus(StrEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"


class QuestionType(StrEnum):
    MCQ_SINGLE = "MCQ_SINGLE"
    MCQ_MULTI = "MCQ_MULTI"
    SHORT_TEXT = "SHORT_TEXT"
    LONG_TEXT = "LONG_TEXT"
    NUMERIC = "NUMERIC"
    TRUE_FALSE = "TRUE_FALSE"
    TEXT_BLOCK = "TEXT_BLOCK"


class AttemptStatus(StrEnum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    GRADED = "GRADED"


class ScoreReleaseMode(StrEnum):
    NONE = "NONE"
    SCORE_ONLY = "SCORE_ONLY"
    SCORE_WITH_WRONG = "SCORE_WITH_WRONG"
    FULL_TEST = "FULL_TEST"


RESULT_VISIBLE_STATUSES = (AttemptStatus.SUBMITTED, AttemptStatus.GRADED)

AUDIT_ACTION_ATTEMPT_GRADED = "es_attempt_graded"
AUDIT_ACTION_SCORES_RELEASED = "es_scores_released"
