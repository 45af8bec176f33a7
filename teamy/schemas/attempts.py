from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class OptionOut(BaseModel):
    id: UUID
    label: str
    isCorrect: bool | None
    order: int


class QuestionOut(BaseModel):
    id: UUID
    promptMd: str
    type: str
    points: float
    explanation: str | None
    order: int
    options: list[OptionOut]


class AnswerOut(BaseModel):
    id: UUID
    questionId: UUID
    answerText: str | None
    selectedOptionIds: list[str]
    numericAnswer: float | None
    pointsAwarded: float | None
    gradedAt: datetime | None
    graderNote: str | None
    question: QuestionOut


class AttemptOut(BaseModel):
    id: UUID
    testId: UUID
    userId: UUID
    status: str
    startedAt: datetime | None
    submittedAt: datetime | None
    gradeEarned: float | None
    answers: list[AnswerOut]


class AttemptListResponse(BaseModel):
    attempts: list[AttemptOut]


class ResultAttemptOut(BaseModel):
    id: UUID
    testId: UUID
    userId: UUID
    status: str
    startedAt: datetime | None
    submittedAt: datetime | None
    gradeEarned: float | None
    answers: list[AnswerOut] | None


class ReleaseInfoOut(BaseModel):
    releaseScoresAt: datetime | None
    scoreReleaseMode: str
    scoresReleased: bool


class MyResultsResponse(BaseModel):
    attempt: ResultAttemptOut
    test: ReleaseInfoOut


class ReleaseScoresResponse(BaseModel):
    success: bool = True
    message: str
