from decimal import Decimal
from typing import Any

from fastapi import HTTPException


class APIError(HTTPException):
    """HTTP error whose body carries fields beyond the message."""

    def __init__(self, status_code: int, detail: str, **extra: Any):
        super().__init__(status_code=status_code, detail=detail)
        self.extra = extra


class GradingError(Exception):
    """Business-rule violation raised inside the grading transaction."""

    code = "grading_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AnswerNotFoundError(GradingError):
    code = "answer_not_found"

    def __init__(self, answer_id: str):
        super().__init__(f"Answer {answer_id} not found in this attempt")
        self.answer_id = answer_id


class PointsExceedMaximumError(GradingError):
    code = "points_exceed_maximum"

    def __init__(self, answer_id: str, awarded: Decimal, maximum: Decimal):
        super().__init__(
            f"Points awarded ({_fmt(awarded)}) cannot exceed question points ({_fmt(maximum)})"
        )
        self.answer_id = answer_id
        self.awarded = awarded
        self.maximum = maximum


def _fmt(value: Decimal) -> str:
    normalized = value.normalize()
    # normalize() turns 10 into 1E+1
    return f"{normalized:f}"
