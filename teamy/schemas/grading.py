from pydantic import BaseModel, Field

from teamy.schemas.attempts import AttemptOut


class GradeIn(BaseModel):
    answerId: str
    pointsAwarded: float = Field(ge=0, allow_inf_nan=False, strict=True)
    graderNote: str | None = None


class GradeAttemptRequest(BaseModel):
    grades: list[GradeIn]


class GradeAttemptResponse(BaseModel):
    success: bool = True
    attempt: AttemptOut
