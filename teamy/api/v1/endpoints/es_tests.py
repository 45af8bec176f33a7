from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from teamy.api.deps import db_session, get_current_identity
from teamy.core.config import get_settings
from teamy.core.ratelimit import rate_limit
from teamy.core.security import Identity
from teamy.schemas.attempts import AttemptListResponse, MyResultsResponse, ReleaseScoresResponse
from teamy.schemas.common import ErrorOut
from teamy.schemas.grading import GradeAttemptRequest, GradeAttemptResponse
from teamy.services.attempt_service import AttemptService
from teamy.services.grading_service import GradingService

router = APIRouter(prefix="/es/tests", tags=["es-tests"])

ERRORS = {code: {"model": ErrorOut} for code in (400, 401, 403, 404)}

GRADE_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": GradeAttemptRequest.model_json_schema()}},
    }
}


async def read_grade_request(request: Request) -> GradeAttemptRequest:
    # Read after the identity dependency so 401 precedes 400.
    try:
        return GradeAttemptRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False)]
        ) from exc


@router.patch(
    "/{test_id}/attempts/{attempt_id}/grade",
    response_model=GradeAttemptResponse,
    responses={**ERRORS, 409: {"model": ErrorOut}, 500: {"model": ErrorOut}},
    openapi_extra=GRADE_BODY,
)
async def grade_attempt(
    test_id: str,
    attempt_id: str,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(db_session),
):
    payload = await read_grade_request(request)
    settings = get_settings()
    rate_limit(
        key=f"grade:{identity.id}",
        limit=settings.grade_rate_limit_per_minute,
        window_seconds=60,
    )
    service = GradingService(db)
    return await service.grade_attempt(
        test_id=test_id, attempt_id=attempt_id, identity=identity, grades=payload.grades
    )


@router.get("/{test_id}/attempts", response_model=AttemptListResponse, responses=ERRORS)
async def list_attempts(
    test_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(db_session),
):
    service = AttemptService(db)
    return await service.list_attempts(test_id, identity)


@router.post("/{test_id}/release-scores", response_model=ReleaseScoresResponse, responses=ERRORS)
async def release_scores(
    test_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(db_session),
):
    service = AttemptService(db)
    return await service.release_scores(test_id, identity)


@router.get("/{test_id}/my-results", response_model=MyResultsResponse, responses=ERRORS)
async def my_results(
    test_id: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(db_session),
):
    service = AttemptService(db)
    return await service.my_results(test_id, identity)
