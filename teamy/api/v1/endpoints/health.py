from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from teamy.api.deps import db_session
from teamy.schemas.common import HealthStatus

router = APIRouter(tags=["health"])
REQUEST_COUNTER = Counter("teamy_api_health_checks_total", "Health check requests", ["probe"])


@router.get("/health/live", response_model=HealthStatus)
async def health_live():
    REQUEST_COUNTER.labels(probe="live").inc()
    return {"status": "ok"}


@router.get("/health/ready", response_model=HealthStatus)
async def health_ready(db: AsyncSession = Depends(db_session)):
    REQUEST_COUNTER.labels(probe="ready").inc()
    await db.execute(text("SELECT 1"))
    return {"status": "ready"}


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics():
    return PlainTextResponse(generate_latest().decode("utf-8"), media_type=CONTENT_TYPE_LATEST)
