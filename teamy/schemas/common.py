from typing import Any

from pydantic import BaseModel


class ErrorOut(BaseModel):
    error: str
    code: str | None = None
    details: list[dict[str, Any]] | None = None


class HealthStatus(BaseModel):
    status: str
