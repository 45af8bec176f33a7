from fastapi import APIRouter

from teamy.api.v1.endpoints import es_tests, health

api_router = APIRouter()
api_router.include_router(es_tests.router)
api_router.include_router(health.router)
