"""Main API router that aggregates all route modules."""

from fastapi import APIRouter

from together.api import find_id, health, password_reset, verification

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(verification.router, prefix="/verification", tags=["verification"])
api_router.include_router(find_id.router, prefix="/find-id", tags=["recovery"])
api_router.include_router(password_reset.router, prefix="/password-reset", tags=["recovery"])
