"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from coworking.api.routes import reservations, host_reservations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(reservations.router)
api_router.include_router(host_reservations.router)
