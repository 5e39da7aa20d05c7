"""
API v1 routes
"""
from fastapi import APIRouter

from app.api.v1 import analytics, facts, health

api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(analytics.router)
api_router.include_router(facts.router)

# Health routes (no prefix)
health_router = health.router
