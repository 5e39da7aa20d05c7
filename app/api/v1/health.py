"""
Health check endpoints
"""
from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.deps import get_fact_store
from app.services.fact_store import FactStore, FactStoreError

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    """Process is up; reports the settings every report depends on"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "exchange_rate": settings.USD_TO_KRW_RATE,
        "scheduler_enabled": settings.SCHEDULER_ENABLED,
    }


@router.get("/health/db")
async def fact_store_health(store: FactStore = Depends(get_fact_store)):
    """Fact store round-trip (SELECT 1 for the SQL store)"""
    try:
        await store.ping()
    except FactStoreError as e:
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}
    return {"status": "healthy", "database": "connected"}
