"""
Dependency injection for FastAPI
"""
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends

from app.services.analytics.service import AnalyticsService
from app.services.fact_store import FactStore, SqlFactStore
from app.services.meta.meta_sync import MetaSyncService


@lru_cache()
def get_fact_store() -> FactStore:
    """Process-wide fact store (overridden with an in-memory store in tests)"""
    return SqlFactStore()


def get_analytics_service(store: FactStore = Depends(get_fact_store)) -> AnalyticsService:
    """Report service bound to the configured exchange rate"""
    return AnalyticsService(store)


async def get_meta_sync_service(
    store: FactStore = Depends(get_fact_store),
) -> AsyncGenerator[MetaSyncService, None]:
    """Meta sync service; its HTTP client is closed after the request"""
    service = MetaSyncService(store)
    try:
        yield service
    finally:
        await service.close()
