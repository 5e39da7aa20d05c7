"""
Collection tasks (run from the scheduler thread or scripts)
"""
import asyncio
import logging
from datetime import date
from typing import Dict, Optional

from app.services.fact_store import FactStore, SqlFactStore
from app.services.meta.meta_sync import MetaSyncService

logger = logging.getLogger(__name__)


async def collect_meta_all_async(
    start: Optional[date] = None,
    end: Optional[date] = None,
    store: Optional[FactStore] = None,
) -> Dict[str, int]:
    """Collect every active client for start..end (default: yesterday)"""
    service = MetaSyncService(store or SqlFactStore())
    try:
        return await service.collect_all_clients(start, end)
    finally:
        await service.close()


async def collect_meta_client_async(
    client_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    store: Optional[FactStore] = None,
) -> int:
    """Collect one client for start..end (default: yesterday)"""
    service = MetaSyncService(store or SqlFactStore())
    try:
        return await service.collect_client(client_id, start, end)
    finally:
        await service.close()


def collect_meta_all(start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, int]:
    """Blocking entry point; runs its own event loop (scheduler threads have none)"""
    return asyncio.run(collect_meta_all_async(start, end))
