"""
Meta Sync Service
Collects Meta ad insights and upserts them into the fact store.
"""
import asyncio
import logging
from datetime import date
from typing import Dict, Optional

from app.core.config import settings
from app.services.analytics.periods import yesterday
from app.services.fact_store import FactStore, FactStoreError
from app.services.meta.meta_api import MetaAPI, MetaAPIError, transform_insight

logger = logging.getLogger(__name__)


class MetaSyncService:
    """
    Fetch -> transform -> upsert loop for paid-social facts.
    """

    def __init__(self, store: FactStore, api: Optional[MetaAPI] = None, client_delay: Optional[float] = None):
        self.store = store
        self.api = api or MetaAPI()
        self.client_delay = settings.META_CLIENT_DELAY_SECONDS if client_delay is None else client_delay

    async def close(self):
        """Close API client"""
        await self.api.close()

    async def collect_client(
        self,
        client_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        ad_account_id: Optional[str] = None,
    ) -> int:
        """
        Collect one client's insights for ``start``..``end`` (default: yesterday).

        Returns the number of rows written.
        """
        start = start or yesterday()
        end = end or start
        if end < start:
            raise ValueError(f"end {end} is before start {start}")

        if ad_account_id is None:
            clients = await self.store.get_active_clients()
            match = next((c for c in clients if c["id"] == client_id), None)
            if match is None or not match["meta_ad_account_id"]:
                raise ValueError(f"client {client_id} has no active Meta ad account")
            ad_account_id = match["meta_ad_account_id"]

        logger.info(f"Collecting Meta data for client {client_id}: {start} ~ {end}")
        insights = await self.api.fetch_insights(ad_account_id, start, end)
        if not insights:
            logger.warning(f"No Meta insights returned for client {client_id}")
            return 0

        rows = []
        for insight in insights:
            try:
                rows.append(transform_insight(insight, client_id))
            except ValueError as e:
                logger.warning(f"Skipping malformed insight for client {client_id}: {e}")

        written = await self.store.upsert(rows)
        logger.info(f"Collected {written} Meta rows for client {client_id}")
        return written

    async def collect_all_clients(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[str, int]:
        """
        Collect every active client with a Meta ad account.

        A failing client is logged and counted; the loop moves on to the next one.
        """
        stats = {"success": 0, "failed": 0, "rows": 0}

        clients = [c for c in await self.store.get_active_clients() if c["meta_ad_account_id"]]
        logger.info(f"Starting Meta collection for {len(clients)} clients")

        for i, client in enumerate(clients):
            try:
                stats["rows"] += await self.collect_client(
                    client["id"], start, end, ad_account_id=client["meta_ad_account_id"]
                )
                stats["success"] += 1
            except (MetaAPIError, FactStoreError, ValueError) as e:
                logger.error(f"Meta collection failed for {client['client_name']}: {e}")
                stats["failed"] += 1

            if self.client_delay and i < len(clients) - 1:
                await asyncio.sleep(self.client_delay)

        logger.info(f"Meta collection complete: {stats}")
        return stats
