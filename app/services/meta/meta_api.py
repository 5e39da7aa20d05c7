"""
Meta Graph API Client
Fetches ad-level daily insights broken down by publisher platform and device.
"""
import asyncio
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.models.enums import AdSource
from app.services.analytics.facts import FactRow, coerce_fact_row

logger = logging.getLogger(__name__)

INSIGHT_FIELDS = (
    "ad_id,ad_name,campaign_id,campaign_name,impressions,inline_link_clicks,"
    "spend,actions,video_avg_time_watched_actions,account_currency"
)
INSIGHT_BREAKDOWNS = "publisher_platform,device_platform"


class MetaAPIError(Exception):
    """Graph API returned an error status or an error payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MetaAPI:
    """
    Meta Graph API client for ad insights.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        page_delay: Optional[float] = None,
    ):
        self.access_token = access_token or settings.META_ACCESS_TOKEN
        self.page_delay = settings.META_PAGE_DELAY_SECONDS if page_delay is None else page_delay
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ========================================
    # Insights API
    # ========================================

    async def fetch_insights(
        self,
        ad_account_id: str,
        date_start: date,
        date_end: date,
    ) -> List[Dict[str, Any]]:
        """
        Fetch daily ad insights for a date range (inclusive).

        Follows ``paging.next`` until exhausted. Raises MetaAPIError on any
        non-2xx response or error payload.
        """
        if not self.access_token:
            raise MetaAPIError("META_ACCESS_TOKEN is not configured")

        # Ensure act_ prefix
        if not ad_account_id.startswith("act_"):
            ad_account_id = f"act_{ad_account_id}"

        url: Optional[str] = f"{settings.meta_api_url}/{ad_account_id}/insights"
        params: Optional[Dict[str, Any]] = {
            "access_token": self.access_token,
            "level": "ad",
            "time_range": json.dumps({"since": date_start.isoformat(), "until": date_end.isoformat()}),
            "fields": INSIGHT_FIELDS,
            "breakdowns": INSIGHT_BREAKDOWNS,
            "time_increment": 1,
            "limit": settings.META_INSIGHTS_PAGE_LIMIT,
        }

        logger.info(f"Fetching Meta insights for {ad_account_id}: {date_start} ~ {date_end}")
        all_insights: List[Dict[str, Any]] = []

        while url:
            try:
                response = await self.client.get(url, params=params)
            except httpx.HTTPError as e:
                logger.error(f"HTTP Error fetching insights: {e}")
                raise MetaAPIError(f"request failed: {e}") from e

            if response.status_code >= 400:
                logger.error(f"Meta API Error ({response.status_code}): {response.text}")
                raise MetaAPIError(
                    f"Meta API Error ({response.status_code}): {response.text}",
                    status_code=response.status_code,
                )

            data = response.json()
            if "error" in data:
                message = data["error"].get("message", "unknown error")
                logger.error(f"Meta API Error: {message}")
                raise MetaAPIError(message, status_code=response.status_code)

            page = data.get("data", [])
            all_insights.extend(page)
            logger.info(f"Fetched {len(page)} insights (Total: {len(all_insights)})")

            # Next URL contains all params
            url = data.get("paging", {}).get("next")
            params = None
            if url and self.page_delay:
                await asyncio.sleep(self.page_delay)

        return all_insights


# ========================================
# Transformation
# ========================================

def extract_action_value(actions: Optional[List[Dict[str, Any]]], action_type: str) -> Optional[str]:
    """Value of ``action_type`` in a Graph API actions list"""
    for action in actions or []:
        if action.get("action_type") == action_type:
            return action.get("value")
    return None


def transform_insight(insight: Dict[str, Any], client_id: str) -> FactRow:
    """One insight record -> a paid-social FactRow"""
    raw = {
        "client_id": client_id,
        "date": insight.get("date_start"),
        "ad_id": insight.get("ad_id"),
        "ad_name": insight.get("ad_name"),
        "campaign_id": insight.get("campaign_id"),
        "campaign_name": insight.get("campaign_name"),
        "platform": insight.get("publisher_platform"),
        "device": insight.get("device_platform"),
        "impressions": insight.get("impressions"),
        "clicks": insight.get("inline_link_clicks"),
        "spend": insight.get("spend"),
        "leads": extract_action_value(insight.get("actions"), "lead"),
        "video_views": extract_action_value(insight.get("actions"), "video_view"),
        "avg_watch_time": extract_action_value(insight.get("video_avg_time_watched_actions"), "video_view"),
    }
    return coerce_fact_row(raw, AdSource.PAID_SOCIAL)
