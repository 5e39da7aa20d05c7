"""
Schemas for fact ingestion requests
"""
from typing import List, Optional
from datetime import date
from pydantic import BaseModel, Field


class NaverFactIn(BaseModel):
    """One parsed local-search keyword row (values are coerced on ingest)"""

    date: date
    keyword: str = Field(..., min_length=1)
    impressions: Optional[float] = None
    clicks: Optional[float] = None
    total_cost: Optional[float] = None
    avg_rank: Optional[float] = None


class NaverFactUploadRequest(BaseModel):
    """Batch of parsed keyword rows for one client"""

    client_id: Optional[str] = None
    client_slug: Optional[str] = None
    rows: List[NaverFactIn]


class MetaCollectRequest(BaseModel):
    """Trigger a Meta collection for one client (default: yesterday)"""

    client_id: Optional[str] = None
    client_slug: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class UpsertResult(BaseModel):
    """Rows written by an ingestion call"""

    client_id: str
    rows_written: int
    rows_skipped: int = 0
