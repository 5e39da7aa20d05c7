"""
Shared fixtures. The environment is set before any app import so the
engines are created against in-memory SQLite instead of PostgreSQL.
"""
import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("USD_TO_KRW_RATE", "1500")

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from app.models.enums import AdSource
from app.services.analytics.facts import FactRow
from app.services.fact_store import InMemoryFactStore

RATE = 1500
CLIENT_ID = "client-1"


def paid(day, impressions=0, clicks=0, spend="0", ad_id="ad-1", campaign_id="cmp-1", **kw) -> FactRow:
    """Paid-social fact row; ``day`` is a date or 'YYYY-MM-DD'"""
    return FactRow(
        client_id=kw.pop("client_id", CLIENT_ID),
        date=date.fromisoformat(day) if isinstance(day, str) else day,
        source=AdSource.PAID_SOCIAL,
        ad_id=ad_id,
        ad_name=kw.pop("ad_name", f"{ad_id} name"),
        campaign_id=campaign_id,
        campaign_name=kw.pop("campaign_name", f"{campaign_id} name"),
        platform=kw.pop("platform", "facebook"),
        device=kw.pop("device", "mobile"),
        impressions=impressions,
        clicks=clicks,
        spend=Decimal(str(spend)),
        leads=kw.pop("leads", 0),
        video_views=kw.pop("video_views", 0),
        avg_watch_time=Decimal(str(kw.pop("avg_watch_time", "0"))),
    )


def local(day, keyword="pizza", impressions=0, clicks=0, cost="0", rank="0", **kw) -> FactRow:
    """Local-search fact row; ``cost`` is KRW"""
    return FactRow(
        client_id=kw.pop("client_id", CLIENT_ID),
        date=date.fromisoformat(day) if isinstance(day, str) else day,
        source=AdSource.LOCAL_SEARCH,
        keyword=keyword,
        impressions=impressions,
        clicks=clicks,
        spend=Decimal(str(cost)),
        avg_rank=Decimal(str(rank)),
    )


@pytest.fixture
def scenario_rows():
    """Three paid-social rows spanning two Monday-start weeks"""
    return [
        paid("2024-03-04", impressions=100, clicks=5, spend="10.00"),
        paid("2024-03-05", impressions=200, clicks=20, spend="15.00"),
        paid("2024-03-11", impressions=50, clicks=1, spend="5.00"),
    ]


@pytest.fixture
def memory_store():
    store = InMemoryFactStore(page_size=2, batch_size=2)
    store.add_client(CLIENT_ID, "acme", client_name="Acme Clinic", meta_ad_account_id="act_111")
    return store
