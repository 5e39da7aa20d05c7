"""
Fact rows and the ingestion boundary that produces them.

A FactRow is one measured observation for one entity on one date. Rows are
immutable once built; the aggregator only reads them.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from app.models.enums import AdSource

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

MEASURE_FIELDS = ("impressions", "clicks", "spend", "leads", "video_views", "avg_watch_time", "avg_rank")


class InvalidMeasureError(ValueError):
    """A fact row carries a negative measure (upstream data-quality bug)."""


@dataclass(frozen=True)
class FactRow:
    """One daily fact for one ad (paid social) or keyword (local search)."""

    client_id: str
    date: date
    source: AdSource

    # Paid-social dimensions
    ad_id: Optional[str] = None
    ad_name: Optional[str] = None
    campaign_id: Optional[str] = None
    campaign_name: Optional[str] = None
    platform: Optional[str] = None
    device: Optional[str] = None

    # Local-search dimension
    keyword: Optional[str] = None

    # Measures; spend is in the source's native currency (USD / KRW)
    impressions: int = 0
    clicks: int = 0
    spend: Decimal = Decimal("0")
    leads: int = 0
    video_views: int = 0
    avg_watch_time: Decimal = Decimal("0")
    avg_rank: Decimal = Decimal("0")

    @property
    def natural_key(self) -> Tuple:
        """Upsert conflict target for the row's source."""
        if self.source == AdSource.LOCAL_SEARCH:
            return (self.client_id, self.date, self.keyword)
        return (self.client_id, self.date, self.ad_id, self.platform, self.device)


def validate_measures(row: FactRow) -> FactRow:
    """Raise InvalidMeasureError if any measure of ``row`` is negative."""
    for name in MEASURE_FIELDS:
        value = getattr(row, name)
        if value < 0:
            logger.error(
                f"Negative {name}={value} in {row.source.value} fact "
                f"(client={row.client_id}, date={row.date}, key={row.natural_key})"
            )
            raise InvalidMeasureError(f"negative {name} ({value}) for {row.natural_key}")
    return row


# ========================================
# Ingestion coercion
# ========================================

def to_int(value: Any) -> int:
    """Coerce a raw measure to int; null/non-numeric become 0"""
    if value is None or value == "":
        return 0
    try:
        return int(Decimal(str(value)))
    except (InvalidOperation, ValueError, OverflowError):
        return 0


def to_decimal(value: Any) -> Decimal:
    """Coerce a raw measure to Decimal; null/non-numeric become 0"""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def to_date(value: Any) -> date:
    """Parse YYYY-MM-DD strings (or pass dates through)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def coerce_fact_row(raw: Dict[str, Any], source: AdSource) -> FactRow:
    """
    Build a FactRow from a loosely typed record (API payload, DB row, upload).

    Measures that are missing, null or non-numeric are coerced to 0 here so the
    aggregator never sees malformed numbers. Negative values pass through and are
    rejected by the aggregator.
    """
    common = dict(
        client_id=str(raw["client_id"]),
        date=to_date(raw["date"]),
        source=source,
        impressions=to_int(raw.get("impressions")),
        clicks=to_int(raw.get("clicks")),
    )

    if source == AdSource.LOCAL_SEARCH:
        keyword = str(raw.get("keyword") or "").strip()
        if not keyword:
            raise ValueError("local-search fact requires a keyword")
        # Cost arrives as total_cost from the Naver export; spend is accepted as an alias
        cost = raw.get("total_cost")
        if cost is None:
            cost = raw.get("spend")
        return FactRow(
            keyword=keyword,
            spend=to_decimal(cost),
            avg_rank=to_decimal(raw.get("avg_rank")),
            **common,
        )

    ad_id = raw.get("ad_id")
    if not ad_id:
        raise ValueError("paid-social fact requires an ad_id")
    return FactRow(
        ad_id=str(ad_id),
        ad_name=raw.get("ad_name"),
        campaign_id=raw.get("campaign_id"),
        campaign_name=raw.get("campaign_name"),
        platform=raw.get("platform") or UNKNOWN,
        device=raw.get("device") or UNKNOWN,
        spend=to_decimal(raw.get("spend")),
        leads=to_int(raw.get("leads")),
        video_views=to_int(raw.get("video_views")),
        avg_watch_time=to_decimal(raw.get("avg_watch_time")),
        **common,
    )
