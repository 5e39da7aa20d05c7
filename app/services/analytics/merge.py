"""
Multi-source merge.

Joins two independently rolled-up channels on date. A date present in only one
channel is zero-filled for the other; no date is ever dropped.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple

from app.services.analytics.measures import MeasureSchema, Totals
from app.services.analytics.metrics import (
    CTR_PLACES,
    KRW_PLACES,
    RANK_PLACES,
    RATIO_PLACES,
    Number,
    percent,
    round_half_up,
    safe_ratio,
)
from app.services.analytics.rollup import DailyBucket
from app.services.analytics.summary import Summary


class Channel(NamedTuple):
    """One source's rollup inputs for a merged report."""

    schema: MeasureSchema
    daily: List[DailyBucket]
    summary: Summary


@dataclass
class CombinedTotals:
    """Cross-channel totals with spend normalized to KRW at full precision."""

    impressions: int = 0
    clicks: int = 0
    spend_krw: Decimal = Decimal("0")

    @property
    def ctr(self) -> Decimal:
        return percent(self.clicks, self.impressions)

    @property
    def cpc_krw(self) -> Decimal:
        return safe_ratio(self.spend_krw, self.clicks)


def combine_totals(a: Channel, b: Channel, rate: Number) -> CombinedTotals:
    combined = CombinedTotals()
    for channel in (a, b):
        totals = channel.summary.totals
        combined.impressions += totals.impressions
        combined.clicks += totals.clicks
        combined.spend_krw += channel.schema.spend_krw_exact(totals, rate)
    return combined


def _channel_fields(schema: MeasureSchema, totals: Totals, rate: Number) -> Dict[str, Any]:
    p = schema.prefix
    out: Dict[str, Any] = {
        f"{p}_impressions": totals.impressions,
        f"{p}_clicks": totals.clicks,
        f"{p}_spend": round_half_up(totals.spend, schema.cost_places),
        f"{p}_spend_krw": round_half_up(schema.spend_krw_exact(totals, rate), KRW_PLACES),
    }
    if schema.tracks_leads:
        out[f"{p}_leads"] = totals.leads
    return out


def merge_daily(a: Channel, b: Channel, rate: Number) -> List[Dict[str, Any]]:
    """
    One record per date in the union of both channels' dates, sorted by date.

    The combined spend is summed in KRW at full precision and rounded once, so
    it can differ by one unit from the sum of the two rounded channel values.
    """
    a_days: Dict[date, DailyBucket] = {d.date: d for d in a.daily}
    b_days: Dict[date, DailyBucket] = {d.date: d for d in b.daily}

    merged = []
    for day in sorted(set(a_days) | set(b_days)):
        a_totals = a_days[day].totals if day in a_days else Totals()
        b_totals = b_days[day].totals if day in b_days else Totals()
        record: Dict[str, Any] = {"date": day.isoformat()}
        record.update(_channel_fields(a.schema, a_totals, rate))
        record.update(_channel_fields(b.schema, b_totals, rate))
        spend_krw = a.schema.spend_krw_exact(a_totals, rate) + b.schema.spend_krw_exact(b_totals, rate)
        record["total_impressions"] = a_totals.impressions + b_totals.impressions
        record["total_clicks"] = a_totals.clicks + b_totals.clicks
        record["total_spend_krw"] = round_half_up(spend_krw, KRW_PLACES)
        merged.append(record)
    return merged


def channel_ratio(a: Channel, b: Channel, rate: Number) -> Dict[str, float]:
    """Share of combined KRW spend per channel (0 when nothing was spent)."""
    a_krw = a.schema.spend_krw_exact(a.summary.totals, rate)
    b_krw = b.schema.spend_krw_exact(b.summary.totals, rate)
    total = a_krw + b_krw
    return {
        f"{a.schema.prefix}_percent": round_half_up(percent(a_krw, total), RATIO_PLACES),
        f"{b.schema.prefix}_percent": round_half_up(percent(b_krw, total), RATIO_PLACES),
    }


def integrated_summary(a: Channel, b: Channel, rate: Number) -> Dict[str, Any]:
    """Unified KPI card: combined totals followed by each channel's headline figures."""
    combined = combine_totals(a, b, rate)
    out: Dict[str, Any] = {
        "total_spend_krw": round_half_up(combined.spend_krw, KRW_PLACES),
        "total_impressions": combined.impressions,
        "total_clicks": combined.clicks,
        "avg_ctr": round_half_up(combined.ctr, CTR_PLACES),
        "avg_cpc_krw": round_half_up(combined.cpc_krw, KRW_PLACES),
    }
    for channel in (a, b):
        schema = channel.schema
        totals = channel.summary.totals
        p = schema.prefix
        out.update(_channel_fields(schema, totals, rate))
        if schema.tracks_leads:
            out[f"{p}_cpl"] = round_half_up(totals.cpl, schema.cost_places)
            out[f"{p}_cpl_krw"] = round_half_up(safe_ratio(schema.spend_krw_exact(totals, rate), totals.leads), KRW_PLACES)
        if schema.tracks_rank:
            out[f"{p}_avg_rank"] = round_half_up(totals.avg_rank, RANK_PLACES)
    out["channel_ratio"] = channel_ratio(a, b, rate)
    return out
