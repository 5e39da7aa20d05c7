"""
Comparison builder.

Channel A vs channel B over the same client/date range, and the current window
vs its previous window.
"""
from decimal import Decimal
from typing import Any, Callable, Dict, List, Tuple

from app.services.analytics.measures import MeasureSchema, Totals
from app.services.analytics.merge import Channel, CombinedTotals
from app.services.analytics.metrics import (
    CHANGE_PLACES,
    CTR_PLACES,
    KRW_PLACES,
    RATIO_PLACES,
    Number,
    pct_change,
    round_half_up,
    safe_ratio,
)

MetricGetter = Callable[[MeasureSchema, Totals, Number], Decimal]


def _spend(schema: MeasureSchema, totals: Totals, rate: Number) -> Decimal:
    return schema.spend_krw_exact(totals, rate)


def _impressions(schema: MeasureSchema, totals: Totals, rate: Number) -> Decimal:
    return Decimal(totals.impressions)


def _clicks(schema: MeasureSchema, totals: Totals, rate: Number) -> Decimal:
    return Decimal(totals.clicks)


def _ctr(schema: MeasureSchema, totals: Totals, rate: Number) -> Decimal:
    return totals.ctr


def _cpc(schema: MeasureSchema, totals: Totals, rate: Number) -> Decimal:
    return safe_ratio(schema.spend_krw_exact(totals, rate), totals.clicks)


# Display order; money metrics are compared in KRW
COMPARISON_METRICS: Tuple[Tuple[str, MetricGetter, int], ...] = (
    ("spend", _spend, KRW_PLACES),
    ("impressions", _impressions, 0),
    ("clicks", _clicks, 0),
    ("ctr", _ctr, CTR_PLACES),
    ("cpc", _cpc, KRW_PLACES),
)


def build_comparison(a: Channel, b: Channel, rate: Number) -> List[Dict[str, Any]]:
    """
    One record per metric: value_a, value_b, difference = A - B and
    difference_percent = (A - B) / B * 100 (0 when B is 0).

    Differences are taken on unrounded values and rounded at the metric's own
    precision.
    """
    records = []
    for metric, getter, places in COMPARISON_METRICS:
        value_a = getter(a.schema, a.summary.totals, rate)
        value_b = getter(b.schema, b.summary.totals, rate)
        difference = value_a - value_b
        records.append({
            "metric": metric,
            "value_a": round_half_up(value_a, places),
            "value_b": round_half_up(value_b, places),
            "difference": round_half_up(difference, places),
            "difference_percent": round_half_up(safe_ratio(difference, value_b) * 100, RATIO_PLACES),
        })
    return records


def period_changes(current: CombinedTotals, previous: CombinedTotals) -> Dict[str, float]:
    """Percent change of the combined KPIs against the previous window."""
    pairs = (
        ("total_spend_percent", current.spend_krw, previous.spend_krw),
        ("total_impressions_percent", current.impressions, previous.impressions),
        ("total_clicks_percent", current.clicks, previous.clicks),
        ("avg_ctr_percent", current.ctr, previous.ctr),
        ("avg_cpc_percent", current.cpc_krw, previous.cpc_krw),
    )
    return {name: round_half_up(pct_change(cur, prev), CHANGE_PLACES) for name, cur, prev in pairs}
