"""
Analytics Service
Reads fact rows from the store and assembles the dashboard reports.

Every report is recomputed from raw rows per request. Store reads complete
before any folding starts; store errors propagate untouched.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

from app.core.config import settings
from app.models.enums import AdSource, MetaView, NaverView
from app.services.analytics.comparison import build_comparison, period_changes
from app.services.analytics.facts import FactRow
from app.services.analytics.measures import LOCAL_SEARCH, PAID_SOCIAL, MeasureSchema
from app.services.analytics.merge import Channel, combine_totals, integrated_summary, merge_daily
from app.services.analytics.metrics import Number
from app.services.analytics.narrative import build_narrative_context
from app.services.analytics.periods import previous_period
from app.services.analytics.rollup import (
    EntityBucket,
    fold_daily,
    fold_entities,
    fold_monthly,
    fold_weekly,
    render_monthly,
    render_weekly,
)
from app.services.analytics.summary import grand_total_row, render_summary, summarize
from app.services.fact_store import FactStore

logger = logging.getLogger(__name__)

View = Union[MetaView, NaverView, str]


class ClientNotFoundError(LookupError):
    """No client matches the given slug."""


def build_source_report(
    rows: List[FactRow],
    schema: MeasureSchema,
    rate: Number,
    view: View = "all",
) -> Dict[str, Any]:
    """
    Daily/weekly/monthly/entity arrays plus summary and grand-total row.

    Arrays outside ``view`` are returned empty so the response shape never
    changes; summary and total_row are always filled.
    """
    view = getattr(view, "value", view)

    def wants(name: str) -> bool:
        return view in ("all", name)

    report: Dict[str, Any] = {"daily": [], "weekly": [], "monthly": []}
    for kind in schema.entity_kinds:
        report[kind.name] = []

    daily = fold_daily(rows)
    if wants("daily"):
        report["daily"] = [d.render(schema, rate) for d in daily]
    if wants("weekly") or wants("monthly"):
        weekly = fold_weekly(daily)
        if wants("weekly"):
            report["weekly"] = render_weekly(weekly, schema, rate)
        if wants("monthly"):
            report["monthly"] = render_monthly(fold_monthly(daily), weekly, schema, rate)
    for kind in schema.entity_kinds:
        if wants(kind.name):
            report[kind.name] = [e.render(schema, rate) for e in fold_entities(rows, kind)]

    summary = summarize(rows, schema)
    report["summary"] = render_summary(summary, rate)
    report["total_row"] = grand_total_row(summary, rate)
    return report


def _period(date_from: Optional[date], date_to: Optional[date], dates: List[date]) -> Dict[str, Optional[str]]:
    """Requested window, falling back to the data's own range"""
    start = date_from or (min(dates) if dates else None)
    end = date_to or (max(dates) if dates else None)
    return {
        "start": start.isoformat() if start else None,
        "end": end.isoformat() if end else None,
    }


class AnalyticsService:
    """
    Report assembly over a FactStore.
    """

    def __init__(self, store: FactStore, rate: Optional[Number] = None):
        self.store = store
        self.rate = settings.USD_TO_KRW_RATE if rate is None else rate

    async def resolve_client_id(self, client_id: Optional[str] = None, client_slug: Optional[str] = None) -> str:
        """client_id wins; otherwise look the slug up"""
        if client_id:
            return client_id
        if not client_slug:
            raise ValueError("client_id or client_slug is required")
        resolved = await self.store.get_client_id_by_slug(client_slug)
        if resolved is None:
            raise ClientNotFoundError(f"Unknown client slug: {client_slug}")
        return resolved

    async def _load(
        self,
        client_id: str,
        schema: MeasureSchema,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> Tuple[List[FactRow], Channel]:
        rows = await self.store.query(client_id, schema.source, date_from, date_to)
        channel = Channel(schema=schema, daily=fold_daily(rows), summary=summarize(rows, schema))
        return rows, channel

    # ========================================
    # Single-source reports
    # ========================================

    async def paid_social_report(
        self,
        client_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        view: View = MetaView.ALL,
    ) -> Dict[str, Any]:
        rows = await self.store.query(client_id, AdSource.PAID_SOCIAL, date_from, date_to)
        report = build_source_report(rows, PAID_SOCIAL, self.rate, view)
        report["period"] = _period(date_from, date_to, [r.date for r in rows])
        report["exchange_rate"] = float(self.rate)
        return report

    async def local_search_report(
        self,
        client_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        view: View = NaverView.ALL,
    ) -> Dict[str, Any]:
        rows = await self.store.query(client_id, AdSource.LOCAL_SEARCH, date_from, date_to)
        report = build_source_report(rows, LOCAL_SEARCH, self.rate, view)
        report["period"] = _period(date_from, date_to, [r.date for r in rows])
        return report

    async def keyword_detail(
        self,
        client_id: str,
        keyword: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Daily trend of one keyword with its own entity summary"""
        keyword = keyword.strip()
        rows = await self.store.query(client_id, AdSource.LOCAL_SEARCH, date_from, date_to, keyword=keyword)
        kind = LOCAL_SEARCH.entity_kind("keywords")

        trend = []
        for day in fold_daily(rows):
            record = {"keyword": keyword}
            record.update(day.render(LOCAL_SEARCH, self.rate))
            trend.append(record)

        entities = fold_entities(rows, kind)
        bucket = entities[0] if entities else EntityBucket(kind=kind, key=keyword, label=keyword)
        return {
            "keyword": keyword,
            "summary": bucket.render(LOCAL_SEARCH, self.rate),
            "trend": trend,
        }

    async def keyword_list(
        self,
        client_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 50,
    ) -> Dict[str, Any]:
        """Keywords ranked by cost; ``total`` counts all keywords before the limit"""
        rows = await self.store.query(client_id, AdSource.LOCAL_SEARCH, date_from, date_to)
        entities = fold_entities(rows, LOCAL_SEARCH.entity_kind("keywords"))
        return {
            "keywords": [e.render(LOCAL_SEARCH, self.rate) for e in entities[:limit]],
            "total": len(entities),
        }

    # ========================================
    # Integrated report
    # ========================================

    async def integrated_report(
        self,
        client_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        compare_previous: bool = False,
    ) -> Dict[str, Any]:
        paid_rows, paid = await self._load(client_id, PAID_SOCIAL, date_from, date_to)
        local_rows, local = await self._load(client_id, LOCAL_SEARCH, date_from, date_to)
        daily_combined = merge_daily(paid, local, self.rate)

        dates = [r.date for r in paid_rows] + [r.date for r in local_rows]
        period = _period(date_from, date_to, dates)

        report: Dict[str, Any] = {
            "summary": integrated_summary(paid, local, self.rate),
            PAID_SOCIAL.prefix: build_source_report(paid_rows, PAID_SOCIAL, self.rate),
            LOCAL_SEARCH.prefix: build_source_report(local_rows, LOCAL_SEARCH, self.rate),
            "daily_combined": daily_combined,
            "comparison": build_comparison(paid, local, self.rate),
            "period": period,
            "exchange_rate": float(self.rate),
        }

        if compare_previous:
            report["previous"] = None
            report["changes"] = None
            if period["start"] and period["end"]:
                prev_start, prev_end = previous_period(
                    date.fromisoformat(period["start"]), date.fromisoformat(period["end"])
                )
                _, prev_paid = await self._load(client_id, PAID_SOCIAL, prev_start, prev_end)
                _, prev_local = await self._load(client_id, LOCAL_SEARCH, prev_start, prev_end)
                report["previous"] = {
                    "period": {"start": prev_start.isoformat(), "end": prev_end.isoformat()},
                    "summary": integrated_summary(prev_paid, prev_local, self.rate),
                    "daily_combined": merge_daily(prev_paid, prev_local, self.rate),
                }
                report["changes"] = period_changes(
                    combine_totals(paid, local, self.rate),
                    combine_totals(prev_paid, prev_local, self.rate),
                )
            else:
                logger.info(f"No period to compare for client {client_id} (no dates and no data)")

        return report

    async def narrative_context(
        self,
        client_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        top_n: Optional[int] = None,
        client_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        paid_rows, paid = await self._load(client_id, PAID_SOCIAL, date_from, date_to)
        local_rows, local = await self._load(client_id, LOCAL_SEARCH, date_from, date_to)
        if client_name is None:
            clients = await self.store.get_active_clients()
            client_name = next((c["client_name"] for c in clients if c["id"] == client_id), None)
        context = build_narrative_context(
            paid,
            fold_entities(paid_rows, PAID_SOCIAL.entity_kind("campaigns")),
            local,
            fold_entities(local_rows, LOCAL_SEARCH.entity_kind("keywords")),
            self.rate,
            top_n or settings.NARRATIVE_TOP_N,
            client_name=client_name,
        )
        context["period"] = _period(date_from, date_to, [r.date for r in paid_rows + local_rows])
        return context
