"""
Measure schemas: what a bucket accumulates for a source and how it is rendered.

Every fold (daily, weekly, monthly, entity, summary) accumulates into the same
``Totals`` and renders through the source's ``MeasureSchema``, so the call sites
configure a source instead of re-implementing the arithmetic.
"""
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from app.models.enums import AdSource
from app.services.analytics.currency import convert_exact, to_target_currency
from app.services.analytics.facts import FactRow
from app.services.analytics.metrics import (
    CTR_PLACES,
    KRW_PLACES,
    RANK_PLACES,
    USD_PLACES,
    WATCH_TIME_PLACES,
    Number,
    percent,
    round_half_up,
    safe_ratio,
)


@dataclass
class Totals:
    """Full-precision accumulator of raw measures."""

    impressions: int = 0
    clicks: int = 0
    spend: Decimal = Decimal("0")
    leads: int = 0
    video_views: int = 0
    # sum(video_views_i * avg_watch_time_i); divided by video_views on render
    watch_time_total: Decimal = Decimal("0")
    # sum of per-row avg_rank and the number of rows behind it
    rank_sum: Decimal = Decimal("0")
    row_count: int = 0

    def add_row(self, row: FactRow) -> "Totals":
        self.impressions += row.impressions
        self.clicks += row.clicks
        self.spend += row.spend
        self.leads += row.leads
        self.video_views += row.video_views
        self.watch_time_total += row.video_views * row.avg_watch_time
        self.rank_sum += row.avg_rank
        self.row_count += 1
        return self

    def merge(self, other: "Totals") -> "Totals":
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    # Derived ratios (unrounded)
    @property
    def ctr(self) -> Decimal:
        return percent(self.clicks, self.impressions)

    @property
    def cpc(self) -> Decimal:
        return safe_ratio(self.spend, self.clicks)

    @property
    def cpl(self) -> Decimal:
        return safe_ratio(self.spend, self.leads)

    @property
    def avg_watch_time(self) -> Decimal:
        return safe_ratio(self.watch_time_total, self.video_views)

    @property
    def avg_rank(self) -> Decimal:
        # Unweighted mean of per-row ranks (not click-weighted)
        return safe_ratio(self.rank_sum, self.row_count)


@dataclass(frozen=True)
class EntityKind:
    """A non-temporal grouping dimension (campaign, ad, keyword)."""

    name: str                       # output array name: campaigns / ads / keywords
    key_attr: str                   # FactRow attribute holding the entity key
    label_attr: Optional[str] = None
    extra_attrs: Tuple[str, ...] = ()
    skip_keys: Tuple[str, ...] = ()  # keys that are not real entities

    def key_of(self, row: FactRow) -> Optional[str]:
        key = getattr(row, self.key_attr)
        if not key or key in self.skip_keys:
            return None
        return key


@dataclass(frozen=True)
class MeasureSchema:
    """Which measures a source carries and how its buckets render."""

    source: AdSource
    prefix: str                         # meta / naver, used in merged rows
    currency: str                       # native spend currency
    cost_field: str                     # output name of the native spend
    cpc_field: str                      # output name of cost per click
    tracks_leads: bool = False
    tracks_video: bool = False
    tracks_rank: bool = False
    row_count_field: Optional[str] = None
    # (Totals attribute, output field) pairs for period-over-period change
    change_fields: Tuple[Tuple[str, str], ...] = ()
    entity_kinds: Tuple[EntityKind, ...] = field(default_factory=tuple)

    @property
    def converts_currency(self) -> bool:
        return self.currency != "KRW"

    @property
    def cost_places(self) -> int:
        return USD_PLACES if self.currency == "USD" else KRW_PLACES

    @property
    def primary_entity(self) -> EntityKind:
        # The finest entity (ads / keywords) defines unique_entity_count
        return self.entity_kinds[-1]

    def entity_kind(self, name: str) -> EntityKind:
        for kind in self.entity_kinds:
            if kind.name == name:
                return kind
        raise KeyError(f"{self.source.value} has no entity kind {name!r}")

    def spend_krw_exact(self, totals: Totals, rate: Number) -> Decimal:
        """Native spend in KRW at full precision"""
        if self.converts_currency:
            return convert_exact(totals.spend, rate)
        return totals.spend

    def render(self, totals: Totals, rate: Number) -> Dict[str, Any]:
        """Rounded output fields for one bucket's totals."""
        out: Dict[str, Any] = {
            "impressions": totals.impressions,
            "clicks": totals.clicks,
            "ctr": round_half_up(totals.ctr, CTR_PLACES),
            self.cost_field: round_half_up(totals.spend, self.cost_places),
        }
        if self.converts_currency:
            out[f"{self.cost_field}_krw"] = to_target_currency(totals.spend, rate)
            out[self.cpc_field] = round_half_up(totals.cpc, self.cost_places)
            out[f"{self.cpc_field}_krw"] = to_target_currency(totals.cpc, rate)
        else:
            out[self.cpc_field] = round_half_up(totals.cpc, self.cost_places)
        if self.tracks_leads:
            out["leads"] = totals.leads
            out["cpl"] = round_half_up(totals.cpl, self.cost_places)
            if self.converts_currency:
                out["cpl_krw"] = to_target_currency(totals.cpl, rate)
        if self.tracks_video:
            out["video_views"] = totals.video_views
            out["avg_watch_time"] = round_half_up(totals.avg_watch_time, WATCH_TIME_PLACES)
        if self.tracks_rank:
            out["avg_rank"] = round_half_up(totals.avg_rank, RANK_PLACES)
        if self.row_count_field:
            out[self.row_count_field] = totals.row_count
        return out


PAID_SOCIAL = MeasureSchema(
    source=AdSource.PAID_SOCIAL,
    prefix="meta",
    currency="USD",
    cost_field="spend",
    cpc_field="cpc",
    tracks_leads=True,
    tracks_video=True,
    change_fields=(
        ("impressions", "impressions_change"),
        ("clicks", "clicks_change"),
        ("spend", "spend_change"),
        ("leads", "leads_change"),
    ),
    entity_kinds=(
        EntityKind(
            name="campaigns",
            key_attr="campaign_id",
            label_attr="campaign_name",
            skip_keys=("unknown",),
        ),
        EntityKind(
            name="ads",
            key_attr="ad_id",
            label_attr="ad_name",
            extra_attrs=("campaign_name",),
        ),
    ),
)

LOCAL_SEARCH = MeasureSchema(
    source=AdSource.LOCAL_SEARCH,
    prefix="naver",
    currency="KRW",
    cost_field="total_cost",
    cpc_field="avg_cpc",
    tracks_rank=True,
    row_count_field="keyword_count",
    change_fields=(
        ("impressions", "impressions_change"),
        ("clicks", "clicks_change"),
        ("spend", "cost_change"),
    ),
    entity_kinds=(
        EntityKind(name="keywords", key_attr="keyword"),
    ),
)

SCHEMAS = {
    AdSource.PAID_SOCIAL: PAID_SOCIAL,
    AdSource.LOCAL_SEARCH: LOCAL_SEARCH,
}
