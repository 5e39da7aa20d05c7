"""
Summary / KPI reducer.

Reduces the whole filtered row set to one headline summary. The grand-total
row shown under period tables is rendered from the same Summary, so the card
and the table footer can never disagree.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, Optional, Set

from app.services.analytics.facts import FactRow, validate_measures
from app.services.analytics.measures import MeasureSchema, Totals
from app.services.analytics.metrics import Number

# Bucket field -> summary field
SUMMARY_FIELD_NAMES = {
    "impressions": "total_impressions",
    "clicks": "total_clicks",
    "ctr": "avg_ctr",
    "spend": "total_spend",
    "spend_krw": "total_spend_krw",
    "cpc": "avg_cpc",
    "cpc_krw": "avg_cpc_krw",
    "leads": "total_leads",
    "cpl": "avg_cpl",
    "cpl_krw": "avg_cpl_krw",
    "video_views": "total_video_views",
}


@dataclass
class Summary:
    schema: MeasureSchema
    totals: Totals = field(default_factory=Totals)
    entity_keys: Dict[str, Set[str]] = field(default_factory=dict)
    dates: Set[date] = field(default_factory=set)

    @property
    def data_days(self) -> int:
        return len(self.dates)

    @property
    def start(self) -> Optional[date]:
        return min(self.dates) if self.dates else None

    @property
    def end(self) -> Optional[date]:
        return max(self.dates) if self.dates else None

    def unique_count(self, kind_name: str) -> int:
        return len(self.entity_keys.get(kind_name, ()))

    @property
    def unique_entity_count(self) -> int:
        return self.unique_count(self.schema.primary_entity.name)

    def date_range(self) -> Dict[str, Optional[str]]:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }


def summarize(rows: Iterable[FactRow], schema: MeasureSchema) -> Summary:
    """Sum every row once; ratios are derived from the grand totals on render."""
    summary = Summary(schema=schema, entity_keys={k.name: set() for k in schema.entity_kinds})
    for row in rows:
        validate_measures(row)
        summary.totals.add_row(row)
        summary.dates.add(row.date)
        for kind in schema.entity_kinds:
            key = kind.key_of(row)
            if key is not None:
                summary.entity_keys[kind.name].add(key)
    return summary


def render_summary(summary: Summary, rate: Number) -> Dict[str, Any]:
    schema = summary.schema
    out: Dict[str, Any] = {}
    for name, value in schema.render(summary.totals, rate).items():
        if name == schema.row_count_field:
            continue
        out[SUMMARY_FIELD_NAMES.get(name, name)] = value
    for kind in schema.entity_kinds:
        out[f"unique_{kind.name}"] = summary.unique_count(kind.name)
    out["unique_entity_count"] = summary.unique_entity_count
    out["data_days"] = summary.data_days
    out["date_range"] = summary.date_range()
    return out


def grand_total_row(summary: Summary, rate: Number, label: str = "Total") -> Dict[str, Any]:
    """Footer row with the same fields as a period row."""
    row: Dict[str, Any] = {"label": label}
    row.update(summary.schema.render(summary.totals, rate))
    row["data_days"] = summary.data_days
    row["date_range"] = summary.date_range()
    return row
