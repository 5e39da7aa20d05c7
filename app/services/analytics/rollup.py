"""
Rollup aggregator.

Folds fact rows into daily buckets, daily buckets into weekly and monthly
buckets, and fact rows into entity buckets. Buckets keep raw full-precision
totals; ratios and rounding happen only when a bucket is rendered.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set

from app.services.analytics.facts import FactRow, validate_measures
from app.services.analytics.measures import EntityKind, MeasureSchema, Totals
from app.services.analytics.metrics import (
    CHANGE_PLACES,
    CTR_PLACES,
    Number,
    pct_change,
    round_half_up,
    safe_ratio,
)
from app.services.analytics.periods import (
    WEEKDAY_NAMES,
    month_bucket,
    month_label,
    week_end,
    week_label,
    week_start,
)


# ========================================
# Buckets
# ========================================

@dataclass
class DailyBucket:
    date: date
    totals: Totals = field(default_factory=Totals)

    def render(self, schema: MeasureSchema, rate: Number) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), **schema.render(self.totals, rate)}


@dataclass
class PeriodBucket:
    """A weekly or monthly bucket; ``changes`` are filled by apply_changes."""

    key: str
    label: str
    start: date
    end: date
    totals: Totals = field(default_factory=Totals)
    days: List[DailyBucket] = field(default_factory=list)
    changes: Dict[str, Decimal] = field(default_factory=dict)


@dataclass
class EntityBucket:
    kind: EntityKind
    key: str
    label: str
    extras: Dict[str, Any] = field(default_factory=dict)
    totals: Totals = field(default_factory=Totals)
    dates: Set[date] = field(default_factory=set)

    @property
    def days_count(self) -> int:
        return len(self.dates)

    @property
    def first_date(self) -> Optional[date]:
        return min(self.dates) if self.dates else None

    @property
    def last_date(self) -> Optional[date]:
        return max(self.dates) if self.dates else None

    def render(self, schema: MeasureSchema, rate: Number) -> Dict[str, Any]:
        kind = self.kind
        out: Dict[str, Any] = {kind.key_attr: self.key}
        if kind.label_attr:
            out[kind.label_attr] = self.label
        out.update(self.extras)
        out.update(schema.render(self.totals, rate))
        out["days_count"] = self.days_count
        out["first_date"] = self.first_date.isoformat() if self.dates else None
        out["last_date"] = self.last_date.isoformat() if self.dates else None
        return out


# ========================================
# Folds
# ========================================

def fold_daily(rows: Iterable[FactRow]) -> List[DailyBucket]:
    """
    Group rows by date and sum their measures.

    Returns one bucket per distinct date, sorted by date. An empty input gives
    an empty list ("no data"), never a zero-valued bucket.
    """
    daily: Dict[date, DailyBucket] = {}
    for row in rows:
        validate_measures(row)
        bucket = daily.get(row.date)
        if bucket is None:
            bucket = daily[row.date] = DailyBucket(date=row.date)
        bucket.totals.add_row(row)
    return [daily[d] for d in sorted(daily)]


def fold_weekly(daily: Iterable[DailyBucket]) -> List[PeriodBucket]:
    """Group daily buckets by week label; boundaries come from the earliest day."""
    weekly: Dict[str, PeriodBucket] = {}
    for day in sorted(daily, key=lambda d: d.date):
        key = week_label(day.date)
        bucket = weekly.get(key)
        if bucket is None:
            bucket = weekly[key] = PeriodBucket(
                key=key,
                label=key,
                start=week_start(day.date),
                end=week_end(day.date),
            )
        bucket.totals.merge(day.totals)
        bucket.days.append(day)
    result = sorted(weekly.values(), key=lambda w: (w.start, w.key))
    apply_changes(result)
    return result


def fold_monthly(daily: Iterable[DailyBucket]) -> List[PeriodBucket]:
    """Group daily buckets by calendar month."""
    monthly: Dict[str, PeriodBucket] = {}
    for day in sorted(daily, key=lambda d: d.date):
        key = month_bucket(day.date)
        bucket = monthly.get(key)
        if bucket is None:
            bucket = monthly[key] = PeriodBucket(
                key=key,
                label=month_label(day.date),
                start=day.date,
                end=day.date,
            )
        bucket.totals.merge(day.totals)
        bucket.days.append(day)
        bucket.end = day.date
    result = sorted(monthly.values(), key=lambda m: m.key)
    apply_changes(result)
    return result


def weeks_in_month(month: PeriodBucket, weekly: Iterable[PeriodBucket]) -> List[PeriodBucket]:
    """Weeks starting or ending in ``month`` (a boundary week shows under both months)."""
    return [
        w for w in weekly
        if month_bucket(w.start) == month.key or month_bucket(w.end) == month.key
    ]


def apply_changes(buckets: List[PeriodBucket]) -> None:
    """Fill change percentages against the previous bucket (0 for the first bucket)."""
    previous: Optional[PeriodBucket] = None
    for bucket in buckets:
        bucket.changes = {}
        for attr in ("impressions", "clicks", "spend", "leads"):
            if previous is None:
                bucket.changes[attr] = Decimal("0")
            else:
                bucket.changes[attr] = pct_change(
                    getattr(bucket.totals, attr), getattr(previous.totals, attr)
                )
        previous = bucket


def fold_entities(rows: Iterable[FactRow], kind: EntityKind) -> List[EntityBucket]:
    """
    Group rows by entity key. Entities without rows never appear; rows without a
    usable key (e.g. campaign 'unknown') are left out of this grouping only.
    Sorted by spend descending, then key.
    """
    entities: Dict[str, EntityBucket] = {}
    for row in rows:
        validate_measures(row)
        key = kind.key_of(row)
        if key is None:
            continue
        bucket = entities.get(key)
        if bucket is None:
            label = getattr(row, kind.label_attr) if kind.label_attr else None
            bucket = entities[key] = EntityBucket(
                kind=kind,
                key=key,
                label=label or key,
                extras={attr: getattr(row, attr) for attr in kind.extra_attrs},
            )
        bucket.totals.add_row(row)
        bucket.dates.add(row.date)
    return sorted(entities.values(), key=lambda e: (-e.totals.spend, e.key))


# ========================================
# Rendering
# ========================================

def render_period(bucket: PeriodBucket, schema: MeasureSchema, rate: Number, weekly: bool) -> Dict[str, Any]:
    if weekly:
        out: Dict[str, Any] = {
            "week_label": bucket.label,
            "week_start": bucket.start.isoformat(),
            "week_end": bucket.end.isoformat(),
        }
    else:
        out = {"month": bucket.key, "month_label": bucket.label}
    out.update(schema.render(bucket.totals, rate))
    for attr, name in schema.change_fields:
        out[name] = round_half_up(bucket.changes.get(attr, 0), CHANGE_PLACES)
    return out


def render_weekly(weekly: List[PeriodBucket], schema: MeasureSchema, rate: Number) -> List[Dict[str, Any]]:
    return [render_period(w, schema, rate, weekly=True) for w in weekly]


def render_monthly(
    monthly: List[PeriodBucket],
    weekly: List[PeriodBucket],
    schema: MeasureSchema,
    rate: Number,
) -> List[Dict[str, Any]]:
    out = []
    for month in monthly:
        record = render_period(month, schema, rate, weekly=False)
        record["weeks"] = render_weekly(weeks_in_month(month, weekly), schema, rate)
        record["days"] = [d.render(schema, rate) for d in month.days]
        out.append(record)
    return out


# ========================================
# Weekday breakdown
# ========================================

def fold_weekdays(daily: Iterable[DailyBucket], schema: MeasureSchema, rate: Number) -> Dict[str, Any]:
    """
    Fold daily buckets by weekday (Mon..Sun).

    Each weekday carries its totals, CTR, and per-occurrence averages. Weekday
    vs weekend averages are the mean of the per-occurrence values of the
    weekdays that have data (0 when none do).
    """
    totals = [Totals() for _ in WEEKDAY_NAMES]
    occurrences = [0] * len(WEEKDAY_NAMES)
    for day in daily:
        index = day.date.weekday()
        totals[index].merge(day.totals)
        occurrences[index] += 1

    weekdays = []
    for index, name in enumerate(WEEKDAY_NAMES):
        t = totals[index]
        count = occurrences[index]
        record = {"weekday": name, "days": count}
        record.update(schema.render(t, rate))
        record["avg_impressions"] = round_half_up(safe_ratio(t.impressions, count))
        record["avg_clicks"] = round_half_up(safe_ratio(t.clicks, count))
        weekdays.append(record)

    def group_average(indexes):
        # Mean of per-occurrence values over the weekdays that have data
        present = [i for i in indexes if occurrences[i] > 0]
        if not present:
            return {"impressions": 0.0, "clicks": 0.0, "ctr": 0.0}
        n = Decimal(len(present))
        return {
            "impressions": round_half_up(sum(safe_ratio(totals[i].impressions, occurrences[i]) for i in present) / n, 1),
            "clicks": round_half_up(sum(safe_ratio(totals[i].clicks, occurrences[i]) for i in present) / n, 1),
            "ctr": round_half_up(sum(totals[i].ctr for i in present) / n, CTR_PLACES),
        }

    active = [i for i in range(len(WEEKDAY_NAMES)) if occurrences[i] > 0]
    best = max(active, key=lambda i: (totals[i].ctr, -i)) if active else None
    worst = min(active, key=lambda i: (totals[i].ctr, i)) if active else None

    return {
        "weekdays": weekdays,
        "weekday_average": group_average(range(0, 5)),
        "weekend_average": group_average(range(5, 7)),
        "best_ctr_weekday": WEEKDAY_NAMES[best] if best is not None else None,
        "worst_ctr_weekday": WEEKDAY_NAMES[worst] if worst is not None else None,
    }


def daily_highlights(daily: List[DailyBucket]) -> Dict[str, Any]:
    """Best/worst day by clicks and per-day averages."""
    if not daily:
        return {
            "data_days": 0,
            "start": None,
            "end": None,
            "avg_daily_impressions": 0,
            "avg_daily_clicks": 0,
            "best_day": None,
            "worst_day": None,
        }
    ordered = sorted(daily, key=lambda d: d.date)
    # Ties resolve to the earliest date
    best = max(ordered, key=lambda d: (d.totals.clicks, -d.date.toordinal()))
    worst = min(ordered, key=lambda d: (d.totals.clicks, d.date.toordinal()))
    count = len(ordered)
    return {
        "data_days": count,
        "start": ordered[0].date.isoformat(),
        "end": ordered[-1].date.isoformat(),
        "avg_daily_impressions": round_half_up(sum(d.totals.impressions for d in ordered) / Decimal(count)),
        "avg_daily_clicks": round_half_up(sum(d.totals.clicks for d in ordered) / Decimal(count)),
        "best_day": {"date": best.date.isoformat(), "clicks": best.totals.clicks},
        "worst_day": {"date": worst.date.isoformat(), "clicks": worst.totals.clicks},
    }
