"""
Narrative context for an external text generator.

Only serializes aggregates into plain numbers and short text lines; the prompt
format and the generation call live outside this service.
"""
from typing import Any, Dict, List, Optional

from app.services.analytics.merge import Channel
from app.services.analytics.metrics import Number, round_half_up
from app.services.analytics.rollup import EntityBucket, daily_highlights, fold_weekdays
from app.services.analytics.summary import render_summary


def _top_entities(entities: List[EntityBucket], channel: Channel, rate: Number, top_n: int) -> List[Dict[str, Any]]:
    # Entity folds are already sorted by spend descending
    return [e.render(channel.schema, rate) for e in entities[:top_n]]


def _entity_line(record: Dict[str, Any], label_field: str, channel: Channel) -> str:
    schema = channel.schema
    line = (
        f"{record[label_field]}: impressions {record['impressions']:,}, "
        f"clicks {record['clicks']:,}, CTR {record['ctr']:.2f}%"
    )
    if schema.tracks_rank:
        line += f", avg rank {record['avg_rank']:.1f}"
    if schema.converts_currency:
        line += f", spend {record[schema.cost_field + '_krw']:,} KRW"
    else:
        line += f", cost {record[schema.cost_field]:,} KRW"
    return line


def _weekday_lines(weekdays: Dict[str, Any]) -> List[str]:
    return [
        f"{w['weekday']}: avg impressions {w['avg_impressions']:,}, avg clicks {w['avg_clicks']:,}, CTR {w['ctr']:.2f}%"
        for w in weekdays["weekdays"]
        if w["days"] > 0
    ]


def _daily_lines(highlights: Dict[str, Any]) -> List[str]:
    if not highlights["data_days"]:
        return ["no daily data"]
    return [
        f"period: {highlights['start']} ~ {highlights['end']} ({highlights['data_days']} days)",
        f"avg daily impressions: {highlights['avg_daily_impressions']:,}",
        f"avg daily clicks: {highlights['avg_daily_clicks']:,}",
        f"best day: {highlights['best_day']['date']} ({highlights['best_day']['clicks']} clicks)",
        f"worst day: {highlights['worst_day']['date']} ({highlights['worst_day']['clicks']} clicks)",
    ]


def build_narrative_context(
    paid: Channel,
    campaigns: List[EntityBucket],
    local: Channel,
    keywords: List[EntityBucket],
    rate: Number,
    top_n: int,
    client_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Headline summaries, top-N campaigns and keywords by spend, the weekday
    pattern and daily highlights of the paid channel.
    """
    top_campaigns = _top_entities(campaigns, paid, rate, top_n)
    top_keywords = _top_entities(keywords, local, rate, top_n)
    weekdays = fold_weekdays(paid.daily, paid.schema, rate)
    highlights = daily_highlights(paid.daily)

    campaign_lines = [_entity_line(c, "campaign_name", paid) for c in top_campaigns] or ["no campaign data"]
    keyword_lines = [_entity_line(k, "keyword", local) for k in top_keywords] or ["no keyword data"]

    return {
        "client_name": client_name,
        "exchange_rate": round_half_up(rate, 2),
        paid.schema.prefix: {
            "summary": render_summary(paid.summary, rate),
            "top_campaigns": top_campaigns,
            "weekdays": weekdays,
            "daily_highlights": highlights,
        },
        local.schema.prefix: {
            "summary": render_summary(local.summary, rate),
            "top_keywords": top_keywords,
        },
        "text": {
            "campaigns": campaign_lines,
            "keywords": keyword_lines,
            "weekdays": _weekday_lines(weekdays),
            "daily": _daily_lines(highlights),
        },
    }
