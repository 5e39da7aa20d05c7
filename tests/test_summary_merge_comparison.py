"""
Summary reducer, multi-source merge and comparison builder.
"""
from decimal import Decimal

import pytest

from conftest import RATE, local, paid
from app.services.analytics.comparison import build_comparison, period_changes
from app.services.analytics.measures import LOCAL_SEARCH, PAID_SOCIAL
from app.services.analytics.merge import (
    Channel,
    CombinedTotals,
    channel_ratio,
    combine_totals,
    integrated_summary,
    merge_daily,
)
from app.services.analytics.rollup import fold_daily
from app.services.analytics.summary import grand_total_row, render_summary, summarize


def channel(rows, schema):
    return Channel(schema=schema, daily=fold_daily(rows), summary=summarize(rows, schema))


@pytest.fixture
def meta_channel():
    # 10 USD -> 15,000 KRW
    return channel([
        paid("2024-03-04", impressions=1000, clicks=20, spend="4", leads=2),
        paid("2024-03-05", impressions=1000, clicks=10, spend="6", leads=0, ad_id="ad-2"),
    ], PAID_SOCIAL)


@pytest.fixture
def naver_channel():
    return channel([
        local("2024-03-05", "pizza", impressions=300, clicks=5, cost="2000", rank="2"),
        local("2024-03-06", "pizza", impressions=100, clicks=3, cost="1000", rank="3"),
        local("2024-03-07", "pasta", impressions=100, clicks=2, cost="2000", rank="4"),
    ], LOCAL_SEARCH)


# ────────────────────────────────────────────
# Summary
# ────────────────────────────────────────────


class TestSummary:

    def test_empty_rows(self):
        result = render_summary(summarize([], PAID_SOCIAL), RATE)
        assert result["total_impressions"] == 0
        assert result["total_spend_krw"] == 0
        assert result["avg_ctr"] == 0
        assert result["unique_campaigns"] == 0
        assert result["unique_entity_count"] == 0
        assert result["data_days"] == 0
        assert result["date_range"] == {"start": None, "end": None}

    def test_paid_social_fields(self, scenario_rows):
        result = render_summary(summarize(scenario_rows, PAID_SOCIAL), RATE)
        assert result["total_impressions"] == 350
        assert result["total_clicks"] == 26
        assert result["total_spend"] == 30.0
        assert result["total_spend_krw"] == 45000
        assert result["avg_ctr"] == 7.43
        assert result["avg_cpc"] == 1.15
        assert result["avg_cpc_krw"] == 1731
        assert result["date_range"] == {"start": "2024-03-04", "end": "2024-03-11"}

    def test_data_days_counts_distinct_dates(self):
        rows = [
            paid("2024-03-04", ad_id="a"),
            paid("2024-03-04", ad_id="b"),
            paid("2024-03-06", ad_id="a"),
        ]
        assert render_summary(summarize(rows, PAID_SOCIAL), RATE)["data_days"] == 2

    def test_unique_counts_skip_unknown_campaign(self):
        rows = [
            paid("2024-03-04", ad_id="a", campaign_id="cmp-1"),
            paid("2024-03-04", ad_id="b", campaign_id="cmp-1"),
            paid("2024-03-05", ad_id="c", campaign_id="unknown"),
        ]
        result = render_summary(summarize(rows, PAID_SOCIAL), RATE)
        assert result["unique_campaigns"] == 1
        assert result["unique_ads"] == 3
        assert result["unique_entity_count"] == 3

    def test_local_search_fields(self, naver_channel):
        result = render_summary(naver_channel.summary, RATE)
        assert result["total_impressions"] == 500
        assert result["total_cost"] == 5000
        assert result["avg_cpc"] == 500
        assert result["avg_rank"] == 3.0
        assert result["unique_keywords"] == 2
        assert "keyword_count" not in result
        assert "total_spend_krw" not in result

    def test_total_row_matches_summary(self, scenario_rows):
        summary = summarize(scenario_rows, PAID_SOCIAL)
        card = render_summary(summary, RATE)
        footer = grand_total_row(summary, RATE)
        assert footer["label"] == "Total"
        assert footer["impressions"] == card["total_impressions"]
        assert footer["clicks"] == card["total_clicks"]
        assert footer["spend_krw"] == card["total_spend_krw"]
        assert footer["ctr"] == card["avg_ctr"]
        assert footer["cpc_krw"] == card["avg_cpc_krw"]
        assert footer["data_days"] == card["data_days"]


# ────────────────────────────────────────────
# Merge
# ────────────────────────────────────────────


class TestMerge:

    def test_union_of_dates(self, meta_channel, naver_channel):
        merged = merge_daily(meta_channel, naver_channel, RATE)
        assert [m["date"] for m in merged] == ["2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07"]

    def test_missing_side_is_zero_filled(self, meta_channel, naver_channel):
        first, _, _, last = merge_daily(meta_channel, naver_channel, RATE)
        assert first["naver_impressions"] == 0
        assert first["naver_spend_krw"] == 0
        assert first["meta_spend_krw"] == 6000
        assert last["meta_impressions"] == 0
        assert last["meta_leads"] == 0
        assert last["total_spend_krw"] == 2000

    def test_combined_day(self, meta_channel, naver_channel):
        day = merge_daily(meta_channel, naver_channel, RATE)[1]
        assert day["meta_spend"] == 6.0
        assert day["meta_spend_krw"] == 9000
        assert day["naver_spend"] == 2000
        assert day["total_impressions"] == 1300
        assert day["total_clicks"] == 15
        assert day["total_spend_krw"] == 11000

    def test_commutative_totals(self, meta_channel, naver_channel):
        ab = merge_daily(meta_channel, naver_channel, RATE)
        ba = merge_daily(naver_channel, meta_channel, RATE)
        for x, y in zip(ab, ba):
            assert x["date"] == y["date"]
            for name in ("total_impressions", "total_clicks", "total_spend_krw"):
                assert x[name] == y[name]

    def test_combined_spend_rounded_once(self):
        a = channel([paid("2024-03-04", spend="0.0003")], PAID_SOCIAL)
        b = channel([local("2024-03-04", cost="0.45")], LOCAL_SEARCH)
        (day,) = merge_daily(a, b, RATE)
        assert day["meta_spend_krw"] == 0
        assert day["naver_spend_krw"] == 0
        assert day["total_spend_krw"] == 1

    def test_empty_channels(self):
        empty = channel([], PAID_SOCIAL)
        assert merge_daily(empty, channel([], LOCAL_SEARCH), RATE) == []

    def test_channel_ratio(self, meta_channel, naver_channel):
        assert channel_ratio(meta_channel, naver_channel, RATE) == {
            "meta_percent": 75.0,
            "naver_percent": 25.0,
        }

    def test_channel_ratio_without_spend(self):
        ratio = channel_ratio(channel([], PAID_SOCIAL), channel([], LOCAL_SEARCH), RATE)
        assert ratio == {"meta_percent": 0.0, "naver_percent": 0.0}

    def test_integrated_summary(self, meta_channel, naver_channel):
        result = integrated_summary(meta_channel, naver_channel, RATE)
        assert result["total_spend_krw"] == 20000
        assert result["total_impressions"] == 2500
        assert result["total_clicks"] == 40
        assert result["avg_ctr"] == 1.6
        assert result["avg_cpc_krw"] == 500
        assert result["meta_leads"] == 2
        assert result["meta_cpl"] == 5.0
        assert result["meta_cpl_krw"] == 7500
        assert result["naver_avg_rank"] == 3.0
        assert result["channel_ratio"]["meta_percent"] == 75.0

    def test_combine_totals_full_precision(self, meta_channel, naver_channel):
        combined = combine_totals(meta_channel, naver_channel, RATE)
        assert combined.spend_krw == Decimal("20000")
        assert combined.cpc_krw == Decimal("500")


# ────────────────────────────────────────────
# Comparison
# ────────────────────────────────────────────


class TestComparison:

    def test_metric_order(self, meta_channel, naver_channel):
        records = build_comparison(meta_channel, naver_channel, RATE)
        assert [r["metric"] for r in records] == ["spend", "impressions", "clicks", "ctr", "cpc"]

    def test_spend_in_krw(self, meta_channel, naver_channel):
        spend = build_comparison(meta_channel, naver_channel, RATE)[0]
        assert spend["value_a"] == 15000
        assert spend["value_b"] == 5000
        assert spend["difference"] == 10000
        assert spend["difference_percent"] == 200.0

    def test_ctr_and_cpc(self, meta_channel, naver_channel):
        records = {r["metric"]: r for r in build_comparison(meta_channel, naver_channel, RATE)}
        assert records["ctr"]["value_a"] == 1.5
        assert records["ctr"]["value_b"] == 2.0
        assert records["ctr"]["difference"] == -0.5
        assert records["ctr"]["difference_percent"] == -25.0
        assert records["cpc"]["value_a"] == 500
        assert records["cpc"]["value_b"] == 500
        assert records["cpc"]["difference"] == 0

    def test_zero_b_gives_zero_percent(self, meta_channel):
        records = build_comparison(meta_channel, channel([], LOCAL_SEARCH), RATE)
        for record in records:
            assert record["value_b"] == 0
            assert record["difference_percent"] == 0.0


class TestPeriodChanges:

    def test_changes(self):
        current = CombinedTotals(impressions=150, clicks=15, spend_krw=Decimal("3000"))
        previous = CombinedTotals(impressions=100, clicks=10, spend_krw=Decimal("2000"))
        assert period_changes(current, previous) == {
            "total_spend_percent": 50.0,
            "total_impressions_percent": 50.0,
            "total_clicks_percent": 50.0,
            "avg_ctr_percent": 0.0,
            "avg_cpc_percent": 0.0,
        }

    def test_empty_previous_window(self):
        current = CombinedTotals(impressions=150, clicks=15, spend_krw=Decimal("3000"))
        changes = period_changes(current, CombinedTotals())
        assert set(changes.values()) == {0.0}
