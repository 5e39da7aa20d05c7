"""
Ingestion coercion: raw records -> FactRow.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from app.models.enums import AdSource
from app.services.analytics.facts import (
    UNKNOWN,
    InvalidMeasureError,
    coerce_fact_row,
    to_date,
    to_decimal,
    to_int,
    validate_measures,
)


@pytest.mark.parametrize("value", [None, "", "abc", "NaN", float("nan"), float("inf")])
def test_malformed_measures_become_zero(value):
    assert to_int(value) == 0
    assert to_decimal(value) == Decimal("0")


def test_numeric_strings():
    assert to_int("1234") == 1234
    assert to_int("12.9") == 12
    assert to_decimal("3.14") == Decimal("3.14")
    assert to_decimal(2.5) == Decimal("2.5")


def test_to_date():
    assert to_date("2024-03-04") == date(2024, 3, 4)
    assert to_date("2024-03-04T09:15:00") == date(2024, 3, 4)
    assert to_date(datetime(2024, 3, 4, 23, 59)) == date(2024, 3, 4)
    assert to_date(date(2024, 3, 4)) == date(2024, 3, 4)


def test_paid_social_row():
    row = coerce_fact_row(
        {
            "client_id": "c1",
            "date": "2024-03-04",
            "ad_id": 12345,
            "campaign_id": "cmp",
            "impressions": "1000",
            "clicks": None,
            "spend": "12.34",
            "leads": "abc",
        },
        AdSource.PAID_SOCIAL,
    )
    assert row.ad_id == "12345"
    assert row.impressions == 1000
    assert row.clicks == 0
    assert row.spend == Decimal("12.34")
    assert row.leads == 0
    assert row.platform == UNKNOWN
    assert row.device == UNKNOWN
    assert row.natural_key == ("c1", date(2024, 3, 4), "12345", UNKNOWN, UNKNOWN)


def test_local_search_row_reads_total_cost():
    row = coerce_fact_row(
        {"client_id": "c1", "date": "2024-03-04", "keyword": "  강남 맛집 ", "total_cost": "5500", "avg_rank": "2.3"},
        AdSource.LOCAL_SEARCH,
    )
    assert row.keyword == "강남 맛집"
    assert row.spend == Decimal("5500")
    assert row.avg_rank == Decimal("2.3")
    assert row.natural_key == ("c1", date(2024, 3, 4), "강남 맛집")


def test_local_search_accepts_spend_alias():
    row = coerce_fact_row(
        {"client_id": "c1", "date": "2024-03-04", "keyword": "pizza", "spend": 700},
        AdSource.LOCAL_SEARCH,
    )
    assert row.spend == Decimal("700")


def test_local_search_spend_alias_used_when_total_cost_is_none():
    row = coerce_fact_row(
        {"client_id": "c1", "date": "2024-03-04", "keyword": "pizza", "total_cost": None, "spend": 700},
        AdSource.LOCAL_SEARCH,
    )
    assert row.spend == Decimal("700")


def test_missing_entity_key_is_rejected():
    with pytest.raises(ValueError):
        coerce_fact_row({"client_id": "c1", "date": "2024-03-04"}, AdSource.PAID_SOCIAL)
    with pytest.raises(ValueError):
        coerce_fact_row({"client_id": "c1", "date": "2024-03-04", "keyword": ""}, AdSource.LOCAL_SEARCH)


def test_negative_values_pass_coercion_but_fail_validation():
    row = coerce_fact_row(
        {"client_id": "c1", "date": "2024-03-04", "ad_id": "a", "spend": "-1.00"},
        AdSource.PAID_SOCIAL,
    )
    assert row.spend == Decimal("-1.00")
    with pytest.raises(InvalidMeasureError):
        validate_measures(row)
