"""
Ratio, percentage and rounding helpers.

All helpers work on full-precision Decimals. Rounding is applied once, when a
bucket is rendered for output; nothing here rounds intermediate values.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Output precision (decimal places)
CTR_PLACES = 2
CHANGE_PLACES = 1
RATIO_PLACES = 1        # channel share, difference_percent
RANK_PLACES = 1
WATCH_TIME_PLACES = 1
USD_PLACES = 2
KRW_PLACES = 0


def as_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_half_up(value: Number, places: int = 0) -> Union[int, float]:
    """
    Round half away from zero at ``places`` decimals.

    Returns an int for 0 places, a float otherwise (JSON-friendly).
    """
    exponent = Decimal(1).scaleb(-places)
    rounded = as_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
    if places <= 0:
        return int(rounded)
    return float(rounded)


def safe_ratio(numerator: Number, denominator: Number) -> Decimal:
    """numerator / denominator, or 0 when the denominator is 0"""
    denominator = as_decimal(denominator)
    if denominator == 0:
        return ZERO
    return as_decimal(numerator) / denominator


def percent(numerator: Number, denominator: Number) -> Decimal:
    """numerator / denominator * 100, or 0 when the denominator is 0"""
    return safe_ratio(numerator, denominator) * HUNDRED


def pct_change(current: Number, previous: Number) -> Decimal:
    """(current - previous) / previous * 100, or 0 when previous is 0"""
    previous = as_decimal(previous)
    if previous == 0:
        return ZERO
    return (as_decimal(current) - previous) / previous * HUNDRED
