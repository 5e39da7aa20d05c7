"""
Currency conversion at a fixed, configured rate.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from app.services.analytics.metrics import Number, as_decimal


def to_target_currency(
    amount: Number,
    rate: Number,
    places: int = 0,
    rounding: str = ROUND_HALF_UP,
) -> Union[int, float]:
    """
    Convert ``amount`` with a single static ``rate`` and round once.

    Defaults match zero-decimal targets such as KRW: nearest integer, half away
    from zero.
    """
    converted = as_decimal(amount) * as_decimal(rate)
    rounded = converted.quantize(Decimal(1).scaleb(-places), rounding=rounding)
    if places <= 0:
        return int(rounded)
    return float(rounded)


def convert_exact(amount: Number, rate: Number) -> Decimal:
    """Full-precision conversion, for values that are summed before rounding"""
    return as_decimal(amount) * as_decimal(rate)

