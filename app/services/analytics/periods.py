"""
Calendar bucketing helpers (timezone-naive, calendar dates only).

Weeks run Monday..Sunday. ``week_label`` keeps the dashboard's historical
numbering, which counts weeks from the weekday of January 1st with Sunday as
day 0; it is not ISO-8601 and has no cross-year correction.
"""
import math
from datetime import date, timedelta
from typing import Optional, Tuple

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def sunday_weekday(d: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6"""
    return (d.weekday() + 1) % 7


def week_label(d: date) -> str:
    """'{year}-W{nn}' with nn = ceil((days since Jan 1 + weekday(Jan 1) + 1) / 7)"""
    jan1 = date(d.year, 1, 1)
    days = (d - jan1).days
    week_num = math.ceil((days + sunday_weekday(jan1) + 1) / 7)
    return f"{d.year}-W{week_num:02d}"


def week_start(d: date) -> date:
    """Monday on or before ``d``"""
    return d - timedelta(days=(sunday_weekday(d) + 6) % 7)


def week_end(d: date) -> date:
    """Sunday closing the week of ``d``"""
    return week_start(d) + timedelta(days=6)


def month_bucket(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def month_label(d: date) -> str:
    return f"{d.year}-{d.month}"


# ========================================
# Date ranges
# ========================================

def yesterday(today: Optional[date] = None) -> date:
    return (today or date.today()) - timedelta(days=1)


def this_week_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Monday..Sunday of the current week"""
    today = today or date.today()
    return week_start(today), week_end(today)


def last_week_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Monday..Sunday of the previous week"""
    monday, _ = this_week_range(today)
    return monday - timedelta(days=7), monday - timedelta(days=1)


def previous_period(start: date, end: date) -> Tuple[date, date]:
    """Window of the same length ending the day before ``start``"""
    if end < start:
        raise ValueError(f"end {end} is before start {start}")
    length = (end - start).days + 1
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length - 1), previous_end
