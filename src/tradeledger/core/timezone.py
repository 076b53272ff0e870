"""Timezone and date utilities (US/Eastern market time)."""

from datetime import date, datetime
from typing import Union

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Return current time in US/Eastern timezone."""
    return datetime.now(EASTERN_TZ)


def to_eastern(dt: datetime) -> datetime:
    """Convert a datetime to US/Eastern timezone."""
    if dt.tzinfo is None:
        # Assume naive datetime is already Eastern
        return EASTERN_TZ.localize(dt)
    return dt.astimezone(EASTERN_TZ)


def parse_trade_date(value: Union[str, date, datetime]) -> date:
    """
    Coerce a trade date to a calendar date.

    Datetimes are converted to Eastern before dropping the time component.
    Strings are parsed with dateutil (year first).
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return to_eastern(value).date()
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if not text:
        raise ValueError("Trade date is empty")
    return date_parser.parse(text, yearfirst=True).date()
