"""Display helpers: local time and money formatting."""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

import pytz

DEFAULT_TZ = "Asia/Seoul"


def fmt_local(value: Optional[datetime], tz_name: str = DEFAULT_TZ) -> str:
    """
    Format a datetime in the display timezone as 'YYYY-MM-DD HH:MM'.
    Naive datetimes are treated as UTC, which is how the store writes them.
    Unknown timezone names fall back to the default zone.
    """
    if value is None:
        return ""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.timezone(DEFAULT_TZ)

    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M")


def fmt_money(value, unit: str = "KRW") -> str:
    """
    Round to whole currency units and add thousands separators, e.g. '256,500 KRW'.
    This is the only place amounts are rounded.
    """
    if value is None:
        return ""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return str(value)

    whole = amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{whole:,} {unit}"
