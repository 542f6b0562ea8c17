# utils/helpers.py
from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union
from urllib.parse import quote

NumberLike = Union[float, int, str]
DateLike = Union[date, datetime, str]

_log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_str() -> str:
    """Return the local wall-clock time in the format stored in created_at columns."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def fmt_money(
    v: NumberLike,
    places: int = 2,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as Brazilian currency: "R$ 1.234,56".

    Behavior on parse failure:
      - By default (strict=False, sentinel=None), returns str(v).
      - If `sentinel` is provided (e.g., "N/A"), returns that sentinel instead.
      - If `strict=True`, raises ValueError on parse failures.
    """
    try:
        x = float(v)
    except Exception as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    sign = "-" if x < 0 else ""
    # 1,234.56 -> 1.234,56
    body = f"{abs(x):,.{places}f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {body}"


def to_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO text ('YYYY-MM-DD' or 'YYYY-MM-DD HH:MM:SS')
    into a calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as e:
        raise ValueError(f"Could not parse {value!r} as a date.") from e


def to_timestamp(value: DateLike) -> str:
    """
    Coerce a date, datetime or ISO text into the stored 'YYYY-MM-DD HH:MM:SS'
    form. A bare date means midnight; fractional seconds are dropped.
    """
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time()).strftime(TIMESTAMP_FORMAT)
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).strftime(TIMESTAMP_FORMAT)
    except ValueError as e:
        raise ValueError(f"Could not parse {value!r} as a timestamp.") from e


def fmt_date(value: DateLike) -> str:
    """dd/mm/yyyy"""
    return to_date(value).strftime("%d/%m/%Y")


def fmt_period(start: DateLike, end: DateLike) -> str:
    return f"{fmt_date(start)} - {fmt_date(end)}"


def day_bounds(start: DateLike, end: DateLike) -> tuple[str, str]:
    """
    Half-open timestamp window [start 00:00:00, end+1day 00:00:00) for an
    inclusive calendar date range.
    """
    lo = datetime.combine(to_date(start), datetime.min.time())
    hi = datetime.combine(to_date(end) + timedelta(days=1), datetime.min.time())
    return lo.strftime(TIMESTAMP_FORMAT), hi.strftime(TIMESTAMP_FORMAT)


def add_months(value: DateLike, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    d = to_date(value)
    idx = d.month - 1 + int(months)
    year = d.year + idx // 12
    month = idx % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


def whatsapp_url(phone: str, message: str, country_code: str = "55") -> str:
    """wa.me deep link for a customer phone, digits only."""
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Phone number has no digits.")
    return f"https://wa.me/{country_code}{digits}?text={quote(message)}"
