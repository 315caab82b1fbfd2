from __future__ import annotations

import re
from datetime import date, datetime

import pandas as pd

from .config import IN_DATE_FMT, OUT_DATE_FMT
from .errors import InvalidDateError
from .models import DateRange

_ACCEPTED_FORMATS = (IN_DATE_FMT, OUT_DATE_FMT)


def parse_date(text: str) -> date:
    value = (text or "").strip()
    for fmt in _ACCEPTED_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise InvalidDateError(text)


def parse_span(span: str | int | None, max_span: int) -> int | None:
    if span is None or span == "":
        return None
    m = re.match(r"\s*(-?\d+)", str(span))
    if m is None:
        return None
    return min(max(int(m.group(1)), 1), max_span)


def subtract_span(today: date, amount: int, unit: str) -> date:
    if unit == "month":
        offset = pd.DateOffset(months=amount)
    else:
        offset = pd.DateOffset(days=amount)
    return (pd.Timestamp(today) - offset).date()


def resolve_date_range(
    date_from: str | None,
    date_to: str | None,
    span: str | None,
    unit: str,
    max_span: int,
    default_span: str,
    today: date | None = None,
) -> DateRange:
    today = today or date.today()
    amount = parse_span(span, max_span) or parse_span(default_span, max_span)
    start = parse_date(date_from) if date_from else subtract_span(today, amount, unit)
    end = parse_date(date_to) if date_to else today
    return DateRange(start=start, end=end)


def wire_date(value: date) -> str:
    return value.strftime(OUT_DATE_FMT)


def display_date(value: date) -> str:
    return value.strftime(IN_DATE_FMT)
