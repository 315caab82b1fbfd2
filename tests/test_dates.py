from __future__ import annotations

from datetime import date

import pytest

from src.dates import display_date, parse_date, parse_span, resolve_date_range, subtract_span, wire_date
from src.errors import InputError, InvalidDateError


def test_parse_date_accepts_slash_and_dash_formats() -> None:
    assert parse_date("2014/06/01") == date(2014, 6, 1)
    assert parse_date("2015-07-09") == date(2015, 7, 9)


@pytest.mark.parametrize("value", ["2014/13/01", "yesterday", "", "2014.06.01"])
def test_parse_date_rejects_garbage(value: str) -> None:
    with pytest.raises(InvalidDateError):
        parse_date(value)


def test_invalid_date_is_an_input_error() -> None:
    with pytest.raises(InputError):
        parse_date("2015/02/30")


def test_parse_span_clamps_to_range() -> None:
    assert parse_span("3m", 12) == 3
    assert parse_span("36m", 12) == 12
    assert parse_span("0m", 12) == 1
    assert parse_span("10d", 60) == 10
    assert parse_span(None, 12) is None
    assert parse_span("m", 12) is None


def test_subtract_span_handles_month_ends() -> None:
    assert subtract_span(date(2024, 3, 31), 1, "month") == date(2024, 2, 29)
    assert subtract_span(date(2024, 3, 1), 10, "day") == date(2024, 2, 20)


def test_resolve_date_range_defaults_to_span_before_today() -> None:
    today = date(2024, 7, 15)

    rng = resolve_date_range(None, None, None, "month", 24, "12m", today=today)

    assert rng.start == date(2023, 7, 15)
    assert rng.end == today


def test_resolve_date_range_explicit_dates_win_over_span() -> None:
    rng = resolve_date_range("2014/06/01", "2015/07/09", "3m", "month", 24, "12m", today=date(2024, 1, 1))
    assert rng.start == date(2014, 6, 1)
    assert rng.end == date(2015, 7, 9)


def test_resolve_date_range_only_from_uses_today_as_end() -> None:
    rng = resolve_date_range("2024/01/01", None, None, "day", 60, "10d", today=date(2024, 2, 1))
    assert rng.start == date(2024, 1, 1)
    assert rng.end == date(2024, 2, 1)


def test_date_formatting() -> None:
    assert wire_date(date(2024, 7, 1)) == "2024-07-01"
    assert display_date(date(2024, 7, 1)) == "2024/07/01"
