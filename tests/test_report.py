from __future__ import annotations

from datetime import date

from src.models import DateRange, QuoteRecord, TradeSummary
from src.report import fmt_money, fmt_number, fmt_pct, fmt_shares, fmt_star, quotes_table, range_label, summary_lines


def test_formatters_handle_missing_values() -> None:
    assert fmt_number(None) == "N/A"
    assert fmt_number(float("nan")) == "N/A"
    assert fmt_number(1234.5) == "1,234.50"
    assert fmt_shares(None) == "-"
    assert fmt_shares(-1200.0) == "-1,200"
    assert fmt_money(3400) == "¥ 3,400.00"
    assert fmt_pct(None) == "N/A"
    assert fmt_pct(1.23456) == "1.23 %"
    assert fmt_star(4.0) == "4"
    assert fmt_star(None) == "-"


def test_quotes_table_shows_undefined_change_as_na() -> None:
    quote = QuoteRecord(
        code="000001",
        name="平安银行",
        price=10.0,
        close=0.0,
        open=None,
        low=None,
        high=None,
        inc=10.0,
        inc_pct=None,
    )

    table = quotes_table([quote])

    assert "平安银行" in table
    assert "N/A" in table
    assert "P/E" not in table


def test_summary_lines_include_company() -> None:
    summary = TradeSummary(
        buy_shares=300,
        sell_shares=0,
        buy_cost=3400,
        sell_proceeds=0,
        net_buy_shares=300,
        net_buy_cost=3400,
        buy_avg_price=3400 / 300,
        sell_avg_price=None,
        company="000858 - 五粮液",
    )

    lines = summary_lines(summary)

    assert "¥ 3,400.00" in lines[0]
    assert "000858 - 五粮液" in lines[0]
    assert "11.33" in lines[1]
    assert "N/A" in lines[2]


def test_range_label() -> None:
    assert range_label(DateRange(date(2024, 1, 1), date(2024, 7, 1))) == "从: 2024/01/01, 到: 2024/07/01"
    assert range_label(None) == ""
