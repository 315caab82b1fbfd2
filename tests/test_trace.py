from __future__ import annotations

import math

import pandas as pd
import pytest

from src.models import QuoteBatch, QuoteRecord, SymbolEntry
from src.quotes import PROVIDERS
from src.trace import apply_price_filters, paginate, sort_frame, trace_symbols

PRICES = {
    "000858": 100.0,
    "600519": 1500.0,
    "300036": 20.0,
    "002065": 8.0,
}


def _entries() -> list[SymbolEntry]:
    return [
        SymbolEntry(code="000858", name="五粮液", target=150, cheap=110, expensive=180, star=4, watch=True),
        SymbolEntry(code="600519", name="贵州茅台", target=1800, cheap=1400, expensive=2000, star=5, watch=True),
        SymbolEntry(code="300036", name="超图软件", target=20, cheap=25, expensive=18, star=3, watch=True),
        SymbolEntry(code="002065", name="东华软件", target=12, cheap=7, expensive=10, star=2, watch=True),
        SymbolEntry(code="601777", name="力帆股份", target=5, star=1, watch=True),
    ]


@pytest.fixture()
def fake_quotes(monkeypatch):
    calls: list[list[str]] = []

    def _fetch(codes, provider):
        calls.append(list(codes))
        quotes = [
            QuoteRecord(
                code=code,
                name="provider name",
                price=PRICES[code],
                close=PRICES[code],
                open=None,
                low=None,
                high=None,
                inc=0.0,
                inc_pct=0.0,
                fundamentals={"capacity": 1000.0, "pe": 10.0, "pb": 1.0},
            )
            for code in codes
            if code in PRICES
        ]
        return QuoteBatch(quotes=quotes, missing=[c for c in codes if c not in PRICES])

    monkeypatch.setattr("src.trace.fetch_quotes", _fetch)
    return calls


def test_trace_computes_upside_and_sorts_descending(fake_quotes) -> None:
    result = trace_symbols(_entries(), PROVIDERS["TENCENT"], {})

    df = result.frame
    assert df["code"].tolist() == ["000858", "002065", "600519", "300036"]
    assert df.loc[0, "pct"] == pytest.approx(50.0)
    assert df.loc[0, "name"] == "五粮液"
    assert df.loc[0, "bdiff"] == pytest.approx(-10.0)
    assert df.loc[0, "sdiff"] == pytest.approx(-80.0)
    assert result.missing == ["601777"]
    assert result.total == 4
    assert result.offset == 0


def test_trace_pct_matches_definition(fake_quotes) -> None:
    df = trace_symbols(_entries(), PROVIDERS["TENCENT"], {"all": True}).frame
    for row in df.itertuples():
        assert math.isclose(row.pct, (row.target - row.price) / row.price * 100)


def test_trace_fetches_in_chunks_of_25(fake_quotes) -> None:
    entries = [SymbolEntry(code=str(600000 + i), watch=True) for i in range(60)]

    trace_symbols(entries, PROVIDERS["TENCENT"], {})

    assert [len(c) for c in fake_quotes] == [25, 25, 10]


def test_trace_with_no_symbols_skips_quotes(fake_quotes) -> None:
    result = trace_symbols(_entries(), PROVIDERS["TENCENT"], {"hold": True})
    assert result.frame.empty
    assert result.total == 0
    assert fake_quotes == []


def test_trace_sort_reverse_and_field(fake_quotes) -> None:
    df = trace_symbols(_entries(), PROVIDERS["TENCENT"], {"sort": "price", "reverse": True}).frame
    assert df["code"].tolist() == ["002065", "300036", "000858", "600519"]


def test_trace_pagination(fake_quotes) -> None:
    result = trace_symbols(_entries(), PROVIDERS["TENCENT"], {"limit": 3, "page": 5})
    assert result.offset == 3
    assert result.frame["code"].tolist() == ["300036"]
    assert result.total == 4


def _frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "code": ["a", "b", "c"],
            "price": [10.0, 20.0, 30.0],
            "cheap": [12.0, 15.0, None],
            "expensive": [9.0, 25.0, 28.0],
            "pct": [50.0, 10.0, -5.0],
            "bdiff": [-20.0, 25.0, None],
            "sdiff": [10.0, -25.0, 6.7],
        }
    )


def test_price_filters() -> None:
    df = _frame()
    assert apply_price_filters(df, {"lte": 10})["code"].tolist() == ["b", "c"]
    assert apply_price_filters(df, {"gte": 10})["code"].tolist() == ["a", "b"]
    assert apply_price_filters(df, {"lteb": True})["code"].tolist() == ["a"]
    assert apply_price_filters(df, {"lteb": 0.0})["code"].tolist() == ["a"]
    assert apply_price_filters(df, {"gtes": True})["code"].tolist() == ["a", "c"]
    assert apply_price_filters(df, {"gtes": 8})["code"].tolist() == ["a"]


def test_sort_falls_back_to_upside_for_absent_column() -> None:
    df = _frame()
    assert sort_frame(df, "capacity")["code"].tolist() == ["a", "b", "c"]


def test_paginate_clamps_to_last_page() -> None:
    df = pd.DataFrame({"x": range(7)})
    page, offset = paginate(df, limit=3, page=10)
    assert offset == 6
    assert page["x"].tolist() == [6]
    page, offset = paginate(df, limit=3, page=None)
    assert (offset, page["x"].tolist()) == (0, [0, 1, 2])


@pytest.mark.parametrize("post_filter", [{"lte": 10}, {"gte": 0}, {"lteb": True}, {"gtes": 5}])
def test_trace_with_every_quote_missing_keeps_post_filters_working(fake_quotes, post_filter) -> None:
    entries = [SymbolEntry(code="601777", name="力帆股份", target=5, star=1, watch=True)]

    result = trace_symbols(entries, PROVIDERS["TENCENT"], post_filter)

    assert result.frame.empty
    assert result.total == 0
    assert result.missing == ["601777"]
