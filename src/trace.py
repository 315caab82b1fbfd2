from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import pandas as pd

from .config import CHUNK_SIZE, DEFAULT_SORT, PAGE_LIMIT, SORT_FIELDS
from .filters import filter_symbols
from .models import SymbolEntry
from .quotes import QuoteProvider, chunk, fetch_quotes

logger = logging.getLogger(__name__)


@dataclass
class TraceResult:
    frame: pd.DataFrame
    total: int
    offset: int
    missing: list[str]


def enrich_with_quotes(symbols: pd.DataFrame, provider: QuoteProvider) -> tuple[pd.DataFrame, list[str]]:
    quote_rows: list[dict] = []
    missing: list[str] = []
    for codes in chunk(symbols["code"].tolist(), CHUNK_SIZE):
        batch = fetch_quotes(codes, provider)
        quote_rows.extend(q.as_dict() for q in batch.quotes)
        missing.extend(batch.missing)

    if quote_rows:
        quotes = pd.DataFrame(quote_rows).drop(columns=["name", "open", "low", "high", "inc"])
    else:
        # keep the quote columns so post-filters still apply to an empty frame
        quotes = pd.DataFrame(
            {
                "code": pd.Series(dtype=str),
                "price": pd.Series(dtype=float),
                "close": pd.Series(dtype=float),
                "inc_pct": pd.Series(dtype=float),
            }
        )
    df = symbols.merge(quotes, on="code", how="inner", sort=False)

    price = df["price"].where(df["price"] != 0)
    df["pct"] = (df["target"] - df["price"]) / price * 100
    df["bdiff"] = 100 * (df["price"] - df["cheap"]) / price
    df["sdiff"] = 100 * (df["price"] - df["expensive"]) / price
    return df, missing


def apply_price_filters(df: pd.DataFrame, filters: dict) -> pd.DataFrame:
    out = df

    lte = filters.get("lte")
    if lte is not None:
        out = out[out["pct"] <= float(lte)]
    gte = filters.get("gte")
    if gte is not None:
        out = out[out["pct"] >= float(gte)]

    lteb = filters.get("lteb")
    if lteb is True:
        out = out[out["price"] <= out["cheap"]]
    elif lteb is not None and lteb is not False:
        out = out[out["bdiff"] <= float(lteb)]

    gtes = filters.get("gtes")
    if gtes is True:
        out = out[out["price"] >= out["expensive"]]
    elif gtes is not None and gtes is not False:
        out = out[out["sdiff"] >= float(gtes)]

    return out


def sort_frame(df: pd.DataFrame, sort: str | None = None, reverse: bool = False) -> pd.DataFrame:
    column = SORT_FIELDS.get(sort or "", SORT_FIELDS[DEFAULT_SORT])
    if column not in df.columns:
        column = SORT_FIELDS[DEFAULT_SORT]
    if column not in df.columns:
        return df
    return df.sort_values(by=column, ascending=reverse, kind="stable", na_position="last")


def paginate(df: pd.DataFrame, limit: int = PAGE_LIMIT, page: int | None = None) -> tuple[pd.DataFrame, int]:
    if df.empty:
        return df, 0
    limit = limit if limit and limit > 0 else PAGE_LIMIT
    pages = math.ceil(len(df) / limit)
    idx = page if page and page > 0 else 0
    idx = min(idx, pages - 1)
    offset = idx * limit
    return df.iloc[offset:offset + limit], offset


def trace_symbols(entries: list[SymbolEntry], provider: QuoteProvider, filters: dict) -> TraceResult:
    symbols = filter_symbols(entries, filters)
    logger.debug("%d symbols left after filtering", len(symbols))
    if symbols.empty:
        return TraceResult(frame=symbols, total=0, offset=0, missing=[])

    df, missing = enrich_with_quotes(symbols, provider)
    df = apply_price_filters(df, filters)
    df = sort_frame(df, filters.get("sort"), bool(filters.get("reverse")))
    total = len(df)

    if filters.get("all"):
        return TraceResult(frame=df.reset_index(drop=True), total=total, offset=0, missing=missing)
    page, offset = paginate(df, filters.get("limit") or PAGE_LIMIT, filters.get("page"))
    return TraceResult(frame=page.reset_index(drop=True), total=total, offset=offset, missing=missing)
