from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .config import CHUNK_SIZE, DEFAULT_DATA_SOURCE, MARKET_PREFIXES, QUOTE_TIMEOUT_SECONDS
from .errors import BatchTooLargeError, InputError
from .http_client import fetch_text
from .models import QuoteBatch, QuoteRecord

logger = logging.getLogger(__name__)

FUNDAMENTAL_FIELDS = ("capacity", "pe", "pb")

_ASSIGNMENT = re.compile(r'(?:var\s+)?([A-Za-z_]\w*)\s*=\s*"([^"]*)"\s*;?')


@dataclass(frozen=True)
class QuoteProvider:
    name: str
    url: str
    flag: str
    sep: str
    fields: Mapping[str, int]
    headers: Mapping[str, str] = field(default_factory=dict)

    def supports(self, key: str) -> bool:
        return key in self.fields


PROVIDERS = MappingProxyType(
    {
        "SINA": QuoteProvider(
            name="sina",
            url="http://hq.sinajs.cn/list=",
            flag="hq_str_",
            sep=",",
            fields=MappingProxyType({"name": 0, "open": 1, "close": 2, "price": 3, "high": 4, "low": 5}),
            headers=MappingProxyType({"Referer": "https://finance.sina.com.cn"}),
        ),
        "TENCENT": QuoteProvider(
            name="tencent",
            url="http://qt.gtimg.cn/q=",
            flag="v_",
            sep="~",
            fields=MappingProxyType(
                {
                    "name": 1,
                    "price": 3,
                    "close": 4,
                    "open": 5,
                    "high": 33,
                    "low": 34,
                    "pe": 39,
                    "capacity": 45,
                    "pb": 46,
                }
            ),
        ),
    }
)


def resolve_provider(name: str | None) -> QuoteProvider:
    key = (name or "").strip().upper()
    return PROVIDERS.get(key) or PROVIDERS[DEFAULT_DATA_SOURCE]


def market_of(code: str) -> str | None:
    return MARKET_PREFIXES.get(code[:3])


def market_symbol(code: str) -> str | None:
    market = market_of(code)
    return f"{market}{code}" if market else None


def parse_codes(text: str, limit: int = CHUNK_SIZE) -> list[str]:
    symbols = (text or "").replace("，", ",").strip().rstrip(",")
    if not re.fullmatch(r"[0-9,]+", symbols):
        raise InputError("Only stock codes separated by ',' are supported, please check the input.")
    codes = [c for c in symbols.split(",") if c]
    if len(codes) > limit:
        raise BatchTooLargeError(len(codes), limit)
    return codes


def chunk(items: list, size: int = CHUNK_SIZE) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _safe_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        num = float(value)
    except ValueError:
        return None
    if math.isnan(num):
        return None
    return num


def split_assignments(body: str) -> dict[str, str]:
    return {m.group(1): m.group(2) for m in _ASSIGNMENT.finditer(body)}


def change_pct(price: float | None, close: float | None) -> float | None:
    if price is None or not close:
        return None
    return (price - close) / close * 100


def build_quote(code: str, value: str, provider: QuoteProvider) -> QuoteRecord:
    parts = value.split(provider.sep)

    def pick(key: str) -> str | None:
        idx = provider.fields.get(key)
        if idx is None or idx >= len(parts):
            return None
        return parts[idx]

    close = _safe_float(pick("close"))
    # A suspended stock reports price 0; fall back to the previous close.
    price = _safe_float(pick("price")) or close
    inc = price - close if price is not None and close is not None else None
    return QuoteRecord(
        code=code,
        name=(pick("name") or "").replace(" ", ""),
        price=price,
        close=close,
        open=_safe_float(pick("open")),
        low=_safe_float(pick("low")),
        high=_safe_float(pick("high")),
        inc=inc,
        inc_pct=change_pct(price, close),
        fundamentals={key: _safe_float(pick(key)) for key in FUNDAMENTAL_FIELDS if provider.supports(key)},
    )


def parse_quote_response(body: str, codes: list[str], provider: QuoteProvider) -> QuoteBatch:
    assigned = split_assignments(body)
    quotes: list[QuoteRecord] = []
    missing: list[str] = []
    for code in codes:
        symbol = market_symbol(code)
        value = assigned.get(f"{provider.flag}{symbol}") if symbol else None
        if not value:
            missing.append(code)
            continue
        quotes.append(build_quote(code, value, provider))
    return QuoteBatch(quotes=quotes, missing=missing)


def fetch_quotes(codes: list[str], provider: QuoteProvider) -> QuoteBatch:
    if len(codes) > CHUNK_SIZE:
        raise BatchTooLargeError(len(codes), CHUNK_SIZE)
    symbols = [s for s in (market_symbol(c) for c in codes) if s]
    if not symbols:
        return QuoteBatch(quotes=[], missing=list(codes))

    body = fetch_text(
        provider.url + ",".join(symbols),
        provider.name,
        headers=dict(provider.headers),
        timeout_seconds=QUOTE_TIMEOUT_SECONDS,
        legacy_encoding=True,
    )
    batch = parse_quote_response(body, codes, provider)
    logger.debug("%s returned %d quotes, %d missing", provider.name, len(batch.quotes), len(batch.missing))
    return batch
