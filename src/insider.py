"""Insider trading disclosures from the Shenzhen/Shanghai exchanges and uzfin.com."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping

import pandas as pd
from bs4 import BeautifulSoup

from .config import (
    AGGREGATOR_MARKETS,
    AGGREGATOR_PAGE_LIMIT,
    CHUNK_SIZE,
    INSIDER_TIMEOUT_SECONDS,
    IN_DATE_FMT,
    LATEST_SPAN_DEFAULT,
    LATEST_SPAN_MAX_DAYS,
    MISC_SPAN_DEFAULT,
    SZ_NO_DATA_TEXT,
    SZ_PAGE_SIZE,
    TOP_ORDERS,
    TOP_SPAN_DEFAULT,
    TOP_SPAN_MAX_MONTHS,
    WINDOW_SPAN_DEFAULT,
    WINDOW_SPAN_MAX_MONTHS,
)
from .dates import parse_date, parse_span, resolve_date_range, subtract_span, wire_date
from .errors import BatchTooLargeError, InputError
from .filters import split_list
from .http_client import ProviderError, fetch_json, fetch_text
from .models import DateRange, DisclosurePage, InsiderReport, PageInfo, TopRanking, TopTrade, TradingEvent
from .quotes import market_of
from .summary import summarize

logger = logging.getLogger(__name__)

_PAGER_CALL = re.compile(r"gotoReportPageNo\s*\(([^)]*)\)")
_JSONP = re.compile(r"^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$", re.DOTALL)


@dataclass(frozen=True)
class ExchangeEndpoint:
    name: str
    url: str
    code_key: str
    begin_key: str
    end_key: str
    params: Mapping[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = INSIDER_TIMEOUT_SECONDS

    def build_params(self, code: str | None, date_range: DateRange, **extra: Any) -> dict[str, Any]:
        params = dict(self.params)
        params[self.code_key] = code or ""
        params[self.begin_key] = wire_date(date_range.start)
        params[self.end_key] = wire_date(date_range.end)
        params.update(extra)
        return params


SZ_ENDPOINT = ExchangeEndpoint(
    name="szse",
    url="http://www.szse.cn/api/report/ShowReport/data",
    code_key="txtDMorJC",
    begin_key="txtStart",
    end_key="txtEnd",
    params=MappingProxyType(
        {
            "SHOWTYPE": "JSON",
            "CATALOGID": "1801_cxda",
            "TABKEY": "tab1",
            "txtGgxm": "",
        }
    ),
    headers=MappingProxyType({"Host": "www.szse.cn"}),
)

SH_ENDPOINT = ExchangeEndpoint(
    name="sse",
    url="http://query.sse.com.cn/commonQuery.do",
    code_key="COMPANY_CODE",
    begin_key="BEGIN_DATE",
    end_key="END_DATE",
    params=MappingProxyType(
        {
            "jsonCallBack": "jsonpCallback77077",
            "sqlId": "COMMON_SSE_XXPL_CXJL_SSGSGFBDQK_S",
            "isPagination": "false",
            "NAME": "",
            "pageHelp.pageSize": 15,
            "pageHelp.cacheSize": 5,
        }
    ),
    headers=MappingProxyType(
        {
            "Host": "query.sse.com.cn",
            "Referer": "http://www.sse.com.cn/disclosure/listedinfo/credibility/change/",
        }
    ),
)

AGGREGATOR_URL = "http://uzfin.com/api/v1/star"
AGGREGATOR_TOP_URL = "http://uzfin.com/api/v1/star/top"


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    return None if math.isnan(num) else num


def _clean(value: Any) -> str:
    return str(value or "").replace(" ", "").replace("　", "").strip()


def _display_date(value: Any) -> str:
    text = str(value or "").strip()
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return text
    return parsed.strftime(IN_DATE_FMT)


def event_from_row(row: Mapping[str, Any]) -> TradingEvent:
    return TradingEvent(
        company_code=_clean(row.get("COMPANY_CODE")),
        company_name=_clean(row.get("COMPANY_ABBR")),
        person_name=_clean(row.get("NAME")),
        change_date=_display_date(row.get("CHANGE_DATE")),
        change_shares=_to_float(row.get("CHANGE_NUM")) or 0.0,
        avg_price=abs(_to_float(row.get("CURRENT_AVG_PRICE")) or 0.0),
        reason=_clean(row.get("CHANGE_REASON")),
        holding_after=_to_float(row.get("HOLDSTOCK_NUM")),
        role=_clean(row.get("DUTY")),
        form_date=_display_date(row["FORM_DATE"]) if row.get("FORM_DATE") else None,
    )


def parse_sz_events(html: str) -> list[TradingEvent]:
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one("#REPORTID_tab1") or soup
    events = []
    for tr in table.select("tr[bgcolor]"):
        cells = [td.get_text(strip=True) for td in tr.find_all("td")]
        if len(cells) < 12:
            continue
        events.append(
            TradingEvent(
                company_code=cells[0],
                company_name=_clean(cells[1]),
                person_name=_clean(cells[2]),
                change_date=_display_date(cells[3]),
                change_shares=_to_float(cells[4]) or 0.0,
                avg_price=abs(_to_float(cells[5]) or 0.0),
                reason=cells[6],
                holding_after=_to_float(cells[8]),
                role=cells[10],
                insider_name=_clean(cells[9]) or None,
                relation=cells[11] or None,
            )
        )
    return events


def parse_pager_call(onclick: str) -> PageInfo:
    """Read (total pages, total rows) from the last two arguments of gotoReportPageNo(...)."""
    m = _PAGER_CALL.search(onclick or "")
    if m is None:
        raise ProviderError(SZ_ENDPOINT.name, "BAD_RESPONSE", f"Unrecognized pagination control: {onclick!r}")
    args = [arg.strip().strip("'\"") for arg in m.group(1).split(",")]
    if len(args) < 2 or not all(a.isdigit() for a in args[-2:]):
        raise ProviderError(SZ_ENDPOINT.name, "BAD_RESPONSE", f"Unrecognized pagination arguments: {m.group(1)!r}")
    return PageInfo(total_pages=int(args[-2]), total_rows=int(args[-1]))


def parse_sz_paging(html: str) -> PageInfo:
    soup = BeautifulSoup(html, "html.parser")
    notice = soup.select_one('td[colspan="12"]')
    if notice is not None and notice.get_text(strip=True) == SZ_NO_DATA_TEXT:
        return PageInfo(total_pages=0, total_rows=0)

    onclick = ""
    for selector in ("input.cls-navigate-next", "input.cls-navigate-prev"):
        button = soup.select_one(selector)
        if button is not None and button.get("onclick"):
            onclick = button["onclick"]
            break
    if not onclick:
        return PageInfo(total_pages=1, total_rows=len(parse_sz_events(html)))
    return parse_pager_call(onclick)


def _expect_dict(payload: Any, provider: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ProviderError(provider, "BAD_RESPONSE", f"{provider} returned an unexpected payload.")
    return payload


def strip_jsonp(text: str) -> Any:
    m = _JSONP.match(text or "")
    payload = m.group(1) if m else text
    try:
        return json.loads(payload)
    except json.JSONDecodeError as error:
        raise ProviderError(SH_ENDPOINT.name, "BAD_RESPONSE", "Unable to decode the JSONP payload.") from error


class ShenzhenExchange:
    endpoint = SZ_ENDPOINT
    page_size = SZ_PAGE_SIZE

    def fetch_page(self, code: str | None, date_range: DateRange, page: int = 1) -> DisclosurePage:
        params = self.endpoint.build_params(code, date_range, tab1PAGENUM=max(page, 1))
        html = fetch_text(
            self.endpoint.url,
            self.endpoint.name,
            params=params,
            headers=dict(self.endpoint.headers),
            timeout_seconds=self.endpoint.timeout,
            legacy_encoding=True,
        )
        events = parse_sz_events(html)
        page_info = parse_sz_paging(html)
        logger.debug("szse page %d/%d, %d rows", page, page_info.total_pages, len(events))
        return DisclosurePage(events=events, page_info=page_info, date_range=date_range, page=max(page, 1))


class ShanghaiExchange:
    endpoint = SH_ENDPOINT

    def fetch_page(self, code: str | None, date_range: DateRange, page: int = 1) -> DisclosurePage:
        params = self.endpoint.build_params(code, date_range)
        text = fetch_text(
            self.endpoint.url,
            self.endpoint.name,
            params=params,
            headers=dict(self.endpoint.headers),
            timeout_seconds=self.endpoint.timeout,
        )
        payload = strip_jsonp(text)
        rows = _expect_dict(payload, self.endpoint.name).get("result") or []
        events = [event_from_row(row) for row in rows]
        return DisclosurePage(
            events=events,
            page_info=PageInfo(total_pages=1 if events else 0, total_rows=len(events)),
            date_range=date_range,
        )


class AggregatorService:
    name = "uzfin.com"

    def fetch_page(
        self,
        code: str | None = None,
        market: str | None = None,
        page: int = 1,
        limit: int = AGGREGATOR_PAGE_LIMIT,
        date_from: str | None = None,
        date_to: str | None = None,
        span: str | None = None,
        today: date | None = None,
    ) -> DisclosurePage:
        markets = [m.upper() for m in split_list(market)]
        unknown = [m for m in markets if m not in AGGREGATOR_MARKETS]
        if unknown:
            raise InputError(f"Unknown market: {','.join(unknown)}, expected one of {','.join(AGGREGATOR_MARKETS)}.")

        params: dict[str, Any] = {
            "code": ",".join(split_list(code)),
            "market": ",".join(markets),
            "page": max(page, 1),
            "limit": limit,
            "from": wire_date(parse_date(date_from)) if date_from else "",
            "to": wire_date(parse_date(date_to)) if date_to else "",
            "span": span or "",
        }
        if not date_from and not date_to and not span:
            params["span"] = MISC_SPAN_DEFAULT

        res = _expect_dict(
            fetch_json(AGGREGATOR_URL, self.name, params=params, timeout_seconds=INSIDER_TIMEOUT_SECONDS), self.name
        )
        events = [event_from_row(row) for row in res.get("data") or []]
        total = _to_float(res.get("total")) if res.get("total") not in (None, "") else float(len(events))
        if total is None or total < 0:
            raise ProviderError(
                self.name, "BAD_RESPONSE", f"{self.name} returned an invalid total: {res.get('total')!r}"
            )
        total = int(total)
        condition = res.get("condition") or {}
        today = today or date.today()
        begin = pd.to_datetime(condition.get("beginDate"), errors="coerce")
        end = pd.to_datetime(condition.get("endDate"), errors="coerce")
        date_range = DateRange(
            start=today if pd.isna(begin) else begin.date(),
            end=today if pd.isna(end) else end.date(),
        )
        return DisclosurePage(
            events=events,
            page_info=PageInfo(total_pages=math.ceil(total / limit) if limit else 1, total_rows=total),
            date_range=date_range,
            page=params["page"],
        )

    def fetch_top(self, order: str, span: str | None = None, today: date | None = None) -> TopRanking:
        if order not in TOP_ORDERS:
            raise InputError(f"Unknown ranking order: {order}")
        months = parse_span(span, TOP_SPAN_MAX_MONTHS) or parse_span(TOP_SPAN_DEFAULT, TOP_SPAN_MAX_MONTHS)
        res = _expect_dict(
            fetch_json(
                AGGREGATOR_TOP_URL,
                self.name,
                params={"span": f"{months}m", "order": order},
                timeout_seconds=INSIDER_TIMEOUT_SECONDS,
            ),
            self.name,
        )
        months = parse_span((res.get("condition") or {}).get("span"), TOP_SPAN_MAX_MONTHS) or months
        trades = [
            TopTrade(
                company_code=_clean(row.get("COMPANY_CODE")),
                company_name=_clean(row.get("COMPANY_ABBR")),
                mean_price=_to_float(row.get("meanPrice")),
                amount=_to_float(row.get("amount")),
                total_value=_to_float(row.get("totalValue")),
            )
            for row in res.get("data") or []
        ]
        today = today or date.today()
        return TopRanking(
            order=order,
            trades=trades,
            date_range=DateRange(start=subtract_span(today, months, "month"), end=today),
            span_months=months,
        )


def exchange_for(code: str) -> ShenzhenExchange | ShanghaiExchange:
    market = market_of(code)
    if market == "sz":
        return ShenzhenExchange()
    if market == "sh":
        return ShanghaiExchange()
    raise InputError(f"Unsupported stock code: {code}")


def query_insider(
    code: str,
    date_from: str | None = None,
    date_to: str | None = None,
    span: str | None = None,
    page: int = 1,
    today: date | None = None,
) -> InsiderReport:
    code = (code or "").strip()
    if not code.isdigit():
        raise InputError("Only a single stock code is supported, please check the input.")
    source = exchange_for(code)
    date_range = resolve_date_range(
        date_from, date_to, span, "month", WINDOW_SPAN_MAX_MONTHS, WINDOW_SPAN_DEFAULT, today
    )
    result = source.fetch_page(code, date_range, page)
    return InsiderReport(
        code=code,
        events=result.events,
        summary=summarize(result.events),
        date_range=date_range,
        page=result.page,
        page_info=result.page_info,
    )


def query_insiders(
    codes: list[str], **kwargs: Any
) -> tuple[list[InsiderReport], dict[str, ProviderError]]:
    if len(codes) > CHUNK_SIZE:
        raise BatchTooLargeError(len(codes), CHUNK_SIZE)
    reports: list[InsiderReport] = []
    failures: dict[str, ProviderError] = {}
    for code in codes:
        try:
            reports.append(query_insider(code, **kwargs))
        except ProviderError as error:
            logger.debug("insider query for %s failed: %s", code, error)
            failures[code] = error
    return reports, failures


def query_latest(market: str, span: str | None = None, page: int = 1, today: date | None = None) -> DisclosurePage:
    sources = {"sz": ShenzhenExchange, "sh": ShanghaiExchange}
    if market not in sources:
        raise InputError(f"Unknown market: {market}")
    date_range = resolve_date_range(None, None, span, "day", LATEST_SPAN_MAX_DAYS, LATEST_SPAN_DEFAULT, today)
    return sources[market]().fetch_page(None, date_range, page)


def query_aggregator(**kwargs: Any) -> DisclosurePage:
    return AggregatorService().fetch_page(**kwargs)


def query_top(order: str, span: str | None = None, today: date | None = None) -> TopRanking:
    return AggregatorService().fetch_top(order, span, today)
