from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass
class SymbolEntry:
    code: str
    name: str = ""
    target: float | None = None
    cheap: float | None = None
    expensive: float | None = None
    star: float | None = None
    watch: bool = False
    hold: bool = False
    comment: str = ""


@dataclass
class QuoteRecord:
    code: str
    name: str
    price: float | None
    close: float | None
    open: float | None
    low: float | None
    high: float | None
    inc: float | None
    inc_pct: float | None
    # Only the fundamentals the provider actually exposes (capacity, pe, pb).
    fundamentals: dict[str, float | None] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        row = {
            "code": self.code,
            "name": self.name,
            "price": self.price,
            "close": self.close,
            "open": self.open,
            "low": self.low,
            "high": self.high,
            "inc": self.inc,
            "inc_pct": self.inc_pct,
        }
        row.update(self.fundamentals)
        return row


@dataclass
class QuoteBatch:
    quotes: list[QuoteRecord]
    missing: list[str]


@dataclass
class TradingEvent:
    company_code: str
    company_name: str
    person_name: str
    change_date: str
    change_shares: float
    avg_price: float
    reason: str = ""
    holding_after: float | None = None
    role: str = ""
    form_date: str | None = None
    insider_name: str | None = None
    relation: str | None = None


@dataclass
class TradeSummary:
    buy_shares: float
    sell_shares: float
    buy_cost: float
    sell_proceeds: float
    net_buy_shares: float
    net_buy_cost: float
    buy_avg_price: float | None
    sell_avg_price: float | None
    company: str = ""


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass
class PageInfo:
    total_pages: int
    total_rows: int


@dataclass
class DisclosurePage:
    events: list[TradingEvent]
    page_info: PageInfo
    date_range: DateRange | None = None
    page: int = 1


@dataclass
class InsiderReport:
    code: str
    events: list[TradingEvent]
    summary: TradeSummary | None
    date_range: DateRange | None
    page: int = 1
    page_info: PageInfo | None = None


@dataclass
class TopTrade:
    company_code: str
    company_name: str
    mean_price: float | None
    amount: float | None
    total_value: float | None


@dataclass
class TopRanking:
    order: str
    trades: list[TopTrade]
    date_range: DateRange
    span_months: int


@dataclass
class CalendarEvent:
    time: str
    title: str
    link: str | None
    related: list[tuple[str, str]] = field(default_factory=list)
