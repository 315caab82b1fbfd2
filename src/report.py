from __future__ import annotations

import math
from dataclasses import asdict

import pandas as pd

from .dates import display_date
from .models import CalendarEvent, DateRange, QuoteRecord, TopTrade, TradeSummary, TradingEvent

QUOTE_HEADERS = {
    "name": "公司",
    "code": "代码",
    "price": "当前价",
    "inc": "涨跌",
    "inc_pct": "涨跌%",
    "low": "最低",
    "high": "最高",
    "open": "开盘价",
    "close": "上次收盘",
    "capacity": "总市值",
    "pe": "P/E",
    "pb": "P/B",
}

TRACE_HEADERS = {
    "name": "公司",
    "code": "代码",
    "price": "当前价",
    "inc_pct": "涨跌%",
    "cheap": "买点",
    "expensive": "卖点",
    "target": "目标价",
    "pct": "上涨空间%",
    "star": "星级",
    "capacity": "总市值",
    "pe": "P/E",
    "pb": "P/B",
    "comment": "备注",
}

EVENT_HEADERS = {
    "company_name": "证券简称",
    "company_code": "代码",
    "person_name": "交易人",
    "change_shares": "变动股数",
    "avg_price": "均价",
    "holding_after": "结存股数",
    "change_date": "变动日期",
    "form_date": "填报日期",
    "reason": "变动原因",
    "insider_name": "高管姓名",
    "relation": "关系",
    "role": "职务",
}

TOP_HEADERS = {
    "company_name": "公司简称",
    "company_code": "证券代码",
    "mean_price": "交易均价",
    "amount": "交易股数",
    "total_value": "交易总额",
}

CAL_HEADERS = {"time": "时间", "title": "事件", "related": "相关股票"}


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def fmt_number(value, digits: int = 2) -> str:
    if _missing(value):
        return "N/A"
    return f"{value:,.{digits}f}"


def fmt_shares(value) -> str:
    if _missing(value):
        return "-"
    return f"{value:,.0f}"


def fmt_money(value) -> str:
    if _missing(value):
        return "N/A"
    return f"¥ {value:,.2f}"


def fmt_pct(value) -> str:
    if _missing(value):
        return "N/A"
    return f"{value:.2f} %"


def fmt_star(value) -> str:
    if _missing(value):
        return "-"
    return f"{value:g}" if float(value).is_integer() else f"{value:.4f}"


def render_frame(df: pd.DataFrame, headers: dict[str, str]) -> str:
    if df.empty:
        return ""
    cols = [c for c in headers if c in df.columns]
    return df[cols].rename(columns=headers).to_string(index=False)


def quotes_table(quotes: list[QuoteRecord]) -> str:
    df = pd.DataFrame([q.as_dict() for q in quotes])
    if df.empty:
        return ""
    for col in ["price", "inc", "low", "high", "open", "close", "capacity", "pe", "pb"]:
        if col in df.columns:
            df[col] = df[col].map(fmt_number)
    df["inc_pct"] = df["inc_pct"].map(fmt_pct)
    return render_frame(df, QUOTE_HEADERS)


def trace_table(df: pd.DataFrame) -> str:
    if df.empty:
        return ""
    out = df.copy()
    for col in ["price", "cheap", "expensive", "target", "capacity", "pe", "pb"]:
        if col in out.columns:
            out[col] = out[col].map(fmt_number)
    for col in ["pct", "inc_pct"]:
        out[col] = out[col].map(fmt_pct)
    out["star"] = out["star"].map(fmt_star)
    out["comment"] = out["comment"].fillna("").astype(str).str.slice(0, 50)
    return render_frame(out, TRACE_HEADERS)


def events_table(events: list[TradingEvent]) -> str:
    df = pd.DataFrame([asdict(e) for e in events])
    if df.empty:
        return ""
    df["change_shares"] = df["change_shares"].map(fmt_shares)
    df["holding_after"] = df["holding_after"].map(fmt_shares)
    df["avg_price"] = df["avg_price"].map(lambda v: fmt_number(v))
    df = df.dropna(axis=1, how="all")
    return render_frame(df, EVENT_HEADERS)


def top_table(trades: list[TopTrade]) -> str:
    df = pd.DataFrame([asdict(t) for t in trades])
    if df.empty:
        return ""
    df["amount"] = df["amount"].map(fmt_shares)
    df["mean_price"] = df["mean_price"].map(fmt_money)
    df["total_value"] = df["total_value"].map(fmt_money)
    return render_frame(df, TOP_HEADERS)


def calendar_table(events: list[CalendarEvent]) -> str:
    df = pd.DataFrame(
        [
            {
                "time": e.time,
                "title": e.title,
                "related": ",".join(f"({code}){name}" for code, name in e.related),
            }
            for e in events
        ]
    )
    return render_frame(df, CAL_HEADERS)


def summary_lines(summary: TradeSummary) -> list[str]:
    lines = [
        f"净增持股数： {fmt_shares(summary.net_buy_shares):<18} 净增持额： {fmt_money(summary.net_buy_cost):<20}",
        f"总增持股数： {fmt_shares(summary.buy_shares):<18} 增持均价： {fmt_number(summary.buy_avg_price):<20} "
        f"总增持额： {fmt_money(summary.buy_cost)}",
        f"总减持股数： {fmt_shares(summary.sell_shares):<18} 减持均价： {fmt_number(summary.sell_avg_price):<20} "
        f"总减持额： {fmt_money(summary.sell_proceeds)}",
    ]
    if summary.company:
        lines[0] += f" 公    司： {summary.company}"
    return lines


def range_label(date_range: DateRange | None) -> str:
    if date_range is None:
        return ""
    return f"从: {display_date(date_range.start)}, 到: {display_date(date_range.end)}"
