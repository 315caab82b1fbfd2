from __future__ import annotations

import time

import pandas as pd
import streamlit as st

from src.config import PAGE_LIMIT, SORT_FIELDS, WATCH_INTERVAL_SECONDS
from src.errors import StarError
from src.quotes import fetch_quotes, parse_codes, resolve_provider
from src.report import QUOTE_HEADERS, TRACE_HEADERS
from src.store import load_document, load_symbols, resolve_symbol_file
from src.trace import trace_symbols
from src.watch import resolve_watch_codes


@st.cache_data(show_spinner=False, ttl=5)
def _quotes(codes: tuple[str, ...], data: str) -> tuple[pd.DataFrame, list[str]]:
    batch = fetch_quotes(list(codes), resolve_provider(data))
    return pd.DataFrame([q.as_dict() for q in batch.quotes]), batch.missing


@st.cache_data(show_spinner=False, ttl=60)
def _trace(symbol_file: str, data: str, filters: dict) -> pd.DataFrame:
    entries = load_symbols(resolve_symbol_file(symbol_file or None))
    return trace_symbols(entries, resolve_provider(data), dict(filters)).frame


def _headers(df: pd.DataFrame, headers: dict[str, str]) -> pd.DataFrame:
    cols = [c for c in headers if c in df.columns]
    return df[cols].rename(columns=headers)


def render_watch(data: str) -> None:
    codes_text = st.sidebar.text_input("股票代码", value="", placeholder="例: 000858,600519")
    interval = st.sidebar.number_input("刷新间隔(秒)", min_value=1.0, max_value=600.0, value=float(WATCH_INTERVAL_SECONDS))
    auto = st.sidebar.checkbox("自动刷新", value=True)

    if codes_text.strip():
        codes = parse_codes(codes_text)
    else:
        codes = resolve_watch_codes(None, load_document(resolve_symbol_file()))

    df, missing = _quotes(tuple(codes), data)
    st.subheader("股票列表")
    if df.empty:
        st.warning("没有可显示的行情。")
    else:
        st.dataframe(_headers(df, QUOTE_HEADERS), hide_index=True, use_container_width=True)
    for code in missing:
        st.caption(f"该股票代码不存在: {code}")

    if auto:
        # one script run per session, so refreshes are serialized
        time.sleep(interval)
        st.rerun()


def render_trace(data: str) -> None:
    st.sidebar.subheader("筛选")
    symbol_file = st.sidebar.text_input("股票文件", value="")
    base = st.sidebar.radio("范围", options=["watch", "hold", "ignore", "all"], horizontal=True)
    filters = {
        "all": base == "all",
        "hold": base == "hold",
        "ignore": base == "ignore",
        "exclude": st.sidebar.text_input("排除代码前缀", value=""),
        "contain": st.sidebar.text_input("包含代码前缀", value=""),
        "grep": st.sidebar.text_input("关键字", value=""),
        "remove": st.sidebar.text_input("移除关键字", value=""),
        "above": st.sidebar.number_input("最低星级", min_value=0, max_value=10, value=0) or None,
        "sort": st.sidebar.selectbox("排序", options=sorted(SORT_FIELDS), index=sorted(SORT_FIELDS).index("targetp")),
        "reverse": st.sidebar.checkbox("升序", value=False),
        "limit": PAGE_LIMIT,
    }
    with st.spinner("数据加载中..."):
        df = _trace(symbol_file, data, filters)
    st.subheader(f"股票追踪 ({len(df)})")
    st.dataframe(_headers(df, TRACE_HEADERS), hide_index=True, use_container_width=True)


def main() -> None:
    st.set_page_config(page_title="Star", layout="wide")
    st.sidebar.title("菜单")
    menu = st.sidebar.radio("选择", options=["盯盘", "股票追踪"])
    data = st.sidebar.radio("数据源", options=["tencent", "sina"], horizontal=True)

    try:
        if menu == "盯盘":
            render_watch(data)
        else:
            render_trace(data)
    except StarError as error:
        st.error(str(error))


if __name__ == "__main__":
    main()
