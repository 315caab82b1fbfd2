#!/usr/bin/env python3
"""Star: command line tool for STock Analysis and Research."""

from __future__ import annotations

import argparse
import logging
import time

from src.config import AGGREGATOR_PAGE_LIMIT, SORT_FIELDS, WATCH_INTERVAL_SECONDS
from src.errors import InputError, StarError
from src.filters import split_list
from src.finance_cal import fetch_calendar
from src.insider import query_aggregator, query_insiders, query_latest, query_top
from src.quotes import fetch_quotes, parse_codes, resolve_provider
from src.report import (
    calendar_table,
    events_table,
    quotes_table,
    range_label,
    summary_lines,
    top_table,
    trace_table,
)
from src.store import load_document, load_margin_set, load_symbols, resolve_margin_file, resolve_symbol_file
from src.summary import summarize_by_company
from src.trace import trace_symbols
from src.watch import WatchLoop, resolve_watch_codes

logger = logging.getLogger("star")

SHOW_DETAIL_TIP = '  具体交易记录省略，可通过 "--show-detail" 参数查看详情...'
NO_TRADING = "在当前时间范围内无董监高交易记录！"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="star",
        description="Star is a command line tool for STock Analysis and Research.",
        usage="%(prog)s [options] OR %(prog)s code1,code2,...,codeN",
    )
    p.add_argument("codes", nargs="*", help="query quotes of the given codes, separated by ','.")
    p.add_argument("-a", "--all", action="store_true", help="display all stocks.")
    p.add_argument("-o", "--hold", action="store_true", help="display all held stocks.")
    p.add_argument("-M", "--margin", action="store_true", help="display stocks that support margin trading.")
    p.add_argument("-C", "--cal", action="store_true", help="display finance calendar of the future month.")
    p.add_argument("-I", "--ignore", action="store_true", help="display all ignored stocks.")
    p.add_argument("-i", "--insider", nargs="?", const=True, help="display insider trading records of the given codes.")
    p.add_argument("--code", help="stock codes of the aggregator insider query.")
    p.add_argument("--market", help="aggregator market filter: SZM, SZGEM, SZSME, SHM, separated by ','.")
    p.add_argument("--top-buy", action="store_true", help="top buy of insider tradings, time span 1m~12m.")
    p.add_argument("--top-sell", action="store_true", help="top sell of insider tradings, time span 1m~12m.")
    p.add_argument("--latest-sz", action="store_true", help="latest insider tradings of the ShenZhen market.")
    p.add_argument("--latest-sh", action="store_true", help="latest insider tradings of the ShangHai market.")
    p.add_argument("--show-detail", action="store_true", help="show detail of latest insider trading records.")
    p.add_argument("-w", "--watch", nargs="?", const=True, help="watch the given codes or the watch list.")
    p.add_argument("--interval", type=float, default=WATCH_INTERVAL_SECONDS, help="watch refresh interval in seconds.")
    p.add_argument("-r", "--reverse", action="store_true", help="sort in ascending order.")
    p.add_argument("-l", "--limit", type=int, help="total display limit of the current page.")
    p.add_argument("-p", "--page", type=int, help="page index to display.")
    p.add_argument("-d", "--data", help='data provider, one of "sina" or "tencent".')
    p.add_argument("-f", "--file", help="symbol file path, remembered for later runs.")
    p.add_argument("--from", dest="date_from", help="beginning date of insider tradings, e.g. 2014/06/01.")
    p.add_argument("--to", dest="date_to", help="ending date of insider tradings, e.g. 2015/07/09.")
    p.add_argument("--span", help="span ahead of today, e.g. 3m or 10d.")
    p.add_argument("-L", "--lte", type=float, help="upside potential lower than or equal to the percentage.")
    p.add_argument("-G", "--gte", type=float, help="upside potential greater than or equal to the percentage.")
    p.add_argument("-U", "--under", type=int, help="star under or equal to the value.")
    p.add_argument("-A", "--above", type=int, help="star above or equal to the value.")
    p.add_argument("--lteb", nargs="?", type=float, const=True, help="price lower than or equal to the buy price.")
    p.add_argument("--gtes", nargs="?", type=float, const=True, help="price greater than or equal to the sell price.")
    p.add_argument("-g", "--grep", help="keywords to grep in name, code or comment, separated by ','.")
    p.add_argument("--remove", help="remove symbols with the keywords in name or comment, separated by ','.")
    p.add_argument("-e", "--exclude", help="exclude codes beginning with the prefixes, e.g. 300,600.")
    p.add_argument("-c", "--contain", help="only codes beginning with the prefixes, e.g. 300,600.")
    p.add_argument("-s", "--sort", choices=sorted(SORT_FIELDS), help="sorting field.")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging.")
    return p


def pick_action(args: argparse.Namespace) -> str:
    if len(args.codes) > 1:
        raise InputError('Input error, please try again, or run "star -h" for more help.')
    if args.codes:
        return "QUERY"
    if args.cal:
        return "CAL"
    if args.insider:
        return "INSIDER"
    if args.watch:
        return "WATCH"
    return "TRACE"


def run_query(args: argparse.Namespace) -> None:
    started = time.monotonic()
    batch = fetch_quotes(parse_codes(args.codes[0]), resolve_provider(args.data))
    for code in batch.missing:
        logger.warning("该股票代码不存在: %s", code)
    print(quotes_table(batch.quotes))
    print(f"\nDone! 总计查询: {len(batch.quotes)} 只股票, 操作耗时: {(time.monotonic() - started) * 1000:.0f} ms")


def run_cal(args: argparse.Namespace) -> None:
    events = fetch_calendar()
    print("\n中国股市未来30日题材前瞻\n")
    print(calendar_table(events))


def _print_company_summaries(events, date_range, args: argparse.Namespace) -> None:
    print(f"\n董监高近期交易信息汇总, {range_label(date_range)}\n")
    for s in summarize_by_company(events, args.limit):
        print("\n".join("  " + line for line in summary_lines(s)))
        print("-" * 93)
    if args.show_detail:
        print("\n交易详情:")
        print(events_table(events))
    else:
        print(SHOW_DETAIL_TIP)


def run_insider(args: argparse.Namespace) -> None:
    if args.latest_sz or args.latest_sh:
        market = "sz" if args.latest_sz else "sh"
        result = query_latest(market, span=args.span, page=args.page or 1)
        _print_company_summaries(result.events, result.date_range, args)
        print(
            f"\nDone! 总记录: {result.page_info.total_rows}, 页码: {result.page} / {result.page_info.total_pages}"
        )
        return

    if args.top_buy or args.top_sell:
        ranking = query_top("top_buy_value" if args.top_buy else "top_sell_value", args.span)
        print(f"\n董监高近期交易排行榜, {range_label(ranking.date_range)}\n")
        print(top_table(ranking.trades))
        label = "买入总额前" if args.top_buy else "卖出总额前"
        print(f"\nDone! 最近 {ranking.span_months} 月 {label} {len(ranking.trades)}")
        return

    if args.insider is True or args.code or args.market:
        result = query_aggregator(
            code=args.code,
            market=args.market,
            page=args.page or 1,
            limit=args.limit or AGGREGATOR_PAGE_LIMIT,
            date_from=args.date_from,
            date_to=args.date_to,
            span=args.span,
        )
        _print_company_summaries(result.events, result.date_range, args)
        print(
            f"\nDone! 总记录: {result.page_info.total_rows}, 页码: {result.page} / {result.page_info.total_pages}"
        )
        return

    codes = split_list(args.insider)
    reports, failures = query_insiders(
        codes, date_from=args.date_from, date_to=args.date_to, span=args.span, page=args.page or 1
    )
    for report in reports:
        print(f"\n董监高近期交易信息，证券代码：{report.code}, {range_label(report.date_range)}")
        if report.summary is None:
            print(NO_TRADING)
            continue
        print("\n".join(summary_lines(report.summary)))
        print("\n交易详情:")
        print(events_table(report.events))
        if report.page_info is not None:
            print(f"总记录: {report.page_info.total_rows}, 页码: {report.page} / {report.page_info.total_pages}")
    for code, error in failures.items():
        logger.error("数据请求错误 %s: %s", code, error)
    if failures:
        raise StarError(f"{len(failures)} of {len(codes)} insider queries failed.")


def run_watch(args: argparse.Namespace) -> None:
    document = None
    if args.watch is True:
        document = load_document(resolve_symbol_file(args.file))
    codes = resolve_watch_codes(None if args.watch is True else args.watch, document, args.hold)
    provider = resolve_provider(args.data)

    def render(batch) -> None:
        print("\033[2J\033[0;0H", end="")
        print(quotes_table(batch.quotes))
        for code in batch.missing:
            print(f"该股票代码不存在: {code}")

    def on_error(error: Exception) -> None:
        if not isinstance(error, StarError):
            raise error
        logger.error("%s", error)

    WatchLoop(lambda: fetch_quotes(codes, provider), render, args.interval, on_error=on_error).run()


def run_trace(args: argparse.Namespace) -> None:
    started = time.monotonic()
    entries = load_symbols(resolve_symbol_file(args.file))
    filters = {
        "all": args.all,
        "hold": args.hold,
        "ignore": args.ignore,
        "exclude": args.exclude,
        "contain": args.contain,
        "grep": args.grep,
        "remove": args.remove,
        "above": args.above,
        "under": args.under,
        "margin": load_margin_set(resolve_margin_file()) if args.margin else None,
        "lte": args.lte,
        "gte": args.gte,
        "lteb": args.lteb,
        "gtes": args.gtes,
        "sort": args.sort,
        "reverse": args.reverse,
        "limit": args.limit,
        "page": args.page,
    }
    result = trace_symbols(entries, resolve_provider(args.data), filters)
    for code in result.missing:
        logger.warning("该股票代码不存在: %s", code)
    print(trace_table(result.frame))
    shown = f"{result.offset} - {result.offset + len(result.frame)}"
    print(
        f"\nDone! 总计: {result.total} 只股票, 当前显示第 {shown} 只, "
        f"操作耗时: {(time.monotonic() - started) * 1000:.0f} ms"
    )


ACTIONS = {
    "QUERY": run_query,
    "CAL": run_cal,
    "INSIDER": run_insider,
    "WATCH": run_watch,
    "TRACE": run_trace,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ACTIONS[pick_action(args)](args)
    except StarError as error:
        logger.error("%s", error)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
