from __future__ import annotations

from .models import TradeSummary, TradingEvent


def summarize(events: list[TradingEvent], company: str = "") -> TradeSummary | None:
    if not events:
        return None

    buy_shares = sell_shares = buy_cost = sell_proceeds = 0.0
    for event in events:
        value = event.change_shares * event.avg_price
        if event.change_shares > 0:
            buy_shares += event.change_shares
            buy_cost += value
        else:
            sell_shares += abs(event.change_shares)
            sell_proceeds += abs(value)

    return TradeSummary(
        buy_shares=buy_shares,
        sell_shares=sell_shares,
        buy_cost=buy_cost,
        sell_proceeds=sell_proceeds,
        net_buy_shares=buy_shares - sell_shares,
        net_buy_cost=buy_cost - sell_proceeds,
        buy_avg_price=buy_cost / buy_shares if buy_shares else None,
        sell_avg_price=sell_proceeds / sell_shares if sell_shares else None,
        company=company,
    )


def company_key(event: TradingEvent) -> str:
    return f"{event.company_code} - {event.company_name.replace(' ', '')}"


def summarize_by_company(events: list[TradingEvent], limit: int | None = None) -> list[TradeSummary]:
    groups: dict[str, list[TradingEvent]] = {}
    for event in events:
        groups.setdefault(company_key(event), []).append(event)

    summaries = [summarize(items, company=key) for key, items in groups.items()]
    summaries.sort(key=lambda s: -s.net_buy_cost)
    if limit and limit > 0:
        return summaries[:limit]
    return summaries

