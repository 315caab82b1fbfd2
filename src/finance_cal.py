from __future__ import annotations

import re

from bs4 import BeautifulSoup

from .config import CAL_URL, USER_AGENT
from .http_client import fetch_text
from .models import CalendarEvent

CAL_HEADERS = {"Host": "www.yuncaijing.com", "User-Agent": USER_AGENT}


def _split_stock(text: str) -> tuple[str, str]:
    m = re.search(r"\d+", text)
    code = m.group(0) if m else ""
    # anchor text is "<name><code> <change>%"
    name = re.sub(r"[\d.%+\-\s]+", "", text)
    return code, name


def parse_calendar(html: str) -> list[CalendarEvent]:
    soup = BeautifulSoup(html, "html.parser")
    events = []
    for item in soup.select("li.list"):
        link = item.select_one("h4 a")
        title = " ".join(link.get_text().split()) if link else ""
        time_tag = item.select_one("time")
        related = []
        for a in item.select('.related-stock a[href*="/quote/"]'):
            if "to-multi" in (a.get("class") or []):
                continue
            related.append(_split_stock(a.get_text(strip=True)))
        events.append(
            CalendarEvent(
                time=time_tag.get_text(strip=True) if time_tag else "",
                title=title,
                link=link.get("href") if link else None,
                related=related,
            )
        )
    return events


def fetch_calendar() -> list[CalendarEvent]:
    html = fetch_text(CAL_URL, "yuncaijing", headers=CAL_HEADERS)
    return parse_calendar(html)
