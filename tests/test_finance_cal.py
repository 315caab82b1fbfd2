from __future__ import annotations

from src.finance_cal import parse_calendar

CAL_HTML = """
<ul class="insider-list">
  <li class="list">
    <time>07-02</time>
    <h4><a href="http://www.yuncaijing.com/insider/main/1.html">2024世界人工智能大会
        在上海开幕</a></h4>
    <div class="related-stock">
      <a href="/quote/sz300036.html">超图软件300036 2.15%</a>
      <a href="/quote/sh600519.html">贵州茅台600519</a>
      <a class="to-multi" href="/quote/multi.html">更多</a>
      <a href="/news/1.html">新闻</a>
    </div>
  </li>
  <li class="list">
    <time>07-05</time>
    <h4><a href="http://www.yuncaijing.com/insider/main/2.html">新能源汽车下乡</a></h4>
  </li>
</ul>
"""


def test_parse_calendar_items() -> None:
    events = parse_calendar(CAL_HTML)

    assert len(events) == 2
    first = events[0]
    assert first.time == "07-02"
    assert first.title == "2024世界人工智能大会 在上海开幕"
    assert first.link == "http://www.yuncaijing.com/insider/main/1.html"
    assert first.related == [("300036", "超图软件"), ("600519", "贵州茅台")]
    assert events[1].related == []


def test_parse_calendar_without_items() -> None:
    assert parse_calendar("<html><body>暂无数据</body></html>") == []


def test_fetch_calendar_uses_calendar_source(monkeypatch) -> None:
    from src import finance_cal

    calls = []

    def _fake(url, provider, **kwargs):
        calls.append((url, provider))
        return CAL_HTML

    monkeypatch.setattr(finance_cal, "fetch_text", _fake)

    assert len(finance_cal.fetch_calendar()) == 2
    assert calls == [("http://www.yuncaijing.com/insider/simple.html", "yuncaijing")]
