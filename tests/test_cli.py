from __future__ import annotations

import pytest

import star
from src.errors import InputError
from src.http_client import ProviderError
from src.models import QuoteBatch, QuoteRecord


def _args(*argv: str):
    return star.build_parser().parse_args(list(argv))


@pytest.mark.parametrize(
    "argv, action",
    [
        (["000858,600519"], "QUERY"),
        (["000858", "-C"], "QUERY"),
        (["-C", "-i", "000858"], "CAL"),
        (["-i", "000858", "-w"], "INSIDER"),
        (["-w"], "WATCH"),
        ([], "TRACE"),
        (["-a", "-s", "pe"], "TRACE"),
    ],
)
def test_action_priority(argv, action) -> None:
    assert star.pick_action(_args(*argv)) == action


def test_more_than_one_positional_is_input_error() -> None:
    with pytest.raises(InputError):
        star.pick_action(_args("000858", "600519"))


def test_optional_value_flags() -> None:
    args = _args("-i", "--lteb", "--gtes", "5", "--from", "2024/01/01", "--to", "2024/02/01")
    assert args.insider is True
    assert args.lteb is True
    assert args.gtes == 5.0
    assert args.date_from == "2024/01/01"
    assert args.date_to == "2024/02/01"

    assert _args("-i", "000858,600519").insider == "000858,600519"
    assert _args("-w", "000858").watch == "000858"


def test_main_queries_quotes(monkeypatch, capsys) -> None:
    def _fetch(codes, provider):
        assert codes == ["000858", "999999"]
        quote = QuoteRecord(
            code="000858",
            name="五粮液",
            price=142.5,
            close=141.3,
            open=141.5,
            low=140.1,
            high=145.0,
            inc=1.2,
            inc_pct=0.85,
        )
        return QuoteBatch(quotes=[quote], missing=["999999"])

    monkeypatch.setattr(star, "fetch_quotes", _fetch)

    assert star.main(["000858,999999", "-d", "sina"]) == 0

    out = capsys.readouterr().out
    assert "五粮液" in out
    assert "总计查询: 1 只股票" in out


def test_main_reports_input_errors(monkeypatch) -> None:
    monkeypatch.setattr(star, "fetch_quotes", lambda codes, provider: pytest.fail("must not fetch"))
    assert star.main(["000858,abc"]) == 1


def test_failed_insider_codes_give_non_zero_exit(monkeypatch, capsys) -> None:
    def _query(codes, **kwargs):
        return [], {"000858": ProviderError("szse", "BUSY", "szse busy", 408)}

    monkeypatch.setattr(star, "query_insiders", _query)

    assert star.main(["-i", "000858"]) == 1
