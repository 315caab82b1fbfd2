from pathlib import Path

CHUNK_SIZE = 25
PAGE_LIMIT = 25
DEFAULT_DATA_SOURCE = "TENCENT"

SYMBOL_FILE = "symbols.yaml"
MARGIN_FILE = "rzrq.json"
USER_CONF_FILE = Path.home() / ".star.json"

# First three digits of a code -> exchange prefix used by the quote providers.
MARKET_PREFIXES = {
    "000": "sz",
    "001": "sz",
    "002": "sz",
    "003": "sz",
    "200": "sz",
    "300": "sz",
    "301": "sz",
    "600": "sh",
    "601": "sh",
    "603": "sh",
    "605": "sh",
    "688": "sh",
    "900": "sh",
}

IN_DATE_FMT = "%Y/%m/%d"
OUT_DATE_FMT = "%Y-%m-%d"

WINDOW_SPAN_MAX_MONTHS = 24
WINDOW_SPAN_DEFAULT = "12m"
LATEST_SPAN_MAX_DAYS = 60
LATEST_SPAN_DEFAULT = "10d"
TOP_SPAN_MAX_MONTHS = 12
TOP_SPAN_DEFAULT = "3m"
MISC_SPAN_DEFAULT = "3m"

QUOTE_TIMEOUT_SECONDS = 20
INSIDER_TIMEOUT_SECONDS = 50
BUSY_STATUS = 408
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"

SZ_PAGE_SIZE = 20
SZ_NO_DATA_TEXT = "没有找到符合条件的数据！"
SH_PAGE_SIZE = 15
AGGREGATOR_PAGE_LIMIT = 20

AGGREGATOR_MARKETS = ("SZM", "SZGEM", "SZSME", "SHM")
TOP_ORDERS = ("top_buy_value", "top_sell_value")

CAL_URL = "http://www.yuncaijing.com/insider/simple.html"

WATCH_INTERVAL_SECONDS = 3.6

SORT_FIELDS = {
    "pe": "pe",
    "pb": "pb",
    "star": "star",
    "code": "code",
    "price": "price",
    "targetp": "pct",
    "bdiff": "bdiff",
    "sdiff": "sdiff",
    "incp": "inc_pct",
    "capacity": "capacity",
}
DEFAULT_SORT = "targetp"
