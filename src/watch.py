from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .config import CHUNK_SIZE, WATCH_INTERVAL_SECONDS
from .errors import InputError
from .filters import check_duplicates
from .quotes import parse_codes
from .store import load_watch_list, parse_entries

logger = logging.getLogger(__name__)


def resolve_watch_codes(arg: str | None, document: dict[str, Any] | None = None, hold: bool = False) -> list[str]:
    if arg:
        return parse_codes(arg)

    document = document or {}
    codes = [] if hold else load_watch_list(document)
    if not codes:
        entries = parse_entries(document.get("symbols"))
        check_duplicates(entries)
        codes = [e.code for e in entries if e.hold]
    if not codes:
        raise InputError("Nothing to watch: pass codes, add a watchList or hold some symbols.")
    return parse_codes(",".join(codes), CHUNK_SIZE)


class WatchLoop:
    """Re-run ``refresh`` every ``interval`` seconds and hand the result to ``render``.

    Ticks never overlap: a refresh that outlives its interval swallows the
    ticks that fell due meanwhile and the next one is scheduled on the grid.
    """

    def __init__(
        self,
        refresh: Callable[[], Any],
        render: Callable[[Any], None],
        interval: float = WATCH_INTERVAL_SECONDS,
        on_error: Callable[[Exception], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise InputError("Refresh interval must be positive.")
        self.refresh = refresh
        self.render = render
        self.interval = interval
        self.on_error = on_error
        self.clock = clock
        self.sleep = sleep
        self.ticks = 0
        self.skipped = 0

    def tick(self) -> None:
        self.ticks += 1
        try:
            result = self.refresh()
        except Exception as error:
            if self.on_error is None:
                raise
            self.on_error(error)
            return
        self.render(result)

    def run(self, max_ticks: int | None = None) -> None:
        next_at = self.clock()
        while max_ticks is None or self.ticks < max_ticks:
            self.tick()
            next_at += self.interval
            now = self.clock()
            if now > next_at:
                missed = int((now - next_at) // self.interval) + 1
                self.skipped += missed
                next_at += missed * self.interval
                logger.debug("refresh overran, skipped %d tick(s)", missed)
            self.sleep(max(next_at - now, 0.0))
