from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO

import httpx

from gety.core.batch import RunStats, dispatch_all
from gety.core.config import DispatchConfig
from gety.core.http import HttpClient, HttpConfig
from gety.core.rate_limit import RateLimiter
from gety.core.source import iter_work_items
from gety.core.writers import ReportSink


@dataclass
class GetyClient:
    http_cfg: HttpConfig
    dispatch_cfg: DispatchConfig
    transport: Optional[httpx.BaseTransport] = None

    def __post_init__(self) -> None:
        self.limiter = RateLimiter(interval_s=self.dispatch_cfg.rate_limit_s)
        self.http = HttpClient(self.http_cfg, limiter=self.limiter, transport=self.transport)

    def __enter__(self) -> "GetyClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def run(
        self,
        lines: Iterable[str],
        *,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> RunStats:
        """Dispatch one request per non-blank line and print what passes the filters."""
        sink = ReportSink(
            out or sys.stdout,
            err or sys.stderr,
            use_tqdm=self.dispatch_cfg.progress,
        )
        items = iter_work_items(lines, self.dispatch_cfg.method)
        try:
            stats = dispatch_all(self.http, items, self.dispatch_cfg, sink)
        finally:
            sink.close()
        stats.reported = sink.reported
        stats.failed = sink.failed
        return stats
