from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from tqdm import tqdm

from .config import DispatchConfig
from .dispatcher import BoundedDispatcher
from .filters import accept
from .http import HttpClient
from .models import RequestFailure, WorkItem
from .throttle import BurstThrottle
from .writers import ReportSink

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    submitted: int = 0
    completed: int = 0
    reported: int = 0
    failed: int = 0
    cooldowns: int = 0

    @property
    def filtered(self) -> int:
        return max(self.completed - self.reported - self.failed, 0)


def process_item(http: HttpClient, item: WorkItem, cfg: DispatchConfig, sink: ReportSink) -> None:
    """Pending -> RateGated -> Sent -> Failed | Filtered-Out | Reported."""
    try:
        with http.exchange(item) as (outcome, read_body):
            if accept(outcome, cfg.filters, read_body):
                sink.report(outcome)
    except RequestFailure as e:
        sink.failure(e)


def dispatch_all(
    http: HttpClient,
    items: Iterable[WorkItem],
    cfg: DispatchConfig,
    sink: ReportSink,
) -> RunStats:
    """Main submission loop.

    Lines are submitted in input order: burst throttle first, then a
    dispatcher slot. Completion order is whatever the network gives us.
    """
    stats = RunStats()
    throttle = BurstThrottle(cfg.burst_size, cfg.burst_cooldown_s, notify=sink.notice)
    pbar: Optional[tqdm] = tqdm(desc="Requests", unit="req") if cfg.progress else None

    def _work(item: WorkItem) -> None:
        try:
            process_item(http, item, cfg, sink)
        except Exception as e:
            logger.debug("worker crashed on %r", item, exc_info=True)
            sink.failure(RequestFailure("worker", item, e))
        finally:
            if pbar is not None:
                pbar.update(1)

    try:
        with BoundedDispatcher(cfg.max_workers) as pool:
            for item in items:
                throttle.tick()
                pool.submit(_work, item)
                stats.submitted += 1
            pool.drain_and_wait()
            stats.completed = pool.completed
    finally:
        stats.cooldowns = throttle.cooldowns
        if pbar is not None:
            pbar.close()

    logger.debug(
        "run done: submitted=%d completed=%d cooldowns=%d",
        stats.submitted, stats.completed, stats.cooldowns,
    )
    return stats
