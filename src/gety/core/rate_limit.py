from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RateLimiter:
    """
    Per-host rate limit:
    - minimum interval between requests to the same host (seconds)
    - uniform jitter in [-interval/2, +interval/2), final wait clamped at 0

    Every host gets its own lock, held across read -> sleep -> update, so
    workers hitting the same host queue up behind each other while other
    hosts keep going.
    """
    interval_s: float = 0.0
    rng: random.Random = field(default_factory=random.Random)
    _last_time: dict[str, float] = field(default_factory=dict, init=False, repr=False)
    _host_locks: dict[str, threading.Lock] = field(default_factory=dict, init=False, repr=False)
    _registry_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def enabled(self) -> bool:
        return self.interval_s > 0

    def _lock_for(self, host: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._host_locks.get(host)
            if lock is None:
                lock = self._host_locks[host] = threading.Lock()
            return lock

    def _delay_for(self, host: str) -> float:
        last = self._last_time.get(host)
        if last is None:
            return 0.0
        elapsed = time.monotonic() - last
        base = max(0.0, self.interval_s - elapsed)
        half = self.interval_s / 2
        jitter = (self.rng.random() * 2.0 - 1.0) * half
        return max(0.0, base + jitter)

    def gate(self, host: str) -> float:
        """Block until a request to host may be sent. Returns the wait applied."""
        if not self.enabled:
            return 0.0

        with self._lock_for(host):
            delay = self._delay_for(host)
            if delay > 0:
                logger.debug("rate limit: waiting %.2fs for %s", delay, host)
                time.sleep(delay)
            self._last_time[host] = time.monotonic()
        return delay

    def last_dispatch(self, host: str) -> float | None:
        with self._lock_for(host):
            return self._last_time.get(host)
