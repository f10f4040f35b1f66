from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedDispatcher:
    """
    Worker pool that caps in-flight work at max_in_flight.

    submit() blocks the caller until a slot frees up, then hands the item to
    a pool thread. The slot is released when the unit of work returns or
    raises, exactly once per item.
    """

    def __init__(self, max_in_flight: int, *, thread_name_prefix: str = "gety-worker"):
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")
        self.max_in_flight = max_in_flight
        self._slots = threading.BoundedSemaphore(max_in_flight)
        self._pool = ThreadPoolExecutor(max_workers=max_in_flight, thread_name_prefix=thread_name_prefix)
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._in_flight = 0
        self._peak_in_flight = 0
        self._completed = 0

    def __enter__(self) -> "BoundedDispatcher":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        with self._lock:
            return self._peak_in_flight

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def _run(self, fn: Callable[[T], object], item: T) -> object:
        with self._lock:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            return fn(item)
        finally:
            with self._lock:
                self._in_flight -= 1
                self._completed += 1
            self._slots.release()

    def submit(self, fn: Callable[[T], object], item: T) -> Future:
        self._slots.acquire()
        try:
            fut = self._pool.submit(self._run, fn, item)
        except BaseException:
            self._slots.release()
            raise

        with self._lock:
            self._pending.add(fut)

        def _done(f: Future) -> None:
            with self._lock:
                self._pending.discard(f)
            if f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                logger.error("worker crashed on %r", item, exc_info=exc)

        fut.add_done_callback(_done)
        return fut

    def drain_and_wait(self) -> None:
        """Block until everything submitted so far has finished."""
        while True:
            with self._lock:
                pending = {f for f in self._pending if not f.done()}
            if not pending:
                return
            wait(pending)

    def shutdown(self) -> None:
        self.drain_and_wait()
        self._pool.shutdown(wait=True)
