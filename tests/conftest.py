"""
tests/conftest.py — Shared fixtures: mock transports and client builders.
"""

import io
import socket
import threading
import time
from typing import Callable, Optional

import httpx
import pytest

from gety.client import GetyClient
from gety.core.config import DispatchConfig
from gety.core.filters import FilterConfig
from gety.core.http import HttpClient, HttpConfig
from gety.core.models import Method

PROXY = "http://127.0.0.1:8080"


class CountingStream(httpx.SyncByteStream):
    """Response body that records how many times it was read."""

    def __init__(self, body: bytes):
        self.body = body
        self.reads = 0
        self.closed = False

    def __iter__(self):
        self.reads += 1
        yield self.body

    def close(self) -> None:
        self.closed = True


class BrokenStream(httpx.SyncByteStream):
    """Response body that dies mid-read."""

    def __iter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset by peer")


class DripStream(httpx.SyncByteStream):
    """Response body that arrives one byte at a time."""

    def __init__(self, body: bytes, interval: float):
        self.body = body
        self.interval = interval

    def __iter__(self):
        for b in self.body:
            time.sleep(self.interval)
            yield bytes([b])


def status_by_host(codes: dict[str, int], bodies: Optional[dict[str, bytes]] = None) -> Callable:
    """Handler answering each host with a fixed status (and optional body)."""
    bodies = bodies or {}

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        return httpx.Response(codes[host], content=bodies.get(host, b""))

    return handler


class ConcurrencyTracker:
    """Handler wrapper that tracks how many requests are open at once."""

    def __init__(self, delay: float = 0.02):
        self.delay = delay
        self.current = 0
        self.peak = 0
        self.total = 0
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.current += 1
            self.total += 1
            self.peak = max(self.peak, self.current)
        try:
            time.sleep(self.delay)
            return httpx.Response(200)
        finally:
            with self._lock:
                self.current -= 1


@pytest.fixture
def http_cfg():
    return HttpConfig(proxy=PROXY)


@pytest.fixture
def make_http():
    """Build an HttpClient on top of a MockTransport handler."""
    clients = []

    def _make(handler, cfg: Optional[HttpConfig] = None, limiter=None) -> HttpClient:
        c = HttpClient(cfg or HttpConfig(proxy=PROXY), limiter=limiter, transport=httpx.MockTransport(handler))
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()


@pytest.fixture
def run_lines():
    """Run a full GetyClient batch; returns (stats, stdout lines, stderr lines)."""

    def _run(handler, text: str, **dispatch_kwargs):
        http_kwargs = dispatch_kwargs.pop("http", {})
        dispatch_kwargs.setdefault("method", Method.GET)
        dispatch_kwargs.setdefault("filters", FilterConfig())
        out, err = io.StringIO(), io.StringIO()
        with GetyClient(
            HttpConfig(proxy=PROXY, **http_kwargs),
            DispatchConfig(**dispatch_kwargs),
            transport=httpx.MockTransport(handler),
        ) as client:
            stats = client.run(io.StringIO(text), out=out, err=err)
        return stats, out.getvalue().splitlines(), err.getvalue().splitlines()

    return _run


@pytest.fixture
def drip_server():
    """Real local HTTP server that sends `head` at once, then `drip` slowly.

    Returns a function (head, drip, interval) -> base URL. Each server
    answers a single connection.
    """
    listeners = []

    def _start(head: bytes, drip: bytes, interval: float) -> str:
        listener = socket.create_server(("127.0.0.1", 0))
        listener.settimeout(10)
        listeners.append(listener)

        def serve():
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            with conn:
                try:
                    conn.recv(65536)
                    conn.sendall(head)
                    for b in drip:
                        time.sleep(interval)
                        conn.sendall(bytes([b]))
                except OSError:
                    pass  # client gave up

        threading.Thread(target=serve, name="drip-server", daemon=True).start()
        host, port = listener.getsockname()
        return f"http://{host}:{port}/"

    yield _start
    for listener in listeners:
        listener.close()
