from __future__ import annotations

import socket
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

import httpx

from .models import RequestFailure, RequestOutcome, WorkItem
from .rate_limit import RateLimiter
from .utils import host_of


@dataclass
class HttpConfig:
    proxy: str
    user_agent: str = "gety/0.2"
    timeout_s: float = 30.0
    follow_redirects: bool = True
    verify_tls: bool = True
    headers: list[tuple[str, str]] = field(default_factory=list)
    cookies: list[tuple[str, str]] = field(default_factory=list)


def _default_headers(cfg: HttpConfig) -> httpx.Headers:
    items: list[tuple[str, str]] = []
    if not any(name.lower() == "user-agent" for name, _ in cfg.headers):
        items.append(("User-Agent", cfg.user_agent))
    items.extend(cfg.headers)
    return httpx.Headers(items)


def _initial_cookies(cfg: HttpConfig) -> httpx.Cookies:
    # No domain: sent to every host, alongside whatever responses set.
    jar = httpx.Cookies()
    for name, value in cfg.cookies:
        jar.set(name, value)
    return jar


class Deadline:
    """
    Wall-clock budget for one exchange (connect, headers and body).

    httpx timeouts are per phase and restart on every chunk received, so a
    server that drips bytes never trips them. A timer shuts down the socket
    underneath once the budget is spent, which makes any blocked read return
    at once. The socket is learned from httpcore's trace events for fresh
    connections and from the response's network_stream for reused ones.
    """

    _CONNECT_EVENTS = ("connect_tcp.complete", "start_tls.complete")

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds
        self._lock = threading.Lock()
        self._stream: Any = None
        self._fired = False
        self._done = False
        self._timer = threading.Timer(seconds, self._fire)
        self._timer.daemon = True
        self._timer.start()

    @property
    def expired(self) -> bool:
        return self._fired or time.monotonic() >= self.expires_at

    def trace(self, event: str, info: dict) -> None:
        """httpcore "trace" request extension."""
        if event.endswith(self._CONNECT_EVENTS):
            self.attach(info.get("return_value"))

    def attach(self, stream: Any) -> None:
        if stream is None:
            return
        with self._lock:
            self._stream = stream
            if self._fired and not self._done:
                _shutdown(stream)

    def cancel(self) -> None:
        """Stop the timer; once this returns the socket is never touched."""
        self._timer.cancel()
        with self._lock:
            self._done = True
            self._stream = None

    def timeout_error(self, request: httpx.Request, exc_type: type = httpx.TimeoutException) -> httpx.TimeoutException:
        return exc_type(f"timed out after {self.seconds:g}s", request=request)

    def _fire(self) -> None:
        with self._lock:
            if self._done:
                return
            self._fired = True
            if self._stream is not None:
                _shutdown(self._stream)


def _shutdown(stream: Any) -> None:
    sock = stream.get_extra_info("socket")
    if sock is None:
        return
    try:
        # Base-class call: SSLSocket.shutdown would also drop its SSL object
        # under the reading thread.
        socket.socket.shutdown(sock, socket.SHUT_RDWR)
    except OSError:
        pass  # already closed


class HttpClient:
    """
    One shared httpx.Client for the whole run.

    Every request goes out through cfg.proxy; proxy settings from the
    environment are ignored. Passing an explicit transport replaces the
    proxy route entirely (tests, embedding).

    -cookie values seed the client's cookie jar, so cookies set by responses
    (including along a redirect chain) are sent next to them.
    """

    def __init__(
        self,
        cfg: HttpConfig,
        *,
        limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.cfg = cfg
        self.limiter = limiter or RateLimiter()
        self.client = httpx.Client(
            proxy=None if transport is not None else cfg.proxy,
            transport=transport,
            verify=cfg.verify_tls,
            timeout=cfg.timeout_s,
            follow_redirects=cfg.follow_redirects,
            headers=_default_headers(cfg),
            cookies=_initial_cookies(cfg),
            trust_env=False,
        )

    def close(self) -> None:
        self.client.close()

    @contextmanager
    def exchange(self, item: WorkItem) -> Iterator[tuple[RequestOutcome, Callable[[], str]]]:
        """Send one item and yield (outcome, read_body).

        parse -> rate gate -> build -> send. The body stays unread until
        read_body() is called; the response is closed on exit either way.
        Any stage error is raised as RequestFailure.

        cfg.timeout_s bounds everything after the rate gate: a send or body
        read still running when it runs out fails as a timeout.
        """
        try:
            url = httpx.URL(item.url)
        except httpx.InvalidURL as e:
            raise RequestFailure("parse", item, e) from e

        self.limiter.gate(host_of(url))

        deadline = Deadline(self.cfg.timeout_s)
        try:
            try:
                request = self.client.build_request(
                    item.method.value, url, extensions={"trace": deadline.trace}
                )
            except (httpx.InvalidURL, ValueError) as e:
                raise RequestFailure("build", item, e) from e

            try:
                response = self.client.send(request, stream=True)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                if deadline.expired and not isinstance(e, httpx.TimeoutException):
                    raise RequestFailure("send", item, deadline.timeout_error(request)) from e
                raise RequestFailure("send", item, e) from e

            deadline.attach(response.extensions.get("network_stream"))
            try:
                outcome = RequestOutcome(
                    method=item.method,
                    url=item.url,
                    status_code=response.status_code,
                    reason=response.reason_phrase,
                )

                def read_body() -> str:
                    chunks = []
                    try:
                        for chunk in response.iter_bytes():
                            chunks.append(chunk)
                            if deadline.expired:
                                raise deadline.timeout_error(request, httpx.ReadTimeout)
                    except httpx.HTTPError as e:
                        cause = e
                        if deadline.expired and not isinstance(e, httpx.TimeoutException):
                            cause = deadline.timeout_error(request, httpx.ReadTimeout)
                        raise RequestFailure("read", item, cause) from e
                    return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")

                yield outcome, read_body
            finally:
                deadline.cancel()
                response.close()
        finally:
            deadline.cancel()
