from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

import httpx

from .filters import FilterConfig
from .models import Method
from .utils import parse_duration

PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


class ConfigError(ValueError):
    """Bad startup configuration. Fatal: raised before any request is sent."""


@dataclass
class DispatchConfig:
    method: Method
    max_workers: int = 10
    rate_limit_s: float = 0.0
    burst_size: int = 0
    burst_cooldown_s: float = 0.0
    filters: FilterConfig = field(default_factory=FilterConfig)
    progress: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.max_workers}")
        if self.rate_limit_s < 0:
            raise ConfigError(f"rate limit must be >= 0, got {self.rate_limit_s}")


def resolve_method(*, get: bool = False, post: bool = False, head: bool = False, put: bool = False) -> Method:
    chosen = [m for m, on in ((Method.GET, get), (Method.POST, post), (Method.HEAD, head), (Method.PUT, put)) if on]
    if len(chosen) != 1:
        raise ConfigError("Please choose exactly one method: -GET, -POST, -HEAD, or -PUT")
    return chosen[0]


def parse_proxy(raw: Optional[str]) -> str:
    if not raw:
        raise ConfigError("Proxy URL is required: use -proxy")
    try:
        url = httpx.URL(raw.strip())
    except httpx.InvalidURL as e:
        raise ConfigError(f"Invalid proxy URL: {e}") from e
    if url.scheme not in PROXY_SCHEMES or not url.host:
        raise ConfigError(
            f"Invalid proxy URL {raw!r}: want {'|'.join(PROXY_SCHEMES)}://host[:port]"
        )
    return str(url)


def parse_status_codes(raw: Optional[str]) -> frozenset[int]:
    """'200, 403' -> {200, 403}. Empty input means no status filter."""
    if not raw or not raw.strip():
        return frozenset()
    codes: set[int] = set()
    for part in raw.split(","):
        p = part.strip()
        try:
            codes.add(int(p))
        except ValueError as e:
            raise ConfigError(f"Invalid status code in -fc: {p!r}") from e
    return frozenset(codes)


def compile_body_pattern(raw: Optional[str]) -> Optional[re.Pattern[str]]:
    if not raw:
        return None
    try:
        return re.compile(raw)
    except re.error as e:
        raise ConfigError(f"Invalid regex in -match: {e}") from e


def parse_timeout(raw: str) -> float:
    try:
        seconds = parse_duration(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid -timeout: {e}") from e
    if seconds <= 0:
        raise ConfigError(f"Invalid -timeout: must be > 0, got {raw!r}")
    return seconds


def build_filters(status_codes: Optional[str], match: Optional[str]) -> FilterConfig:
    return FilterConfig(
        status_codes=parse_status_codes(status_codes),
        body_pattern=compile_body_pattern(match),
    )
