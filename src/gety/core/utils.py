from __future__ import annotations

import logging
import re
from typing import Iterable

import httpx

logger = logging.getLogger(__name__)

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def host_of(url: httpx.URL) -> str:
    """Rate-limit key for a URL: lowercase host[:port], userinfo excluded."""
    return url.netloc.decode("ascii", errors="replace").lower()


def parse_duration(text: str) -> float:
    """Parse '30s', '500ms', '1m30s' or a bare number of seconds.

    Raises ValueError on anything else.
    """
    s = (text or "").strip().lower()
    if not s:
        raise ValueError("empty duration")
    try:
        return float(s)
    except ValueError:
        pass

    total = 0.0
    pos = 0
    for m in _DURATION_PART_RE.finditer(s):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos != len(s) or pos == 0:
        raise ValueError(f"invalid duration {text!r}")
    return total


def parse_headers(raw: Iterable[str]) -> list[tuple[str, str]]:
    """'Name: Value' pairs, split on the first ':'. Malformed entries are skipped."""
    out: list[tuple[str, str]] = []
    for h in raw:
        name, sep, value = h.partition(":")
        name = name.strip()
        if not sep or not name:
            logger.warning("ignoring malformed header %r (want 'Name: Value')", h)
            continue
        out.append((name, value.strip()))
    return out


def parse_cookies(raw: Iterable[str]) -> list[tuple[str, str]]:
    """'name=value' pairs, split on the first '='. Malformed entries are skipped."""
    out: list[tuple[str, str]] = []
    for c in raw:
        name, sep, value = c.partition("=")
        name = name.strip()
        if not sep or not name:
            logger.warning("ignoring malformed cookie %r (want 'name=value')", c)
            continue
        out.append((name, value.strip()))
    return out
