from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from .models import RequestOutcome


@dataclass(frozen=True)
class FilterConfig:
    status_codes: frozenset[int] = frozenset()
    body_pattern: Optional[re.Pattern[str]] = None

    @property
    def needs_body(self) -> bool:
        return self.body_pattern is not None


def passes_status(status_code: int, allowed: frozenset[int]) -> bool:
    """Empty allow-set accepts every status."""
    if not allowed:
        return True
    return status_code in allowed


def passes_body(text: str, pattern: Optional[re.Pattern[str]]) -> bool:
    """Unanchored match anywhere in the body."""
    if pattern is None:
        return True
    return pattern.search(text) is not None


def accept(
    outcome: RequestOutcome,
    cfg: FilterConfig,
    read_body: Callable[[], str],
) -> bool:
    """Decide whether a completed request gets reported.

    - status allow-list first (no body needed)
    - body regex second; read_body() is only called when a pattern is set,
      so responses are never downloaded just to be dropped
    """
    if not passes_status(outcome.status_code, cfg.status_codes):
        return False
    if not cfg.needs_body:
        return True
    return passes_body(read_body(), cfg.body_pattern)
