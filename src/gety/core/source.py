from __future__ import annotations

from typing import Iterable, Iterator

from .models import Method, WorkItem


def iter_urls(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        url = line.strip()
        if url:
            yield url


def iter_work_items(lines: Iterable[str], method: Method) -> Iterator[WorkItem]:
    """One WorkItem per non-blank line, read lazily in input order."""
    for url in iter_urls(lines):
        yield WorkItem(url=url, method=method)
