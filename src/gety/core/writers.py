from __future__ import annotations

import logging
import queue
import threading
from typing import Optional, TextIO

from tqdm import tqdm

from .models import RequestFailure, RequestOutcome

ERROR_MARKER = "❌"
NOTICE_MARKER = "🌩 "

_STOP = object()

logger = logging.getLogger(__name__)


class ReportSink:
    """
    Single writer for everything the run prints.

    Workers and the submission loop only enqueue lines; one background
    thread writes them, so concurrent reports never interleave mid-line.
    """

    def __init__(self, out: TextIO, err: TextIO, *, use_tqdm: bool = False):
        self.out = out
        self.err = err
        self.use_tqdm = use_tqdm
        self.reported = 0
        self.failed = 0
        self.write_errors = 0
        self._q: "queue.Queue[object]" = queue.Queue()
        self._thread = threading.Thread(target=self._drain, name="gety-writer", daemon=True)
        self._thread.start()

    def __enter__(self) -> "ReportSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def report(self, outcome: RequestOutcome) -> None:
        self._q.put((self.out, outcome.line(), "reported"))

    def failure(self, exc: RequestFailure) -> None:
        self._q.put((self.err, f"{ERROR_MARKER} {exc}", "failed"))

    def notice(self, msg: str) -> None:
        self._q.put((self.err, f"{NOTICE_MARKER} {msg}", None))

    def _write(self, stream: TextIO, line: str) -> None:
        if self.use_tqdm:
            tqdm.write(line, file=stream)
        else:
            stream.write(line + "\n")
        stream.flush()

    def _drain(self) -> None:
        while True:
            entry = self._q.get()
            if entry is _STOP:
                return
            stream, line, counter = entry  # type: ignore[misc]
            try:
                self._write(stream, line)
            except (OSError, ValueError) as e:
                # UnicodeEncodeError is a ValueError. Drop the line, keep draining.
                self.write_errors += 1
                if self.write_errors == 1:
                    logger.warning("output write failed, dropping lines: %s", e)
                continue
            if counter == "reported":
                self.reported += 1
            elif counter == "failed":
                self.failed += 1

    def close(self, timeout: Optional[float] = None) -> None:
        """Flush everything queued so far and stop the writer thread."""
        if not self._thread.is_alive():
            return
        self._q.put(_STOP)
        self._thread.join(timeout)
