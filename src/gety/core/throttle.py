from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class BurstThrottle:
    """
    Global burst/cooldown gate for the submission loop.

    Not thread-safe: only the single loop that submits work may call tick().
    """
    burst_size: int = 0
    cooldown_s: float = 0.0
    notify: Optional[Callable[[str], None]] = None
    count: int = field(default=0, init=False)
    cooldowns: int = field(default=0, init=False)

    @property
    def enabled(self) -> bool:
        return self.burst_size > 0 and self.cooldown_s > 0

    def tick(self) -> float:
        """Account for one submission, pausing first if the burst is used up."""
        if not self.enabled:
            return 0.0

        slept = 0.0
        if self.count >= self.burst_size:
            msg = f"burst of {self.burst_size} reached, cooling down for {self.cooldown_s:g}s..."
            if self.notify is not None:
                self.notify(msg)
            logger.debug(msg)
            time.sleep(self.cooldown_s)
            slept = self.cooldown_s
            self.count = 0
            self.cooldowns += 1

        self.count += 1
        return slept
