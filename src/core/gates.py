"""Time-based gates: startup warm-up and notification cooldown."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from core.config import DEFAULT_COOLDOWN_MS, DEFAULT_WARMUP_MS

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class WarmupGate:
    """Suppress notifications while the page replays chat history.

    Two states, warming up then ready. The transition is time-triggered only
    and latches: once ready, the gate never reports warming up again.
    """

    def __init__(self, delay_ms: int = DEFAULT_WARMUP_MS, clock: Clock = monotonic_ms) -> None:
        self._delay_ms = delay_ms
        self._clock = clock
        self._started_at: Optional[float] = None
        self._ready = False

    def start(self) -> None:
        self._started_at = self._clock()

    def is_ready(self) -> bool:
        if self._ready:
            return True
        if self._started_at is None:
            return False
        if self._clock() - self._started_at >= self._delay_ms:
            self._ready = True
            LOGGER.info("Notification ready")
        return self._ready


class RateLimiter:
    """Single global cooldown between notify decisions.

    The timestamp is taken on permit, before dispatch, so two events in the
    same tick cannot both pass.
    """

    def __init__(self, clock: Clock = monotonic_ms) -> None:
        self._clock = clock
        self._last_notified_at: Optional[float] = None

    def try_acquire(self, cooldown_ms: int = DEFAULT_COOLDOWN_MS) -> bool:
        now = self._clock()
        if cooldown_ms > 0 and self._last_notified_at is not None:
            if now - self._last_notified_at < cooldown_ms:
                return False
        self._last_notified_at = now
        return True
