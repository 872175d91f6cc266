# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Resilience state guarding calls to the status authority.

- CircuitBreaker: Closed -> Open after N consecutive failures, Open -> HalfOpen
  after the cool-down, HalfOpen -> Closed on success or back to Open on failure.
- StatusCache: run-lifetime cache of StatusRecord by feature id (no TTL).

Both are owned by one resolver instance and are safe to share between the
resolver's worker threads.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from baselinegate.core.config.webstatus_config import (
    WEBSTATUS_BREAKER_COOLDOWN_SEC,
    WEBSTATUS_BREAKER_THRESHOLD,
)
from baselinegate.core.models.baseline_types import StatusRecord

logger = logging.getLogger(__name__)


# ============================================================================
# Circuit Breaker
# ============================================================================

class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __str__(self) -> str:
        return self.value


class CircuitBreaker:
    """Consecutive-failure circuit breaker with a single half-open trial."""

    def __init__(
        self,
        threshold: int = WEBSTATUS_BREAKER_THRESHOLD,
        cooldown_sec: float = WEBSTATUS_BREAKER_COOLDOWN_SEC,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = max(1, int(threshold))
        self.cooldown_sec = float(cooldown_sec)
        self._clock = clock
        self._lock = threading.Lock()
        self._state = BreakerState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._trial_in_flight = False

    @property
    def state(self) -> BreakerState:
        with self._lock:
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def last_failure_time(self) -> float:
        with self._lock:
            return self._last_failure_time

    def should_allow(self) -> bool:
        """True if a call may go out now. Consumes the half-open trial slot."""
        with self._lock:
            if self._state == BreakerState.CLOSED:
                return True
            if self._state == BreakerState.OPEN:
                if self._clock() - self._last_failure_time >= self.cooldown_sec:
                    self._state = BreakerState.HALF_OPEN
                    self._trial_in_flight = True
                    logger.info("[WEBSTATUS] breaker half-open: allowing one trial request")
                    return True
                return False
            # HALF_OPEN: only the single trial may proceed
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

    def record_success(self) -> None:
        with self._lock:
            if self._state != BreakerState.CLOSED:
                logger.info("[WEBSTATUS] breaker closed after successful request")
            self._state = BreakerState.CLOSED
            self._failure_count = 0
            self._trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()
            if self._state == BreakerState.HALF_OPEN:
                self._state = BreakerState.OPEN
                self._trial_in_flight = False
                logger.warning("[WEBSTATUS] breaker re-opened: half-open trial failed")
            elif self._state == BreakerState.CLOSED and self._failure_count >= self.threshold:
                self._state = BreakerState.OPEN
                logger.warning(
                    "[WEBSTATUS] breaker opened after %d consecutive failures (cool-down %.1fs)",
                    self._failure_count, self.cooldown_sec,
                )

    def reset(self) -> None:
        with self._lock:
            self._state = BreakerState.CLOSED
            self._failure_count = 0
            self._last_failure_time = 0.0
            self._trial_in_flight = False

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "state": self._state.value,
                "failure_count": self._failure_count,
                "last_failure_time": self._last_failure_time,
            }


# ============================================================================
# Status Cache
# ============================================================================

class StatusCache:
    """Thread-safe run-lifetime cache of status records. Entries never expire."""

    def __init__(self) -> None:
        self._cache: Dict[str, StatusRecord] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, feature_id: str) -> Optional[StatusRecord]:
        with self._lock:
            record = self._cache.get(feature_id)
            if record is None:
                self.misses += 1
            else:
                self.hits += 1
            return record

    def put(self, feature_id: str, record: StatusRecord) -> None:
        # Identical inputs yield identical records, so last-write-wins is harmless
        with self._lock:
            self._cache[feature_id] = record

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, feature_id: object) -> bool:
        with self._lock:
            return feature_id in self._cache

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self.hits + self.misses
            return {
                "size": len(self._cache),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / lookups, 3) if lookups else 0.0,
            }
