# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
WebStatus API client: batched Baseline status resolution.

GET {base}/features?q=id:a OR id:b ...
  Response: {"data": [{"feature_id": str, "baseline"?: {"status": limited|newly|widely,
             "low_date"?: str, "high_date"?: str}}], "metadata": {...}}

Resolution never raises for authority failures: every requested ID ends with
exactly one StatusRecord, failures degrade to UNKNOWN and are reported on the
ResolutionResult.

Retry policy:
  - 429 / 5xx: backoff 1000ms doubling, capped 8000ms, +/-100ms jitter
  - timeout / connection error: backoff 500ms doubling, same cap
  - other 4xx, invalid JSON, invalid shape: fail immediately
  - every attempt checks the circuit breaker first
"""

from __future__ import annotations

import logging
import random
import re
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from baselinegate.core.config.webstatus_config import (
    BACKOFF_CAP_MS,
    BACKOFF_HTTP_BASE_MS,
    BACKOFF_JITTER_MS,
    BACKOFF_NETWORK_BASE_MS,
    WEBSTATUS_BASE_URL,
    WEBSTATUS_BATCH_SIZE,
    WEBSTATUS_FEATURES_PATH,
    WEBSTATUS_MAX_CONCURRENCY,
    WEBSTATUS_MAX_RETRIES,
    WEBSTATUS_TIMEOUT_MS,
    WEBSTATUS_USER_AGENT,
)
from baselinegate.core.models.baseline_types import BaselineStatus, StatusRecord, UNKNOWN_RECORD
from baselinegate.core.webstatus.circuit_breaker import BreakerState, CircuitBreaker, StatusCache
from baselinegate.core.webstatus.errors import (
    BatchFailure,
    CircuitOpenError,
    ResolutionCancelledError,
    WebStatusError,
    WebStatusPermanentError,
    WebStatusTransientError,
    WebStatusUnavailableError,
)

logger = logging.getLogger(__name__)

_INVALID_ID_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_RESPONSE_STATUSES = ("limited", "newly", "widely")


def url_features(base: str = WEBSTATUS_BASE_URL) -> str:
    return f"{base.rstrip('/')}{WEBSTATUS_FEATURES_PATH}"


# ============================================================================
# Query building and response validation
# ============================================================================

def sanitize_feature_id(feature_id: Any) -> str:
    """Strip characters outside [A-Za-z0-9._-]. Non-strings sanitize to ""."""
    if not isinstance(feature_id, str):
        return ""
    return _INVALID_ID_CHARS.sub("", feature_id)


def build_query(feature_ids: Sequence[str]) -> str:
    """
    Build the OR'd id query for one batch.

    Raises:
        WebStatusPermanentError: if no ID survives sanitization (no network call is made).
    """
    valid: List[str] = []
    for fid in feature_ids:
        clean = sanitize_feature_id(fid)
        if clean and clean not in valid:
            valid.append(clean)
    if not valid:
        raise WebStatusPermanentError("No valid feature IDs provided", feature_ids=feature_ids)
    return " OR ".join(f"id:{fid}" for fid in valid)


def _optional_str(value: Any) -> bool:
    return value is None or isinstance(value, str)


def is_valid_response(raw: Any) -> bool:
    """True only if the payload matches the expected shape exactly; no partial trust."""
    if not isinstance(raw, dict):
        return False
    data = raw.get("data")
    if not isinstance(data, list):
        return False
    for feature in data:
        if not isinstance(feature, dict):
            return False
        if not isinstance(feature.get("feature_id"), str):
            return False
        baseline = feature.get("baseline")
        if baseline is None:
            continue
        if not isinstance(baseline, dict):
            return False
        if baseline.get("status") not in _RESPONSE_STATUSES:
            return False
        if not _optional_str(baseline.get("low_date")) or not _optional_str(baseline.get("high_date")):
            return False
    return True


def parse_response(raw: Any, feature_ids: Sequence[str] = ()) -> Dict[str, StatusRecord]:
    """
    Convert a validated payload to {feature_id: StatusRecord}.
    Features present without baseline data map to UNKNOWN.

    Raises:
        WebStatusPermanentError: on any shape mismatch.
    """
    if not is_valid_response(raw):
        raise WebStatusPermanentError(
            "Invalid response structure from WebStatus API",
            feature_ids=feature_ids,
            http_status=200,
            response_snippet=str(raw)[:200],
        )
    out: Dict[str, StatusRecord] = {}
    for feature in raw["data"]:
        baseline = feature.get("baseline")
        if baseline:
            out[feature["feature_id"]] = StatusRecord(
                status=BaselineStatus(baseline["status"]),
                low_date=baseline.get("low_date") or None,
                high_date=baseline.get("high_date") or None,
            )
        else:
            out[feature["feature_id"]] = UNKNOWN_RECORD
    return out


def backoff_ms(attempt: int, base_ms: int, cap_ms: int = BACKOFF_CAP_MS) -> int:
    """Un-jittered backoff for the given 0-based retry attempt."""
    return min(base_ms * (2 ** attempt), cap_ms)


# ============================================================================
# Result
# ============================================================================

@dataclass
class ResolutionResult:
    """Statuses for every requested ID plus the failures that produced UNKNOWNs."""

    statuses: Dict[str, StatusRecord]
    failures: List[BatchFailure] = field(default_factory=list)
    breaker_failure_count: int = 0
    cached_count: int = 0
    batch_count: int = 0

    @property
    def degraded(self) -> bool:
        """A whole batch fell back to UNKNOWN through failure and the breaker saw failures."""
        return bool(self.failures) and self.breaker_failure_count > 0

    @property
    def unknown_ids(self) -> List[str]:
        return sorted(fid for fid, rec in self.statuses.items() if rec.status == BaselineStatus.UNKNOWN)

    def raise_for_degradation(self) -> None:
        """Opt-in escalation for callers that prefer to abort over a degraded result."""
        if self.degraded:
            failed_ids = sorted({fid for f in self.failures for fid in f.feature_ids})
            raise WebStatusUnavailableError(
                f"WebStatus API unreachable - {len(self.failures)} batch(es) failed",
                feature_ids=failed_ids,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "degraded": self.degraded,
            "breaker_failure_count": self.breaker_failure_count,
            "cached_count": self.cached_count,
            "batch_count": self.batch_count,
            "failures": [f.to_dict() for f in self.failures],
        }


# ============================================================================
# Resolver
# ============================================================================

class WebStatusResolver:
    """
    Resolves feature IDs to Baseline status records.

    Owns its circuit breaker and cache; a fresh resolver starts closed and empty.
    """

    def __init__(
        self,
        base_url: str = WEBSTATUS_BASE_URL,
        batch_size: int = WEBSTATUS_BATCH_SIZE,
        timeout_ms: int = WEBSTATUS_TIMEOUT_MS,
        max_retries: int = WEBSTATUS_MAX_RETRIES,
        max_concurrent: int = WEBSTATUS_MAX_CONCURRENCY,
        overall_timeout_sec: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None,
        cache: Optional[StatusCache] = None,
        session: Optional[requests.Session] = None,
        sleep: Optional[Callable[[float], None]] = None,
        jitter_ms: int = BACKOFF_JITTER_MS,
    ):
        self.base_url = base_url
        self.batch_size = max(1, int(batch_size))
        self.timeout_ms = int(timeout_ms)
        self.max_retries = max(0, int(max_retries))
        self.max_concurrent = max(1, int(max_concurrent))
        self.overall_timeout_sec = overall_timeout_sec
        self.breaker = breaker or CircuitBreaker()
        self.cache = cache or StatusCache()
        self.session = session or requests.Session()
        self._sleep = sleep
        self.jitter_ms = max(0, int(jitter_ms))

    @classmethod
    def from_config(cls, config: Any = None, **kwargs: Any) -> "WebStatusResolver":
        """Build a resolver from settings (BaselineGateConfig or its webstatus section)."""
        if config is None:
            from baselinegate.core.settings import load_config
            config = load_config()
        ws = getattr(config, "webstatus", config)
        breaker = kwargs.pop("breaker", None) or CircuitBreaker(
            threshold=ws.breaker_threshold,
            cooldown_sec=ws.breaker_cooldown_sec,
        )
        return cls(
            base_url=ws.base_url,
            batch_size=ws.batch_size,
            timeout_ms=ws.timeout_ms,
            max_retries=ws.max_retries,
            max_concurrent=ws.max_concurrent,
            overall_timeout_sec=ws.overall_timeout_sec,
            breaker=breaker,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, feature_ids: Iterable[str]) -> ResolutionResult:
        """Resolve every ID (cache first, then bounded-concurrency batches)."""
        requested = sorted({fid for fid in feature_ids if isinstance(fid, str)})
        statuses: Dict[str, StatusRecord] = {}
        uncached: List[str] = []
        for fid in requested:
            cached = self.cache.get(fid)
            if cached is not None:
                statuses[fid] = cached
            else:
                uncached.append(fid)

        batches = [uncached[i:i + self.batch_size] for i in range(0, len(uncached), self.batch_size)]
        failures: List[BatchFailure] = []

        if batches:
            cancel = threading.Event()
            with ThreadPoolExecutor(max_workers=min(self.max_concurrent, len(batches))) as executor:
                future_to_batch = {
                    executor.submit(self._resolve_batch, batch, cancel): tuple(batch)
                    for batch in batches
                }
                _, not_done = wait(future_to_batch, timeout=self.overall_timeout_sec)
                if not_done:
                    logger.warning(
                        "[WEBSTATUS] overall timeout %.1fs reached; cancelling %d batch(es)",
                        self.overall_timeout_sec or 0.0, len(not_done),
                    )
                    cancel.set()
                    for future in not_done:
                        future.cancel()
            # executor exit joins every running batch
            for future, batch in future_to_batch.items():
                if future.cancelled():
                    records = {fid: UNKNOWN_RECORD for fid in batch}
                    failure: Optional[BatchFailure] = BatchFailure.from_error(
                        ResolutionCancelledError("Cancelled before start", feature_ids=batch), batch
                    )
                else:
                    try:
                        records, failure = future.result()
                    except Exception as e:
                        logger.exception("[WEBSTATUS] unexpected error resolving batch: %s", e)
                        records = {fid: UNKNOWN_RECORD for fid in batch}
                        failure = BatchFailure.from_error(
                            WebStatusTransientError(f"Unexpected error: {e}", feature_ids=batch), batch
                        )
                statuses.update(records)
                if failure is not None:
                    failures.append(failure)

        for fid in requested:
            statuses.setdefault(fid, UNKNOWN_RECORD)

        result = ResolutionResult(
            statuses=statuses,
            failures=failures,
            breaker_failure_count=self.breaker.failure_count,
            cached_count=len(requested) - len(uncached),
            batch_count=len(batches),
        )
        logger.info(
            "[WEBSTATUS] resolved %d ids (%d cached, %d batches, %d failed, breaker=%s)",
            len(requested), result.cached_count, len(batches), len(failures), self.breaker.state.value,
        )
        if result.degraded:
            logger.warning(
                "[WEBSTATUS] degraded resolution: %d unknown ids after %d failed batch(es)",
                len(result.unknown_ids), len(failures),
            )
        return result

    def fetch_batch(self, feature_ids: Sequence[str]) -> Dict[str, StatusRecord]:
        """
        Fetch one batch with retries. Returns the authority's records keyed by the
        returned feature_id (sanitized form).

        Raises:
            WebStatusTransientError: retries exhausted.
            WebStatusPermanentError: non-retryable failure.
            CircuitOpenError: breaker denied an attempt.
        """
        return self._fetch_with_retries(list(feature_ids), threading.Event())

    def stats(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.stats(),
            "circuit_breaker": self.breaker.snapshot(),
        }

    def reset(self) -> None:
        """Clear the cache and close the breaker."""
        self.cache.clear()
        self.breaker.reset()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_batch(
        self, batch: Sequence[str], cancel: threading.Event
    ) -> Tuple[Dict[str, StatusRecord], Optional[BatchFailure]]:
        try:
            returned = self._fetch_with_retries(list(batch), cancel)
        except WebStatusError as e:
            logger.warning("[WEBSTATUS] batch of %d failed (%s): %s", len(batch), type(e).__name__, e)
            return {fid: UNKNOWN_RECORD for fid in batch}, BatchFailure.from_error(e, batch)

        records: Dict[str, StatusRecord] = {}
        for fid in batch:
            # absent from the response (or unsanitizable) is UNKNOWN, not an error
            record = returned.get(sanitize_feature_id(fid), UNKNOWN_RECORD)
            records[fid] = record
            self.cache.put(fid, record)
        return records, None

    def _fetch_with_retries(self, batch: List[str], cancel: threading.Event) -> Dict[str, StatusRecord]:
        query = build_query(batch)
        attempt = 0
        while True:
            if cancel.is_set():
                raise ResolutionCancelledError("Resolution cancelled", feature_ids=batch)
            if not self.breaker.should_allow():
                raise CircuitOpenError(
                    "Circuit breaker is open - WebStatus API temporarily unavailable",
                    feature_ids=batch,
                )
            is_trial = self.breaker.state == BreakerState.HALF_OPEN
            try:
                records = self._request_once(query, batch)
            except WebStatusTransientError as e:
                if is_trial:
                    self.breaker.record_failure()
                    raise
                if attempt >= self.max_retries:
                    self.breaker.record_failure()
                    raise WebStatusTransientError(
                        f"{e} (after {attempt + 1} attempts)",
                        feature_ids=batch,
                        http_status=e.http_status,
                        response_snippet=e.response_snippet,
                    ) from e
                base = BACKOFF_NETWORK_BASE_MS if e.http_status is None else BACKOFF_HTTP_BASE_MS
                delay_ms = backoff_ms(attempt, base) + random.uniform(-self.jitter_ms, self.jitter_ms)
                logger.debug(
                    "[WEBSTATUS] transient failure (%s); retry %d/%d in %.0fms",
                    e, attempt + 1, self.max_retries, delay_ms,
                )
                attempt += 1
                self._pause(max(0.0, delay_ms) / 1000.0, cancel, batch)
                continue
            except WebStatusPermanentError:
                self.breaker.record_failure()
                raise
            self.breaker.record_success()
            return records

    def _request_once(self, query: str, batch: Sequence[str]) -> Dict[str, StatusRecord]:
        url = url_features(self.base_url)
        try:
            resp = self.session.get(
                url,
                params={"q": query},
                headers={"Accept": "application/json", "User-Agent": WEBSTATUS_USER_AGENT},
                timeout=self.timeout_ms / 1000.0,
            )
        except requests.Timeout as e:
            raise WebStatusTransientError(
                f"Request timeout after {self.timeout_ms}ms", feature_ids=batch
            ) from e
        except requests.RequestException as e:
            raise WebStatusTransientError(
                f"Request failed: {e}", feature_ids=batch, response_snippet=str(e)[:200]
            ) from e

        status = resp.status_code
        if status == 429 or status >= 500:
            raise WebStatusTransientError(
                f"WebStatus API returned HTTP {status}",
                feature_ids=batch,
                http_status=status,
                response_snippet=(resp.text or "")[:200],
            )
        if not 200 <= status < 300:
            raise WebStatusPermanentError(
                f"Client error: HTTP {status}",
                feature_ids=batch,
                http_status=status,
                response_snippet=(resp.text or "")[:200],
            )
        try:
            raw: Any = resp.json()
        except ValueError as e:
            raise WebStatusPermanentError(
                f"Invalid JSON response: {e}",
                feature_ids=batch,
                http_status=status,
                response_snippet=(resp.text or "")[:200],
            ) from e
        return parse_response(raw, batch)

    def _pause(self, seconds: float, cancel: threading.Event, batch: Sequence[str]) -> None:
        if self._sleep is not None:
            self._sleep(seconds)
            interrupted = cancel.is_set()
        else:
            interrupted = cancel.wait(seconds)
        if interrupted:
            raise ResolutionCancelledError("Resolution cancelled during backoff", feature_ids=batch)
