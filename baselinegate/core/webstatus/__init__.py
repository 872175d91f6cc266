# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
WebStatus (webstatus.dev) Baseline status client.

  - CircuitBreaker / StatusCache: shared resilience state per resolver
  - WebStatusResolver: batched, retried, bounded-concurrency resolution
"""
from baselinegate.core.webstatus.circuit_breaker import (
    BreakerState,
    CircuitBreaker,
    StatusCache,
)
from baselinegate.core.webstatus.errors import (
    BatchFailure,
    CircuitOpenError,
    FailureKind,
    ResolutionCancelledError,
    WebStatusError,
    WebStatusPermanentError,
    WebStatusTransientError,
    WebStatusUnavailableError,
)
from baselinegate.core.webstatus.webstatus_client import (
    ResolutionResult,
    WebStatusResolver,
    build_query,
    is_valid_response,
    parse_response,
    sanitize_feature_id,
)

__all__ = [
    # Resilience state
    "BreakerState",
    "CircuitBreaker",
    "StatusCache",
    # Errors
    "BatchFailure",
    "CircuitOpenError",
    "FailureKind",
    "ResolutionCancelledError",
    "WebStatusError",
    "WebStatusPermanentError",
    "WebStatusTransientError",
    "WebStatusUnavailableError",
    # Resolver
    "ResolutionResult",
    "WebStatusResolver",
    "build_query",
    "is_valid_response",
    "parse_response",
    "sanitize_feature_id",
]
