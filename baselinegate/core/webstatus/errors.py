# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""WebStatus error taxonomy and per-batch failure records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class WebStatusError(Exception):
    """Base error for a failed status lookup."""

    def __init__(
        self,
        message: str,
        feature_ids: Optional[Sequence[str]] = None,
        http_status: Optional[int] = None,
        response_snippet: str = "",
    ) -> None:
        self.feature_ids = list(feature_ids or [])
        self.http_status = http_status
        self.response_snippet = (response_snippet or "")[:500]
        super().__init__(message)


class WebStatusTransientError(WebStatusError):
    """Timeout, connection error, HTTP 429 or 5xx. Retried with backoff."""


class WebStatusPermanentError(WebStatusError):
    """Other 4xx, malformed JSON or response shape, or a batch with no valid IDs. Never retried."""


class CircuitOpenError(WebStatusError):
    """Rejected pre-flight because the circuit breaker is open. Not counted as a new failure."""


class WebStatusUnavailableError(WebStatusError):
    """Aggregate: the authority could not be reached for one or more whole batches."""


class ResolutionCancelledError(WebStatusError):
    """The overall resolve deadline passed before this batch finished."""


class FailureKind(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    BREAKER_OPEN = "breaker_open"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BatchFailure:
    """Why a batch degraded to Unknown."""

    kind: FailureKind
    feature_ids: List[str] = field(default_factory=list)
    message: str = ""
    http_status: Optional[int] = None

    @classmethod
    def from_error(cls, err: WebStatusError, feature_ids: Sequence[str]) -> "BatchFailure":
        if isinstance(err, ResolutionCancelledError):
            kind = FailureKind.CANCELLED
        elif isinstance(err, CircuitOpenError):
            kind = FailureKind.BREAKER_OPEN
        elif isinstance(err, WebStatusPermanentError):
            kind = FailureKind.PERMANENT
        else:
            kind = FailureKind.TRANSIENT
        return cls(kind=kind, feature_ids=list(feature_ids), message=str(err), http_status=err.http_status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "feature_ids": list(self.feature_ids),
            "message": self.message,
            "http_status": self.http_status,
        }
