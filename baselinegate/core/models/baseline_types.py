# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Baseline models: status records, usage records and scored rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class BaselineStatus(str, Enum):
    """Cross-browser support maturity of a web-platform feature.

    UNKNOWN is the only value produced for an unreachable or data-less lookup.
    """

    WIDELY = "widely"
    NEWLY = "newly"
    LIMITED = "limited"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: Any) -> "BaselineStatus":
        """Case-insensitive parse; anything unrecognised is UNKNOWN."""
        if isinstance(raw, BaselineStatus):
            return raw
        if raw is None:
            return cls.UNKNOWN
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class OriginType(str, Enum):
    """Where a detected usage came from."""

    FIRST_PARTY = "first-party"
    VENDOR = "vendor"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StatusRecord:
    """Immutable Baseline status for one feature."""

    status: BaselineStatus
    low_date: Optional[str] = None
    high_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status.value}
        if self.low_date:
            out["low_date"] = self.low_date
        if self.high_date:
            out["high_date"] = self.high_date
        return out


UNKNOWN_RECORD = StatusRecord(status=BaselineStatus.UNKNOWN)


@dataclass(frozen=True)
class SourceLocation:
    """Where a token was found (script or stylesheet URL plus position)."""

    url: str
    line: int = 0
    column: int = 0
    origin_type: OriginType = OriginType.FIRST_PARTY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "line": self.line,
            "column": self.column,
            "origin_type": self.origin_type.value,
        }


@dataclass
class FeatureUsage:
    """Aggregated usage of one feature across all detected tokens."""

    feature_id: str
    token_count: int = 0
    locations: List[SourceLocation] = field(default_factory=list)
    # first-party tokens, including inline ones that carry no location
    first_party_count: int = 0

    @property
    def vendor_only(self) -> bool:
        """True when every token came from vendor code and at least one location says so."""
        if self.first_party_count > 0 or not self.locations:
            return False
        return all(loc.origin_type == OriginType.VENDOR for loc in self.locations)

    @property
    def origin_type(self) -> OriginType:
        return OriginType.VENDOR if self.vendor_only else OriginType.FIRST_PARTY


@dataclass(frozen=True)
class ScoredFeatureRow:
    """One row of the scoring table. Derived per run, never persisted as state."""

    feature_id: str
    status: BaselineStatus
    weight: float
    is_core: bool
    origin_type: OriginType = OriginType.FIRST_PARTY
    locations: Tuple[SourceLocation, ...] = ()
    points: float = 0.0
    low_date: Optional[str] = None
    high_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature_id": self.feature_id,
            "status": self.status.value,
            "weight": round(self.weight, 4),
            "is_core": self.is_core,
            "origin_type": self.origin_type.value,
            "points": self.points,
            "low_date": self.low_date,
            "high_date": self.high_date,
            "locations": [loc.to_dict() for loc in self.locations],
        }
