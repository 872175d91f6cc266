# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Core models for BaselineGate."""

from baselinegate.core.models.baseline_types import (
    BaselineStatus,
    FeatureUsage,
    OriginType,
    ScoredFeatureRow,
    SourceLocation,
    StatusRecord,
    UNKNOWN_RECORD,
)

__all__ = [
    "BaselineStatus",
    "FeatureUsage",
    "OriginType",
    "ScoredFeatureRow",
    "SourceLocation",
    "StatusRecord",
    "UNKNOWN_RECORD",
]
