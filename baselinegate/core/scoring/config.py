# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Scoring config: status points, weight bands, bonus and penalty thresholds."""

from __future__ import annotations

from typing import Dict, FrozenSet

from baselinegate.core.models.baseline_types import BaselineStatus

# Points per status; max per feature is WIDELY
STATUS_POINTS: Dict[BaselineStatus, float] = {
    BaselineStatus.WIDELY: 2.0,
    BaselineStatus.NEWLY: 1.0,
    BaselineStatus.LIMITED: 0.0,
    BaselineStatus.UNKNOWN: 0.0,
}
MAX_POINTS = STATUS_POINTS[BaselineStatus.WIDELY]

# Row ordering: attention-needing statuses first, unknown last
STATUS_SORT_RANK: Dict[BaselineStatus, int] = {
    BaselineStatus.LIMITED: 0,
    BaselineStatus.NEWLY: 1,
    BaselineStatus.WIDELY: 2,
    BaselineStatus.UNKNOWN: 3,
}

WEIGHT_MIN = 0.5
WEIGHT_MAX = 1.5

# Usage weight by token count (count > threshold -> weight), checked top-down
USAGE_WEIGHT_VERY_HIGH = (50, 1.5)
USAGE_WEIGHT_HIGH = (20, 1.3)
USAGE_WEIGHT_MEDIUM = (5, 1.1)
USAGE_WEIGHT_SINGLE = 0.8
USAGE_WEIGHT_UNUSED = 0.5
USAGE_WEIGHT_DEFAULT = 1.0

# Coverage telemetry: factor = clamp(frequency / divisor, min, max)
COVERAGE_DIVISOR = 10.0
COVERAGE_FACTOR_MIN = 0.5
COVERAGE_FACTOR_MAX = 1.5

NICHE_VENDOR_DOWNWEIGHT = 0.75

# Progressive enhancement
CORE_WIDELY_RATIO = 0.90
CORE_BONUS = 0.10
ENHANCEMENT_RATIO = 0.80
ENHANCEMENT_BONUS = 0.05
BONUS_CAP = 0.15

# Limited-ratio penalty
LIMITED_RATIO_THRESHOLD = 0.30
LIMITED_PENALTY_MULTIPLIER = 0.8

CORE_FEATURES: FrozenSet[str] = frozenset({
    "fetch",
    "abortable-fetch",
    "promises",
    "async-await",
    "grid",
    "flexbox",
    "custom-properties",
    "es6-module",
    "arrow-functions",
    "const-let",
    "websockets",
    "xhr",
    "dom-manipulation",
    "forms",
    "semantic-html",
    "accessibility",
})

# Features that third-party widgets commonly pull in on their own.
# Overridable via baselinegate.yaml (scoring.niche_features).
NICHE_VENDOR_FEATURES: FrozenSet[str] = frozenset({
    "view-transitions",
    "anchor-positioning",
    "container-style-queries",
    "popover",
    "scroll-driven-animations",
    "web-bluetooth",
    "webusb",
    "web-serial",
    "webhid",
    "payment-request",
})


def is_core_feature(feature_id: str) -> bool:
    return feature_id in CORE_FEATURES
