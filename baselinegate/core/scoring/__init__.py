# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Baseline scoring: UA targets, weights, score and row ranking."""

from baselinegate.core.scoring.config import (
    CORE_FEATURES,
    NICHE_VENDOR_FEATURES,
    STATUS_POINTS,
    is_core_feature,
)
from baselinegate.core.scoring.targets import (
    load_ua_distribution,
    normalize_targets,
    normalize_ua_distribution,
    ua_support_factor,
)
from baselinegate.core.scoring.ranking import rank_rows
from baselinegate.core.scoring.baseline_score import (
    BaselineScore,
    compute_baseline_score,
    coverage_factor,
    feature_weight,
    progressive_enhancement_bonus,
    usage_weight,
)

__all__ = [
    "CORE_FEATURES",
    "NICHE_VENDOR_FEATURES",
    "STATUS_POINTS",
    "is_core_feature",
    "load_ua_distribution",
    "normalize_targets",
    "normalize_ua_distribution",
    "ua_support_factor",
    "rank_rows",
    "BaselineScore",
    "compute_baseline_score",
    "coverage_factor",
    "feature_weight",
    "progressive_enhancement_bonus",
    "usage_weight",
]
