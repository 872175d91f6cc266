# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Baseline readiness score.

score = sum(points * weight) / sum(2 * weight), then
  + progressive-enhancement bonus (capped 0.15, result capped 1.0)
  * 0.8 when more than 30% of features are limited.

weight = usage_weight * ua_support_factor * niche_downweight, clamped to [0.5, 1.5].

Never raises for status content: unknown contributes zero points and no penalty.
Sums run over features in sorted order so the score does not depend on input order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from baselinegate.core.models.baseline_types import (
    BaselineStatus,
    FeatureUsage,
    OriginType,
    ScoredFeatureRow,
    StatusRecord,
)
from baselinegate.core.scoring.config import (
    BONUS_CAP,
    CORE_BONUS,
    CORE_WIDELY_RATIO,
    COVERAGE_DIVISOR,
    COVERAGE_FACTOR_MAX,
    COVERAGE_FACTOR_MIN,
    ENHANCEMENT_BONUS,
    ENHANCEMENT_RATIO,
    LIMITED_PENALTY_MULTIPLIER,
    LIMITED_RATIO_THRESHOLD,
    MAX_POINTS,
    NICHE_VENDOR_DOWNWEIGHT,
    NICHE_VENDOR_FEATURES,
    STATUS_POINTS,
    USAGE_WEIGHT_DEFAULT,
    USAGE_WEIGHT_HIGH,
    USAGE_WEIGHT_MEDIUM,
    USAGE_WEIGHT_SINGLE,
    USAGE_WEIGHT_UNUSED,
    USAGE_WEIGHT_VERY_HIGH,
    WEIGHT_MAX,
    WEIGHT_MIN,
    is_core_feature,
)
from baselinegate.core.scoring.ranking import rank_rows
from baselinegate.core.scoring.targets import ua_support_factor

logger = logging.getLogger(__name__)

WARN_NO_FEATURES = "No Web Platform features detected"
WARN_NO_CORE = "No core web platform features detected; consider well-established features for better compatibility"
WARN_LIMITED_HEAVY = "High usage of features with limited browser support detected"


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def usage_weight(token_count: int) -> float:
    """Weight from how many tokens referenced the feature."""
    if token_count > USAGE_WEIGHT_VERY_HIGH[0]:
        return USAGE_WEIGHT_VERY_HIGH[1]
    if token_count > USAGE_WEIGHT_HIGH[0]:
        return USAGE_WEIGHT_HIGH[1]
    if token_count > USAGE_WEIGHT_MEDIUM[0]:
        return USAGE_WEIGHT_MEDIUM[1]
    if token_count == 1:
        return USAGE_WEIGHT_SINGLE
    if token_count <= 0:
        return USAGE_WEIGHT_UNUSED
    return USAGE_WEIGHT_DEFAULT


def coverage_factor(frequency: Any) -> Optional[float]:
    """clamp(frequency / 10, 0.5, 1.5); None when the telemetry value is unusable."""
    if isinstance(frequency, bool) or not isinstance(frequency, (int, float)) or not math.isfinite(frequency):
        return None
    return _clamp(frequency / COVERAGE_DIVISOR, COVERAGE_FACTOR_MIN, COVERAGE_FACTOR_MAX)


def feature_weight(
    feature_id: str,
    status: BaselineStatus,
    usage: Optional[FeatureUsage] = None,
    ua_distribution: Optional[Mapping[str, float]] = None,
    coverage: Optional[Mapping[str, Any]] = None,
    niche_features: FrozenSet[str] = NICHE_VENDOR_FEATURES,
    has_usage_signal: bool = True,
) -> float:
    """Combined weight for one feature, clamped to [0.5, 1.5]."""
    if has_usage_signal:
        weight = usage_weight(usage.token_count if usage is not None else 0)
    else:
        weight = USAGE_WEIGHT_DEFAULT
    if coverage is not None and feature_id in coverage:
        entry = coverage[feature_id]
        # telemetry rows are either a bare frequency or {"frequency": n}
        if isinstance(entry, Mapping):
            entry = entry.get("frequency")
        factor = coverage_factor(entry)
        if factor is not None:
            weight *= factor
        else:
            logger.debug("[BASELINE_SCORE] ignoring unusable coverage for %s: %r", feature_id, coverage[feature_id])
    weight *= ua_support_factor(status, ua_distribution)
    if feature_id in niche_features and usage is not None and usage.vendor_only:
        weight *= NICHE_VENDOR_DOWNWEIGHT
    return _clamp(weight, WEIGHT_MIN, WEIGHT_MAX)


def progressive_enhancement_bonus(statuses: Mapping[str, StatusRecord]) -> float:
    """+0.10 for a solid widely-available core, +0.05 for newly-or-better enhancements; cap 0.15."""
    core_count = core_widely = enh_count = enh_ok = 0
    for feature_id, record in statuses.items():
        if is_core_feature(feature_id):
            core_count += 1
            if record.status == BaselineStatus.WIDELY:
                core_widely += 1
        else:
            enh_count += 1
            if record.status in (BaselineStatus.NEWLY, BaselineStatus.WIDELY):
                enh_ok += 1

    bonus = 0.0
    if core_count > 0 and core_widely / core_count >= CORE_WIDELY_RATIO:
        bonus += CORE_BONUS
    if enh_count > 0 and enh_ok / enh_count >= ENHANCEMENT_RATIO:
        bonus += ENHANCEMENT_BONUS
    return min(bonus, BONUS_CAP)


@dataclass
class BaselineScore:
    """Result of one scoring pass."""
    score: float
    rows: List[ScoredFeatureRow] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    bonus: float = 0.0
    limited_penalty_applied: bool = False

    @property
    def numeric100(self) -> int:
        return int(math.floor(self.score * 100 + 0.5))

    @property
    def summary(self) -> Dict[str, int]:
        stats = {status.value: 0 for status in BaselineStatus}
        for row in self.rows:
            stats[row.status.value] += 1
        return stats

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "numeric100": self.numeric100,
            "bonus": self.bonus,
            "limited_penalty_applied": self.limited_penalty_applied,
            "summary": self.summary,
            "warnings": list(self.warnings),
            "rows": [row.to_dict() for row in self.rows],
        }


def compute_baseline_score(
    statuses: Mapping[str, StatusRecord],
    usages: Optional[Mapping[str, FeatureUsage]] = None,
    ua_distribution: Optional[Mapping[str, float]] = None,
    coverage: Optional[Mapping[str, Any]] = None,
    niche_features: Optional[FrozenSet[str]] = None,
) -> BaselineScore:
    """
    Score resolved statuses.

    Args:
        statuses: feature_id -> StatusRecord (one per distinct feature).
        usages: feature_id -> FeatureUsage. None means no usage signal (neutral usage weight);
            a feature missing from a supplied mapping counts as 0 tokens.
        ua_distribution: normalized UA shares; None means equal split.
        coverage: feature_id -> usage frequency telemetry.
        niche_features: niche vendor allowlist; defaults to NICHE_VENDOR_FEATURES.

    Returns:
        BaselineScore with ranked rows and advisory warnings.
    """
    niche = NICHE_VENDOR_FEATURES if niche_features is None else frozenset(niche_features)
    rows: List[ScoredFeatureRow] = []
    earned: List[float] = []
    possible: List[float] = []
    limited_count = 0
    unknown_count = 0
    core_count = 0

    for feature_id in sorted(statuses):
        record = statuses[feature_id]
        status = BaselineStatus.parse(record.status)
        usage = usages.get(feature_id) if usages is not None else None
        weight = feature_weight(
            feature_id,
            status,
            usage=usage,
            ua_distribution=ua_distribution,
            coverage=coverage,
            niche_features=niche,
            has_usage_signal=usages is not None,
        )
        points = STATUS_POINTS[status]
        earned.append(points * weight)
        possible.append(MAX_POINTS * weight)

        is_core = is_core_feature(feature_id)
        if status == BaselineStatus.LIMITED:
            limited_count += 1
        elif status == BaselineStatus.UNKNOWN:
            unknown_count += 1
        if is_core:
            core_count += 1

        rows.append(ScoredFeatureRow(
            feature_id=feature_id,
            status=status,
            weight=weight,
            is_core=is_core,
            origin_type=usage.origin_type if usage is not None else OriginType.FIRST_PARTY,
            locations=tuple(usage.locations) if usage is not None else (),
            points=points,
            low_date=record.low_date,
            high_date=record.high_date,
        ))

    warnings: List[str] = []
    total_possible = math.fsum(possible)
    score = math.fsum(earned) / total_possible if total_possible > 0 else 1.0

    bonus = progressive_enhancement_bonus(statuses)
    score = min(score + bonus, 1.0)

    penalty = False
    feature_count = len(statuses)
    if feature_count > 0 and limited_count / feature_count > LIMITED_RATIO_THRESHOLD:
        score *= LIMITED_PENALTY_MULTIPLIER
        penalty = True
        warnings.append(WARN_LIMITED_HEAVY)

    if feature_count == 0:
        warnings.append(WARN_NO_FEATURES)
    if unknown_count > 0:
        warnings.append(f"Unable to determine Baseline status for {unknown_count} features")
    if feature_count > 0 and core_count == 0:
        warnings.append(WARN_NO_CORE)

    score = _clamp(score, 0.0, 1.0)
    logger.debug(
        "[BASELINE_SCORE] features=%d limited=%d unknown=%d bonus=%.2f penalty=%s score=%.4f",
        feature_count, limited_count, unknown_count, bonus, penalty, score,
    )
    return BaselineScore(
        score=score,
        rows=rank_rows(rows),
        warnings=warnings,
        bonus=bonus,
        limited_penalty_applied=penalty,
    )
