# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Readiness run: resolve statuses, score, evaluate the budget for the page's route.

  tokens / feature ids -> WebStatusResolver -> compute_baseline_score -> evaluate_budget

The report's to_dict() is the run output consumed by the diff engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from baselinegate.core.features.feature_map import (
    FeatureMap,
    Token,
    collect_feature_usage,
    map_tokens_to_feature_ids,
)
from baselinegate.core.gates.budgets import (
    BudgetEvaluation,
    BudgetPolicy,
    apply_budget,
    evaluate_budget,
    route_from_url,
)
from baselinegate.core.models.baseline_types import FeatureUsage
from baselinegate.core.scoring.baseline_score import BaselineScore, compute_baseline_score
from baselinegate.core.webstatus.webstatus_client import ResolutionResult, WebStatusResolver

logger = logging.getLogger(__name__)

WARN_API_UNAVAILABLE = "WebStatus API unreachable - showing cached/unknown status"
WARN_UNRESOLVED_TOKENS = "Some tokens did not resolve to known features"


@dataclass
class ReadinessReport:
    """One page run: gated score, raw score, budget outcome and resolver health."""
    score: float
    baseline: BaselineScore
    budget: BudgetEvaluation
    resolution: ResolutionResult
    route: str = "/"
    warnings: List[str] = field(default_factory=list)
    resolver_stats: Dict[str, Any] = field(default_factory=dict)
    map_version: Optional[str] = None

    @property
    def raw_score(self) -> float:
        return self.baseline.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "rawScore": self.raw_score,
            "numeric100": self.baseline.numeric100,
            "summary": self.baseline.summary,
            "rows": [row.to_dict() for row in self.baseline.rows],
            "warnings": list(self.warnings),
            "budget": self.budget.to_dict(),
            "route": self.route,
            "mapVersion": self.map_version,
            "resolution": {
                "degraded": self.resolution.degraded,
                "failures": [f.to_dict() for f in self.resolution.failures],
                "stats": self.resolver_stats,
            },
        }


def run_readiness(
    feature_ids: Optional[Iterable[str]] = None,
    *,
    usages: Optional[Mapping[str, FeatureUsage]] = None,
    tokens: Optional[Iterable[Token]] = None,
    feature_map: Optional[FeatureMap] = None,
    resolver: Optional[WebStatusResolver] = None,
    policy: Optional[BudgetPolicy] = None,
    ua_distribution: Optional[Mapping[str, float]] = None,
    url: Optional[str] = None,
    coverage: Optional[Mapping[str, Any]] = None,
    niche_features: Optional[FrozenSet[str]] = None,
    strict: bool = True,
) -> ReadinessReport:
    """
    Run the full readiness pipeline for one page.

    Feature ids come from `feature_ids`, the keys of `usages`, and any `tokens`
    mapped through `feature_map`. Tokens also contribute usage counts and locations.
    Resolution never raises; a degraded resolution adds a warning instead.
    """
    warnings: List[str] = []
    merged_usages: Optional[Dict[str, FeatureUsage]] = dict(usages) if usages is not None else None
    map_version: Optional[str] = None

    if tokens is not None:
        token_list = list(tokens)
        mapping = map_tokens_to_feature_ids(token_list, feature_map)
        map_version = mapping.map_version
        if mapping.unresolved:
            warnings.append(WARN_UNRESOLVED_TOKENS)
        token_usages = collect_feature_usage(token_list, feature_map, url)
        if merged_usages is None:
            merged_usages = {}
        for feature_id, usage in token_usages.items():
            merged_usages.setdefault(feature_id, usage)

    ids = set(feature_ids or ())
    if merged_usages is not None:
        ids.update(merged_usages)

    resolver = resolver or WebStatusResolver.from_config()
    resolution = resolver.resolve(ids)
    if resolution.degraded:
        warnings.append(WARN_API_UNAVAILABLE)

    baseline = compute_baseline_score(
        resolution.statuses,
        usages=merged_usages,
        ua_distribution=ua_distribution,
        coverage=coverage,
        niche_features=niche_features,
    )
    warnings.extend(baseline.warnings)

    route = route_from_url(url)
    budget = evaluate_budget(policy or BudgetPolicy(), baseline.score, baseline.rows, route=route)
    if budget.violated:
        warnings.append(f"Baseline budget violation: {', '.join(budget.reasons)}")
    final_score = apply_budget(baseline.score, budget, strict=strict)

    logger.info(
        "[BASELINE_SCORE] route=%s features=%d score=%.3f final=%.3f degraded=%s budget_violated=%s",
        route, len(ids), baseline.score, final_score, resolution.degraded, budget.violated,
    )
    return ReadinessReport(
        score=final_score,
        baseline=baseline,
        budget=budget,
        resolution=resolution,
        route=route,
        warnings=warnings,
        resolver_stats=resolver.stats(),
        map_version=map_version,
    )
