# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Baseline budgets: CI gating policy per site and per route.

Policy file (baseline.budgets.json):
  {"minScore": 0.9, "forbidLimited": false, "allowUnknown": true,
   "perRoute": {"/api": {"minScore": 0.95, "forbidLimited": true}}}

Route fields left out inherit the global value. Evaluation only reports; the
score itself is never changed here (see apply_budget for strict gating).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import urlsplit

from baselinegate.core.models.baseline_types import BaselineStatus

logger = logging.getLogger(__name__)

DEFAULT_BUDGETS_FILE = "baseline.budgets.json"


@dataclass(frozen=True)
class RoutePolicy:
    """Per-route override. None means inherit the global value."""
    min_score: Optional[float] = None
    forbid_limited: Optional[bool] = None
    allow_unknown: Optional[bool] = None


@dataclass(frozen=True)
class BudgetPolicy:
    min_score: Optional[float] = None
    forbid_limited: bool = False
    allow_unknown: bool = True
    per_route: Dict[str, RoutePolicy] = field(default_factory=dict)

    def for_route(self, route: str) -> RoutePolicy:
        return self.per_route.get(route, RoutePolicy())


@dataclass
class BudgetEvaluation:
    violated: bool = False
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"violated": self.violated, "reasons": list(self.reasons)}


def _clamp_score(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return max(0.0, min(1.0, float(value)))


def _opt_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def normalize_policy(raw: Any) -> BudgetPolicy:
    """
    Validate a parsed policy document. Wrong types fall back to defaults:
    minScore unset, forbidLimited false, allowUnknown true.
    """
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("[BUDGET] policy must be an object, got %s; using defaults", type(raw).__name__)
        return BudgetPolicy()

    per_route: Dict[str, RoutePolicy] = {}
    per_route_raw = raw.get("perRoute")
    if isinstance(per_route_raw, Mapping):
        for route, route_raw in per_route_raw.items():
            if not isinstance(route_raw, Mapping):
                logger.warning("[BUDGET] ignoring non-object policy for route %s", route)
                continue
            per_route[str(route)] = RoutePolicy(
                min_score=_clamp_score(route_raw.get("minScore")),
                forbid_limited=_opt_bool(route_raw.get("forbidLimited")),
                allow_unknown=_opt_bool(route_raw.get("allowUnknown")),
            )
    elif per_route_raw is not None:
        logger.warning("[BUDGET] perRoute must be an object; ignoring")

    forbid = raw.get("forbidLimited")
    allow = raw.get("allowUnknown")
    return BudgetPolicy(
        min_score=_clamp_score(raw.get("minScore")),
        forbid_limited=forbid if isinstance(forbid, bool) else False,
        allow_unknown=allow if isinstance(allow, bool) else True,
        per_route=per_route,
    )


def load_budget_policy(path: Optional[Union[str, Path]] = None) -> BudgetPolicy:
    """Load a budgets file (default ./baseline.budgets.json). Problems give a permissive policy."""
    p = Path(path) if path is not None else Path.cwd() / DEFAULT_BUDGETS_FILE
    if not p.exists():
        if path is not None:
            logger.warning("[BUDGET] %s not found; using permissive defaults", p)
        return BudgetPolicy()
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("[BUDGET] could not read %s: %s; using permissive defaults", p, e)
        return BudgetPolicy()
    return normalize_policy(raw)


def route_from_url(url: Optional[str]) -> str:
    """Path component of a URL; "/" for empty or unparsable input."""
    if not url:
        return "/"
    try:
        parts = urlsplit(url)
    except ValueError:
        return "/"
    if not parts.scheme or not parts.netloc:
        return "/"
    return parts.path or "/"


def _percent(value: float) -> int:
    return int(math.floor(value * 100 + 0.5))


def _row_status(row: Any) -> BaselineStatus:
    if isinstance(row, Mapping):
        return BaselineStatus.parse(row.get("status"))
    return BaselineStatus.parse(getattr(row, "status", None))


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def evaluate_budget(
    policy: BudgetPolicy,
    score: float,
    rows: Iterable[Any],
    route: str = "/",
) -> BudgetEvaluation:
    """
    Check score and row statuses against the effective policy for `route`.

    rows may be ScoredFeatureRow objects or dicts with a "status" key.
    """
    override = policy.for_route(route)
    min_score = override.min_score if override.min_score is not None else policy.min_score
    forbid_limited = override.forbid_limited if override.forbid_limited is not None else policy.forbid_limited
    allow_unknown = override.allow_unknown if override.allow_unknown is not None else policy.allow_unknown

    statuses = [_row_status(row) for row in rows]
    limited = sum(1 for s in statuses if s == BaselineStatus.LIMITED)
    unknown = sum(1 for s in statuses if s == BaselineStatus.UNKNOWN)
    suffix = f" on route {route}"

    reasons: List[str] = []
    if min_score is not None and score < min_score:
        reason = f"score {_percent(score)}% < {_percent(min_score)}%"
        reasons.append(reason + suffix if override.min_score is not None else reason)
    if forbid_limited and limited > 0:
        reason = f"{_plural(limited, 'limited feature')} present"
        reasons.append(reason + suffix if override.forbid_limited is not None else reason)
    if not allow_unknown and unknown > 0:
        reason = f"{_plural(unknown, 'unknown feature')} present"
        reasons.append(reason + suffix if override.allow_unknown is not None else reason)

    evaluation = BudgetEvaluation(violated=bool(reasons), reasons=reasons)
    if evaluation.violated:
        logger.info("[BUDGET] route=%s violated: %s", route, "; ".join(reasons))
    return evaluation


def apply_budget(score: float, evaluation: BudgetEvaluation, strict: bool = True) -> float:
    """Gated score: 0.0 when strict and the budget is violated, else the score unchanged."""
    if strict and evaluation.violated:
        return 0.0
    return score
