# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""UA distribution targets and the UA support factor.

The distribution file is `{"uaDistribution": {"safari", "chrome", "firefox", "edge"}}`
with arbitrary non-negative numbers. Values are normalized to sum to 1.0; invalid
input never aborts a run, it falls back to an equal 0.25 split.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from baselinegate.core.models.baseline_types import BaselineStatus

logger = logging.getLogger(__name__)

BROWSERS = ("safari", "chrome", "firefox", "edge")

FACTOR_MIN = 0.5
FACTOR_MAX = 1.0
UNKNOWN_FACTOR = 0.7
NEWLY_BASE_FACTOR = 0.8
NEWLY_SAFARI_PENALTY = 0.2
LIMITED_BASE_FACTOR = 0.5
LIMITED_CHROMIUM_BONUS = 0.5


def default_distribution() -> Dict[str, float]:
    return {browser: 0.25 for browser in BROWSERS}


def _clamp(value: float, lo: float = FACTOR_MIN, hi: float = FACTOR_MAX) -> float:
    return max(lo, min(hi, value))


def normalize_ua_distribution(dist: Any) -> Dict[str, float]:
    """
    Normalize to the four browser keys summing to 1.0.

    Negative, non-numeric and non-finite values are dropped (treated as 0).
    Missing keys are 0. Empty, all-zero or non-mapping input gives 0.25 each.
    """
    if not isinstance(dist, Mapping):
        return default_distribution()

    valid: Dict[str, float] = {}
    for browser in BROWSERS:
        value = dist.get(browser)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if not math.isfinite(value) or value < 0:
            continue
        valid[browser] = float(value)

    peak = max(valid.values(), default=0.0)
    if peak <= 0:
        return default_distribution()

    # Scale by the largest share first so the sum stays finite
    scaled = {browser: value / peak for browser, value in valid.items()}
    total = math.fsum(scaled.values())
    return {browser: scaled.get(browser, 0.0) / total for browser in BROWSERS}


def normalize_targets(targets: Any) -> Dict[str, Dict[str, float]]:
    """Normalize a parsed targets document; anything unusable becomes the default split."""
    if isinstance(targets, Mapping) and targets.get("uaDistribution") is not None:
        return {"uaDistribution": normalize_ua_distribution(targets.get("uaDistribution"))}
    return {"uaDistribution": default_distribution()}


def load_ua_distribution(path: Optional[Union[str, Path]] = None) -> Dict[str, float]:
    """Load and normalize a UA distribution file. Missing or malformed files give the default split."""
    if path is None:
        return default_distribution()
    p = Path(path)
    if not p.exists():
        return default_distribution()
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("[TARGETS] could not read %s: %s; using equal distribution", p, e)
        return default_distribution()
    return normalize_targets(raw)["uaDistribution"]


def ua_support_factor(status: BaselineStatus, ua_distribution: Optional[Mapping[str, float]] = None) -> float:
    """
    Share of the target audience likely able to use a feature, in [0.5, 1.0].

    Limited features are assumed Chromium-only (Chrome + Edge); Newly features
    are assumed to lag on Safari.
    """
    dist = ua_distribution if ua_distribution is not None else default_distribution()
    status = BaselineStatus.parse(status)
    if status == BaselineStatus.WIDELY:
        return FACTOR_MAX
    if status == BaselineStatus.LIMITED:
        chromium_share = float(dist.get("chrome", 0.0)) + float(dist.get("edge", 0.0))
        return _clamp(LIMITED_BASE_FACTOR + LIMITED_CHROMIUM_BONUS * chromium_share)
    if status == BaselineStatus.NEWLY:
        safari_share = float(dist.get("safari", 0.0))
        return _clamp(NEWLY_BASE_FACTOR - NEWLY_SAFARI_PENALTY * safari_share)
    return UNKNOWN_FACTOR
