# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Baseline diff: compare two scored runs (base vs head).

Input per side: {"score": float, "rows": [{"feature_id", "status", "weight"?}, ...]},
which is what BaselineScore.to_dict() and ReadinessReport.to_dict() produce.

Output: {"scoreDelta", "newLimited", "downgrades", "topContributors"}.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from baselinegate.core.models.baseline_types import BaselineStatus
from baselinegate.core.scoring.config import STATUS_POINTS

logger = logging.getLogger(__name__)

# Losing a known status counts as a downgrade
DOWNGRADE_RANK: Dict[BaselineStatus, int] = {
    BaselineStatus.UNKNOWN: 0,
    BaselineStatus.LIMITED: 1,
    BaselineStatus.NEWLY: 2,
    BaselineStatus.WIDELY: 3,
}

CONTRIBUTOR_EPSILON = 1e-3
DEFAULT_TOP_N = 5


class BaselineDiffInputError(ValueError):
    """A run output is structurally unusable for diffing."""

    def __init__(self, side: str, problem: str) -> None:
        self.side = side
        self.problem = problem
        super().__init__(f"{side}: {problem}")


@dataclass(frozen=True)
class _FeatureEntry:
    status: BaselineStatus
    weight: float

    @property
    def contribution(self) -> float:
        return STATUS_POINTS[self.status] * self.weight


@dataclass
class DiffResult:
    score_delta: float
    new_limited: List[str] = field(default_factory=list)
    downgrades: List[Tuple[str, BaselineStatus, BaselineStatus]] = field(default_factory=list)
    top_contributors: List[Tuple[str, float]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scoreDelta": round(self.score_delta, 3),
            "newLimited": [{"feature_id": fid} for fid in self.new_limited],
            "downgrades": [
                {"feature_id": fid, "from": before.value, "to": after.value}
                for fid, before, after in self.downgrades
            ],
            "topContributors": [
                {"feature_id": fid, "delta": delta} for fid, delta in self.top_contributors
            ],
        }


def _validate_run(run: Any, side: str) -> Tuple[float, Dict[str, _FeatureEntry]]:
    if not isinstance(run, Mapping):
        raise BaselineDiffInputError(side, "run output must be an object")
    score = run.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        raise BaselineDiffInputError(side, "missing or non-numeric 'score'")
    rows = run.get("rows")
    if not isinstance(rows, list):
        raise BaselineDiffInputError(side, "missing or non-list 'rows'")

    features: Dict[str, _FeatureEntry] = {}
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise BaselineDiffInputError(side, f"row {i} is not an object")
        feature_id = row.get("feature_id")
        status = row.get("status")
        if not isinstance(feature_id, str) or not isinstance(status, str):
            raise BaselineDiffInputError(side, f"row {i} needs string 'feature_id' and 'status'")
        weight = row.get("weight")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not weight:
            weight = 1.0
        features[feature_id] = _FeatureEntry(status=BaselineStatus.parse(status), weight=float(weight))
    return float(score), features


def diff_runs(base: Mapping[str, Any], head: Mapping[str, Any], top_n: int = DEFAULT_TOP_N) -> DiffResult:
    """
    Compare base and head runs.

    Raises:
        BaselineDiffInputError: either side is structurally invalid.
    """
    base_score, base_features = _validate_run(base, "base")
    head_score, head_features = _validate_run(head, "head")

    new_limited: List[str] = []
    downgrades: List[Tuple[str, BaselineStatus, BaselineStatus]] = []
    contributors: List[Tuple[str, float]] = []

    for feature_id in sorted(head_features):
        head_entry = head_features[feature_id]
        base_entry = base_features.get(feature_id)

        if head_entry.status == BaselineStatus.LIMITED and (
            base_entry is None or base_entry.status != BaselineStatus.LIMITED
        ):
            new_limited.append(feature_id)

        if base_entry is not None:
            if DOWNGRADE_RANK[head_entry.status] < DOWNGRADE_RANK[base_entry.status]:
                downgrades.append((feature_id, base_entry.status, head_entry.status))

        base_contribution = base_entry.contribution if base_entry is not None else 0.0
        delta = head_entry.contribution - base_contribution
        if abs(delta) > CONTRIBUTOR_EPSILON:
            contributors.append((feature_id, delta))

    contributors.sort(key=lambda item: (-abs(item[1]), item[0]))
    result = DiffResult(
        score_delta=head_score - base_score,
        new_limited=new_limited,
        downgrades=downgrades,
        top_contributors=contributors[: max(top_n, 0)],
    )
    logger.info(
        "[BASELINE_DIFF] delta=%.3f new_limited=%d downgrades=%d",
        result.score_delta, len(new_limited), len(downgrades),
    )
    return result


def load_run_output(path: Union[str, Path], side: str = "run") -> Dict[str, Any]:
    """Read a run output JSON file. Unreadable or non-JSON files raise BaselineDiffInputError."""
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise BaselineDiffInputError(side, f"file not found: {p}") from e
    except (OSError, ValueError) as e:
        raise BaselineDiffInputError(side, f"could not read {p}: {e}") from e
    if not isinstance(data, dict):
        raise BaselineDiffInputError(side, f"{p} does not contain a JSON object")
    return data


def write_diff(result: DiffResult, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
    return p


def default_output_path(head_path: Union[str, Path], output: Optional[Union[str, Path]] = None) -> Path:
    """head.json -> head-baseline-diff.json next to the head file."""
    if output is not None:
        return Path(output)
    head = Path(head_path)
    return head.with_name(f"{head.stem}-baseline-diff.json")
