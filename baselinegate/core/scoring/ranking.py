# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Deterministic ordering of scored feature rows."""

from __future__ import annotations

from typing import Iterable, List

from baselinegate.core.models.baseline_types import ScoredFeatureRow
from baselinegate.core.scoring.config import STATUS_SORT_RANK


def rank_rows(rows: Iterable[ScoredFeatureRow]) -> List[ScoredFeatureRow]:
    """
    Sort by status (limited < newly < widely < unknown), then weight desc, then feature id asc.
    Returns a new list; the order does not depend on input order.
    """
    def key(row: ScoredFeatureRow) -> tuple:
        return (
            STATUS_SORT_RANK[row.status],
            -row.weight,
            row.feature_id,
        )

    return sorted(rows, key=key)
