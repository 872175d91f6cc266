# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Budget gating for CI."""

from baselinegate.core.gates.budgets import (
    BudgetEvaluation,
    BudgetPolicy,
    RoutePolicy,
    apply_budget,
    evaluate_budget,
    load_budget_policy,
    normalize_policy,
    route_from_url,
)

__all__ = [
    "BudgetEvaluation",
    "BudgetPolicy",
    "RoutePolicy",
    "apply_budget",
    "evaluate_budget",
    "load_budget_policy",
    "normalize_policy",
    "route_from_url",
]
