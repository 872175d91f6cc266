# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Run orchestration and base/head comparison."""

from baselinegate.core.eval.baseline_diff import (
    BaselineDiffInputError,
    DiffResult,
    diff_runs,
    load_run_output,
    write_diff,
)
from baselinegate.core.eval.readiness_run import ReadinessReport, run_readiness

__all__ = [
    "BaselineDiffInputError",
    "DiffResult",
    "diff_runs",
    "load_run_output",
    "write_diff",
    "ReadinessReport",
    "run_readiness",
]
