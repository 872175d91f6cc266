#!/usr/bin/env python3
# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Diff tool for comparing two Baseline readiness run JSON files (base vs head)."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from baselinegate.core.eval.baseline_diff import (
    BaselineDiffInputError,
    DiffResult,
    default_output_path,
    diff_runs,
    load_run_output,
    write_diff,
)


def format_summary(result: DiffResult) -> str:
    """Human-readable summary of a diff."""
    data = result.to_dict()
    lines: List[str] = []
    lines.append("=" * 60)
    lines.append("BASELINE DIFF SUMMARY")
    lines.append("=" * 60)
    lines.append(f"  Score change: {data['scoreDelta'] * 100:+.1f}%")

    if result.new_limited:
        lines.append(f"\n  NEW LIMITED ({len(result.new_limited)}):")
        for feature_id in result.new_limited:
            lines.append(f"    + {feature_id}")

    if result.downgrades:
        lines.append(f"\n  DOWNGRADES ({len(result.downgrades)}):")
        for feature_id, before, after in result.downgrades:
            lines.append(f"    - {feature_id}: {before.value} -> {after.value}")

    if result.top_contributors:
        lines.append("\n  TOP CONTRIBUTORS:")
        for feature_id, delta in result.top_contributors:
            lines.append(f"    {feature_id:30s} {delta:+.3f}")

    if not (result.new_limited or result.downgrades or result.top_contributors):
        lines.append("  (no feature differences)")

    lines.append("=" * 60)
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Diff two Baseline readiness run JSON files")
    parser.add_argument("base", type=Path, help="Base run JSON file")
    parser.add_argument("head", type=Path, help="Head run JSON file")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Diff JSON path (default: <head>-baseline-diff.json)",
    )
    parser.add_argument("--top", type=int, default=5, help="Number of top contributors")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        base = load_run_output(args.base, side="base")
        head = load_run_output(args.head, side="head")
        result = diff_runs(base, head, top_n=args.top)
    except BaselineDiffInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_summary(result))
    output = write_diff(result, default_output_path(args.head, args.output))
    print(f"Diff written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
