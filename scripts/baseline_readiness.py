#!/usr/bin/env python3
# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Run a Baseline readiness check for one page and write the run JSON.

Input file (extractor output):
  {"url": "https://example.com/app",
   "tokens": [{"token": "grid", "type": "css", "where": {"url": ..., "line": 1, "column": 4}, "count": 2}],
   "featureIds": ["popover"]}

Exit code 1 when the budget is violated, so CI can gate on it.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from baselinegate.core.eval.readiness_run import run_readiness
from baselinegate.core.features.feature_map import Token, load_feature_map
from baselinegate.core.gates.budgets import load_budget_policy
from baselinegate.core.models.baseline_types import OriginType
from baselinegate.core.scoring.targets import load_ua_distribution
from baselinegate.core.settings import load_config
from baselinegate.core.webstatus.webstatus_client import WebStatusResolver


def _load_env() -> None:
    # Repo root .env wins over empty shell vars; then the working directory .env
    env_file = Path(__file__).resolve().parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)
    load_dotenv()


def _position(value: Any) -> int:
    """Line/column as a non-negative int; anything else is 0."""
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_tokens(raw: Any) -> List[Token]:
    """Extractor token records -> Token objects. Malformed entries are skipped; bad positions become 0."""
    tokens: List[Token] = []
    if not isinstance(raw, list):
        return tokens
    for item in raw:
        if not isinstance(item, dict):
            continue
        token, token_type = item.get("token"), item.get("type")
        if not isinstance(token, str) or not isinstance(token_type, str):
            continue
        where = item.get("where") if isinstance(item.get("where"), dict) else {}
        origin = item.get("originType")
        count = item.get("count")
        tokens.append(Token(
            token=token,
            type=token_type,
            url=where.get("url") if isinstance(where.get("url"), str) else None,
            line=_position(where.get("line")),
            column=_position(where.get("column")),
            count=count if isinstance(count, int) and count > 0 else 1,
            origin_type=OriginType(origin) if origin in ("first-party", "vendor") else None,
        ))
    return tokens


def build_resolver() -> WebStatusResolver:
    return WebStatusResolver.from_config(load_config())


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    _load_env()
    config = load_config()

    parser = argparse.ArgumentParser(description="Baseline readiness check for one page")
    parser.add_argument("input", type=Path, help="Extractor output JSON (tokens / featureIds / url)")
    parser.add_argument("--output", type=Path, default=None, help="Run JSON path (default: stdout)")
    parser.add_argument("--url", default=None, help="Page URL (overrides the input file)")
    parser.add_argument("--budgets", type=Path, default=Path(config.policy.budgets_path))
    parser.add_argument("--targets", type=Path, default=Path(config.policy.targets_path))
    parser.add_argument("--feature-map", type=Path, default=None, help="Feature map JSON")
    parser.add_argument(
        "--no-strict",
        action="store_true",
        help="Report budget violations without zeroing the score",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.debug) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            data: Dict[str, Any] = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.input}: {e}", file=sys.stderr)
        return 1
    if not isinstance(data, dict):
        print(f"Error: {args.input} must contain a JSON object", file=sys.stderr)
        return 1

    feature_ids = [fid for fid in data.get("featureIds") or [] if isinstance(fid, str)]
    report = run_readiness(
        feature_ids,
        tokens=parse_tokens(data.get("tokens")),
        feature_map=load_feature_map(args.feature_map),
        resolver=build_resolver(),
        policy=load_budget_policy(args.budgets),
        ua_distribution=load_ua_distribution(args.targets),
        url=args.url or data.get("url"),
        niche_features=config.scoring.niche_features,
        strict=config.policy.strict_gating and not args.no_strict,
    )

    output = json.dumps(report.to_dict(), indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Run written to {args.output}")
    else:
        print(output)

    print(f"Baseline score: {report.baseline.numeric100}% ({report.route})", file=sys.stderr)
    for warning in report.warnings:
        print(f"  warning: {warning}", file=sys.stderr)
    return 1 if report.budget.violated else 0


if __name__ == "__main__":
    sys.exit(main())
