# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""End-to-end readiness run with a mocked status authority."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import requests

from baselinegate.core.eval.baseline_diff import diff_runs
from baselinegate.core.eval.readiness_run import (
    WARN_API_UNAVAILABLE,
    WARN_UNRESOLVED_TOKENS,
    run_readiness,
)
from baselinegate.core.features.feature_map import FeatureMap, Token
from baselinegate.core.gates.budgets import normalize_policy
from baselinegate.core.webstatus.webstatus_client import WebStatusResolver


def _session(statuses):
    session = MagicMock()

    def get(url, params=None, headers=None, timeout=None):
        ids = [part[len("id:"):] for part in params["q"].split(" OR ")]
        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = {
            "data": [{"feature_id": fid, "baseline": {"status": statuses[fid]}} for fid in ids if fid in statuses],
        }
        return resp

    session.get.side_effect = get
    return session


def _resolver(session, **kwargs):
    return WebStatusResolver(session=session, sleep=lambda s: None, jitter_ms=0, **kwargs)


class TestRunReadiness:
    """Pipeline wiring."""

    def test_feature_ids_run(self):
        resolver = _resolver(_session({"grid": "widely", "flexbox": "widely"}))
        report = run_readiness(["grid", "flexbox"], resolver=resolver, url="https://example.com/")
        assert report.score == 1.0
        assert report.route == "/"
        assert report.budget.violated is False
        data = report.to_dict()
        assert data["rawScore"] == 1.0
        assert data["numeric100"] == 100
        assert data["resolution"]["degraded"] is False
        assert {row["feature_id"] for row in data["rows"]} == {"grid", "flexbox"}

    def test_strict_budget_violation_zeroes_score(self):
        resolver = _resolver(_session({"grid": "widely", "popover": "limited"}))
        policy = normalize_policy({"perRoute": {"/api": {"forbidLimited": True}}})
        report = run_readiness(
            ["grid", "popover"], resolver=resolver, policy=policy, url="https://example.com/api", strict=True,
        )
        assert report.budget.violated is True
        assert report.score == 0.0
        assert report.raw_score > 0.0
        assert "Baseline budget violation: 1 limited feature present on route /api" in report.warnings

    def test_non_strict_keeps_raw_score(self):
        resolver = _resolver(_session({"popover": "limited"}))
        policy = normalize_policy({"forbidLimited": True})
        report = run_readiness(["popover"], resolver=resolver, policy=policy, strict=False)
        assert report.budget.violated is True
        assert report.score == report.raw_score

    def test_degraded_resolution_warns(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        report = run_readiness(["grid"], resolver=_resolver(session, max_retries=0))
        assert WARN_API_UNAVAILABLE in report.warnings
        assert report.to_dict()["resolution"]["degraded"] is True
        assert report.baseline.rows[0].status.value == "unknown"

    def test_tokens_drive_usage(self):
        fmap = FeatureMap.from_dict({"tokens": {"grid": "grid", "popover": "popover"}})
        tokens = [
            Token("grid", "css", url="https://example.com/site.css", count=60),
            Token("popover", "html", url="https://cdn.jsdelivr.net/widget.js"),
            Token("made-up", "js"),
        ]
        resolver = _resolver(_session({"grid": "widely", "popover": "newly"}))
        report = run_readiness(tokens=tokens, feature_map=fmap, resolver=resolver, url="https://example.com/")
        rows = {row.feature_id: row for row in report.baseline.rows}
        assert rows["grid"].weight == 1.5
        assert rows["popover"].origin_type.value == "vendor"
        assert WARN_UNRESOLVED_TOKENS in report.warnings

    def test_report_feeds_diff(self):
        base = run_readiness(["grid", "flexbox"], resolver=_resolver(_session({"grid": "widely", "flexbox": "widely"})))
        head = run_readiness(["grid", "flexbox"], resolver=_resolver(_session({"grid": "widely", "flexbox": "newly"})))
        data = diff_runs(base.to_dict(), head.to_dict()).to_dict()
        assert data["downgrades"] == [{"feature_id": "flexbox", "from": "widely", "to": "newly"}]
        assert data["scoreDelta"] < 0


class TestReadinessCli:
    """scripts/baseline_readiness.py entry point."""

    def _input(self, tmp_path):
        path = tmp_path / "page.json"
        path.write_text(json.dumps({
            "url": "https://example.com/api",
            "tokens": [
                {"token": "grid-template-columns", "type": "css",
                 "where": {"url": "https://example.com/site.css", "line": 3, "column": 1}, "count": 4},
                {"token": 42, "type": "css"},
            ],
            "featureIds": ["popover"],
        }))
        return path

    def test_writes_run_json(self, tmp_path, monkeypatch, capsys):
        import baseline_readiness as cli

        monkeypatch.chdir(tmp_path)
        session = _session({"grid": "widely", "popover": "newly"})
        monkeypatch.setattr(cli, "build_resolver", lambda: _resolver(session))
        output = tmp_path / "run.json"

        assert cli.main([str(self._input(tmp_path)), "--output", str(output)]) == 0
        run = json.loads(output.read_text())
        assert run["route"] == "/api"
        assert {row["feature_id"] for row in run["rows"]} == {"grid", "popover"}
        assert run["budget"] == {"violated": False, "reasons": []}

    def test_budget_violation_exit_code(self, tmp_path, monkeypatch):
        import baseline_readiness as cli

        monkeypatch.chdir(tmp_path)
        (tmp_path / "budgets.json").write_text(json.dumps({"perRoute": {"/api": {"forbidLimited": True}}}))
        session = _session({"grid": "widely", "popover": "limited"})
        monkeypatch.setattr(cli, "build_resolver", lambda: _resolver(session))
        output = tmp_path / "run.json"

        code = cli.main([
            str(self._input(tmp_path)), "--output", str(output), "--budgets", str(tmp_path / "budgets.json"),
        ])
        assert code == 1
        run = json.loads(output.read_text())
        assert run["score"] == 0.0
        assert run["budget"]["reasons"] == ["1 limited feature present on route /api"]

    def test_parse_tokens_skips_malformed(self):
        import baseline_readiness as cli

        tokens = cli.parse_tokens([
            {"token": "fetch", "type": "js", "originType": "vendor"},
            {"token": "grid"},
            "nope",
        ])
        assert len(tokens) == 1
        assert tokens[0].origin_type.value == "vendor"
        assert cli.parse_tokens(None) == []

    def test_parse_tokens_tolerates_bad_positions(self):
        import baseline_readiness as cli

        tokens = cli.parse_tokens([
            {"token": "grid", "type": "css", "where": {"url": "https://example.com/a.css", "line": "abc", "column": None}},
            {"token": "dialog", "type": "html", "where": {"url": 7, "line": "12", "column": -3}},
        ])
        assert [(t.token, t.line, t.column) for t in tokens] == [("grid", 0, 0), ("dialog", 12, 0)]
        assert tokens[0].url == "https://example.com/a.css"
        assert tokens[1].url is None
