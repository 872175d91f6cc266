# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Tests for UA distribution normalization and the UA support factor."""

from __future__ import annotations

import json
import math

import pytest

from baselinegate.core.models.baseline_types import BaselineStatus
from baselinegate.core.scoring.targets import (
    BROWSERS,
    default_distribution,
    load_ua_distribution,
    normalize_targets,
    normalize_ua_distribution,
    ua_support_factor,
)


class TestNormalizeDistribution:
    """UA share normalization."""

    def test_normalizes_to_one(self):
        dist = normalize_ua_distribution({"safari": 2, "chrome": 6, "firefox": 1, "edge": 1})
        assert dist == pytest.approx({"safari": 0.2, "chrome": 0.6, "firefox": 0.1, "edge": 0.1})
        assert math.isclose(sum(dist.values()), 1.0, abs_tol=1e-6)

    def test_missing_keys_are_zero(self):
        dist = normalize_ua_distribution({"chrome": 3})
        assert set(dist) == set(BROWSERS)
        assert dist["chrome"] == 1.0
        assert dist["safari"] == 0.0

    def test_negative_and_non_numeric_values_dropped(self):
        dist = normalize_ua_distribution({"safari": -5, "chrome": 1, "firefox": "lots", "edge": True})
        assert dist == {"safari": 0.0, "chrome": 1.0, "firefox": 0.0, "edge": 0.0}

    def test_non_finite_dropped(self):
        dist = normalize_ua_distribution({"safari": float("nan"), "chrome": float("inf"), "edge": 1})
        assert dist["edge"] == 1.0

    def test_huge_finite_values_do_not_overflow(self):
        dist = normalize_ua_distribution({"safari": 1e308, "chrome": 1e308, "firefox": 0, "edge": 0})
        assert dist == {"safari": 0.5, "chrome": 0.5, "firefox": 0.0, "edge": 0.0}
        assert math.isclose(sum(dist.values()), 1.0)

    @pytest.mark.parametrize("raw", [
        {},
        {"safari": 0, "chrome": 0, "firefox": 0, "edge": 0},
        {"safari": -1, "chrome": -2},
        None,
        "chrome",
        [0.5, 0.5],
    ])
    def test_fallback_to_equal_split(self, raw):
        assert normalize_ua_distribution(raw) == default_distribution()

    def test_normalize_targets_document(self):
        assert normalize_targets({"uaDistribution": {"safari": 1, "chrome": 1}})["uaDistribution"] == {
            "safari": 0.5, "chrome": 0.5, "firefox": 0.0, "edge": 0.0,
        }
        assert normalize_targets({"other": 1}) == {"uaDistribution": default_distribution()}


class TestLoadDistribution:
    """Targets file loading."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "baseline.targets.json"
        path.write_text(json.dumps({"uaDistribution": {"safari": 30, "chrome": 50, "firefox": 10, "edge": 10}}))
        dist = load_ua_distribution(path)
        assert dist["safari"] == pytest.approx(0.3)
        assert dist["chrome"] == pytest.approx(0.5)

    def test_missing_file(self, tmp_path):
        assert load_ua_distribution(tmp_path / "nope.json") == default_distribution()

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "baseline.targets.json"
        path.write_text("{not json")
        assert load_ua_distribution(path) == default_distribution()

    def test_no_path(self):
        assert load_ua_distribution(None) == default_distribution()

    def test_huge_shares_in_file(self, tmp_path):
        path = tmp_path / "baseline.targets.json"
        path.write_text(json.dumps({"uaDistribution": {"safari": 1.5e308, "chrome": 1.5e308, "edge": 1.5e308}}))
        dist = load_ua_distribution(path)
        assert dist["firefox"] == 0.0
        assert dist["chrome"] == pytest.approx(1 / 3)
        assert math.isclose(sum(dist.values()), 1.0)


class TestUaSupportFactor:
    """Factor bounds and monotonicity."""

    def test_widely_is_full_support(self):
        assert ua_support_factor(BaselineStatus.WIDELY, {"safari": 1.0}) == 1.0

    def test_unknown_is_fixed(self):
        assert ua_support_factor(BaselineStatus.UNKNOWN) == 0.7

    def test_equal_split_values(self):
        assert ua_support_factor(BaselineStatus.LIMITED) == pytest.approx(0.75)
        assert ua_support_factor(BaselineStatus.NEWLY) == pytest.approx(0.75)

    def test_limited_non_decreasing_in_chromium_share(self):
        previous = 0.0
        for share in [0.0, 0.1, 0.3, 0.5, 0.8, 1.0]:
            dist = {"safari": 1.0 - share, "chrome": share, "firefox": 0.0, "edge": 0.0}
            factor = ua_support_factor(BaselineStatus.LIMITED, dist)
            assert 0.5 <= factor <= 1.0
            assert factor >= previous
            previous = factor

    def test_newly_non_increasing_in_safari_share(self):
        previous = 1.0
        for share in [0.0, 0.2, 0.4, 0.6, 1.0]:
            dist = {"safari": share, "chrome": 1.0 - share, "firefox": 0.0, "edge": 0.0}
            factor = ua_support_factor(BaselineStatus.NEWLY, dist)
            assert 0.5 <= factor <= 1.0
            assert factor <= previous
            previous = factor

    def test_all_chromium_limited(self):
        assert ua_support_factor(BaselineStatus.LIMITED, {"chrome": 0.6, "edge": 0.4}) == 1.0

    def test_accepts_raw_status_strings(self):
        assert ua_support_factor("Widely") == 1.0
