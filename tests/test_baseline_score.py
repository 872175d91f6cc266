# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Tests for the Baseline scoring engine.

Tests cover:
- Usage, coverage and niche weights with clamping to [0.5, 1.5]
- Weighted score, progressive-enhancement bonus and limited penalty
- Order independence of score and rows
- Row ordering and advisory warnings
"""

from __future__ import annotations

import random

import pytest

from baselinegate.core.models.baseline_types import (
    BaselineStatus,
    FeatureUsage,
    OriginType,
    SourceLocation,
    StatusRecord,
)
from baselinegate.core.scoring.baseline_score import (
    WARN_LIMITED_HEAVY,
    WARN_NO_CORE,
    WARN_NO_FEATURES,
    compute_baseline_score,
    coverage_factor,
    feature_weight,
    progressive_enhancement_bonus,
    usage_weight,
)


def _statuses(**kwargs) -> dict:
    return {fid.replace("_", "-"): StatusRecord(BaselineStatus(status)) for fid, status in kwargs.items()}


def _usage(feature_id: str, count: int, vendor: bool = False) -> FeatureUsage:
    origin = OriginType.VENDOR if vendor else OriginType.FIRST_PARTY
    return FeatureUsage(
        feature_id=feature_id,
        token_count=count,
        locations=[SourceLocation(url="https://example.com/app.js", line=1, column=1, origin_type=origin)],
    )


# ============================================================================
# Weights
# ============================================================================

class TestWeights:
    """Per-feature weight components."""

    @pytest.mark.parametrize("count,expected", [
        (0, 0.5), (1, 0.8), (2, 1.0), (5, 1.0), (6, 1.1), (20, 1.1),
        (21, 1.3), (50, 1.3), (51, 1.5), (500, 1.5),
    ])
    def test_usage_weight_bands(self, count, expected):
        assert usage_weight(count) == expected

    def test_coverage_factor(self):
        assert coverage_factor(10) == 1.0
        assert coverage_factor(2) == 0.5
        assert coverage_factor(40) == 1.5
        assert coverage_factor("often") is None
        assert coverage_factor(float("nan")) is None

    def test_weight_clamped_high(self):
        w = feature_weight("grid", BaselineStatus.WIDELY, usage=_usage("grid", 60), coverage={"grid": 30})
        assert w == 1.5

    def test_weight_clamped_low(self):
        dist = {"safari": 1.0, "chrome": 0.0, "firefox": 0.0, "edge": 0.0}
        w = feature_weight("x", BaselineStatus.LIMITED, usage=_usage("x", 0), ua_distribution=dist)
        assert w == 0.5

    def test_no_usage_signal_is_neutral(self):
        assert feature_weight("grid", BaselineStatus.WIDELY, has_usage_signal=False) == 1.0

    def test_missing_usage_counts_as_zero_tokens(self):
        assert feature_weight("grid", BaselineStatus.WIDELY, usage=None, has_usage_signal=True) == 0.5

    def test_niche_downweight_only_when_vendor_only(self):
        vendor = feature_weight("popover", BaselineStatus.WIDELY, usage=_usage("popover", 10, vendor=True))
        first_party = feature_weight("popover", BaselineStatus.WIDELY, usage=_usage("popover", 10))
        assert vendor == pytest.approx(1.1 * 0.75)
        assert first_party == pytest.approx(1.1)

    def test_niche_list_is_configurable(self):
        usage = _usage("grid", 10, vendor=True)
        assert feature_weight("grid", BaselineStatus.WIDELY, usage=usage) == pytest.approx(1.1)
        assert feature_weight(
            "grid", BaselineStatus.WIDELY, usage=usage, niche_features=frozenset({"grid"})
        ) == pytest.approx(0.825)

    def test_mixed_origin_is_not_vendor_only(self):
        usage = _usage("popover", 10, vendor=True)
        usage.locations.append(SourceLocation(url="https://example.com/main.js"))
        assert usage.vendor_only is False
        assert feature_weight("popover", BaselineStatus.WIDELY, usage=usage) == pytest.approx(1.1)

    def test_inline_first_party_use_skips_niche_downweight(self):
        usage = _usage("popover", 10, vendor=True)
        usage.first_party_count = 1
        assert usage.vendor_only is False
        assert feature_weight("popover", BaselineStatus.WIDELY, usage=usage) == pytest.approx(1.1)

    @pytest.mark.parametrize("entry,expected", [
        (5, 0.55),
        ({"frequency": 5}, 0.55),
        ({"frequency": 30}, 1.5),
        ({"hits": 5}, 1.1),
        ("often", 1.1),
    ])
    def test_coverage_entry_shapes(self, entry, expected):
        w = feature_weight("grid", BaselineStatus.WIDELY, usage=_usage("grid", 10), coverage={"grid": entry})
        assert w == pytest.approx(expected)


# ============================================================================
# Score
# ============================================================================

class TestScore:
    """Aggregate score behaviour."""

    def test_no_features(self):
        result = compute_baseline_score({})
        assert result.score == 1.0
        assert result.numeric100 == 100
        assert result.rows == []
        assert result.warnings == [WARN_NO_FEATURES]

    def test_weighted_score(self):
        result = compute_baseline_score(_statuses(grid="widely", flexbox="newly"))
        # grid: 2 * 1.0, flexbox: 1 * 0.75 over 2 * 1.75
        assert result.score == pytest.approx(2.75 / 3.5)
        assert result.bonus == 0.0
        assert result.limited_penalty_applied is False

    def test_score_in_unit_interval(self):
        rng = random.Random(7)
        statuses = ["widely", "newly", "limited", "unknown"]
        for _ in range(50):
            ids = [f"feature-{i}" for i in range(rng.randint(1, 30))]
            records = {fid: StatusRecord(BaselineStatus(rng.choice(statuses))) for fid in ids}
            usages = {fid: _usage(fid, rng.randint(0, 80), vendor=rng.random() < 0.5) for fid in ids}
            result = compute_baseline_score(records, usages=usages)
            assert 0.0 <= result.score <= 1.0
            assert all(0.5 <= row.weight <= 1.5 for row in result.rows)

    def test_permutation_invariance(self):
        rng = random.Random(11)
        items = [
            (f"feature-{i}", StatusRecord(BaselineStatus(rng.choice(["widely", "newly", "limited", "unknown"]))))
            for i in range(40)
        ]
        usages = {fid: _usage(fid, rng.randint(0, 60)) for fid, _ in items}
        first = compute_baseline_score(dict(items), usages=usages)
        shuffled = list(items)
        rng.shuffle(shuffled)
        second = compute_baseline_score(dict(shuffled), usages=usages)
        assert first.score == second.score
        assert [r.feature_id for r in first.rows] == [r.feature_id for r in second.rows]

    def test_limited_penalty(self):
        result = compute_baseline_score(_statuses(alpha="limited", beta="widely"))
        # alpha weight 0.75 (limited, equal split), beta 1.0
        assert result.score == pytest.approx(2.0 / 3.5 * 0.8)
        assert result.limited_penalty_applied is True
        assert WARN_LIMITED_HEAVY in result.warnings

    def test_no_penalty_at_thirty_percent(self):
        records = _statuses(a="limited", b="widely", c="widely", d="widely", e="widely",
                            f="widely", g="widely", h="widely", i="limited", j="limited")
        result = compute_baseline_score(records)
        assert result.limited_penalty_applied is False

    def test_bonus_capped_and_score_capped(self):
        result = compute_baseline_score(_statuses(grid="widely", flexbox="widely", popover="newly"))
        assert result.bonus == pytest.approx(0.15)
        assert result.score == 1.0

    def test_unknown_contributes_zero_without_penalty(self):
        result = compute_baseline_score(_statuses(grid="widely", mystery="unknown"))
        # grid 2 * 1.0; mystery 0 * 0.7
        assert result.score == pytest.approx(2.0 / 3.4 + 0.10)
        assert result.limited_penalty_applied is False
        assert "Unable to determine Baseline status for 1 features" in result.warnings

    def test_no_core_warning(self):
        result = compute_baseline_score(_statuses(popover="newly"))
        assert WARN_NO_CORE in result.warnings

    def test_summary_and_to_dict(self):
        result = compute_baseline_score(_statuses(grid="widely", popover="limited", mystery="unknown"))
        assert result.summary == {"widely": 1, "newly": 0, "limited": 1, "unknown": 1}
        data = result.to_dict()
        assert data["numeric100"] == result.numeric100
        assert {row["feature_id"] for row in data["rows"]} == {"grid", "popover", "mystery"}
        assert data["rows"][0]["status"] == "limited"


class TestBonus:
    """Progressive-enhancement bonus."""

    def test_core_bonus(self):
        assert progressive_enhancement_bonus(_statuses(grid="widely", flexbox="widely")) == pytest.approx(0.10)

    def test_core_below_ratio(self):
        assert progressive_enhancement_bonus(_statuses(grid="widely", flexbox="newly")) == 0.0

    def test_enhancement_bonus(self):
        assert progressive_enhancement_bonus(_statuses(popover="newly", dialog="widely")) == pytest.approx(0.05)

    def test_both(self):
        records = _statuses(grid="widely", popover="newly")
        assert progressive_enhancement_bonus(records) == pytest.approx(0.15)

    def test_empty(self):
        assert progressive_enhancement_bonus({}) == 0.0


class TestRows:
    """Row ordering and content."""

    def test_sort_order(self):
        records = _statuses(grid="widely", popover="limited", dialog="newly", mystery="unknown",
                            has="limited", flexbox="widely")
        usages = {
            "popover": _usage("popover", 1),
            "has": _usage("has", 60),
            "grid": _usage("grid", 60),
            "flexbox": _usage("flexbox", 10),
            "dialog": _usage("dialog", 10),
            "mystery": _usage("mystery", 10),
        }
        rows = compute_baseline_score(records, usages=usages).rows
        assert [r.feature_id for r in rows] == ["has", "popover", "dialog", "grid", "flexbox", "mystery"]

    def test_ties_broken_by_id(self):
        rows = compute_baseline_score(_statuses(zeta="widely", alpha="widely", mid="widely")).rows
        assert [r.feature_id for r in rows] == ["alpha", "mid", "zeta"]

    def test_row_carries_origin_and_locations(self):
        records = _statuses(popover="newly")
        rows = compute_baseline_score(records, usages={"popover": _usage("popover", 3, vendor=True)}).rows
        assert rows[0].origin_type == OriginType.VENDOR
        assert rows[0].locations[0].url == "https://example.com/app.js"
        assert rows[0].is_core is False
