# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Token to feature id mapping and usage aggregation."""

from baselinegate.core.features.feature_map import (
    FeatureMap,
    FeatureMapping,
    Token,
    collect_feature_usage,
    determine_origin_type,
    load_feature_map,
    map_tokens_to_feature_ids,
)

__all__ = [
    "FeatureMap",
    "FeatureMapping",
    "Token",
    "collect_feature_usage",
    "determine_origin_type",
    "load_feature_map",
    "map_tokens_to_feature_ids",
]
