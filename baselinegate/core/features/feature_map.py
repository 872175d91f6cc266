# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""
Token -> feature id mapping.

Tokens come from an external extractor (JS APIs, CSS properties/selectors, HTML
elements). The feature map is a JSON file:

  {"tokens": {token: feature_id},
   "patterns": {"css": [{"regex": ..., "feature": ...}], "js": [...]},
   "mapVersion": "..."}

A missing or broken map file falls back to a small embedded map with a warning.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Set, Tuple, Union
from urllib.parse import urlsplit

from baselinegate.core.models.baseline_types import FeatureUsage, OriginType, SourceLocation

logger = logging.getLogger(__name__)

TOKEN_TYPES = ("js", "css", "html")

VENDOR_PATH_SEGMENTS = ("/node_modules/", "/vendor/", "/lib/", "/dist/")
CDN_HOST_MARKERS = ("cdn.", "cdnjs.", "unpkg.", "jsdelivr.", "googleapis.")

_CSS_VENDOR_PREFIX = re.compile(r"^-(?:webkit|moz|ms|o)-")
_JS_GLOBAL_PREFIX = re.compile(r"^(?:window|globalthis)\.")

_EMBEDDED_MAP: Dict[str, Any] = {
    "tokens": {
        "grid": "grid",
        "flex": "flexbox",
        "fetch": "fetch",
        "Promise": "promises",
        "IntersectionObserver": "intersectionobserver",
        "dialog": "dialog",
        ":has": "has",
    },
    "patterns": {
        "css": [{"regex": "^grid-", "feature": "grid"}],
        "js": [{"regex": r"^Intl\.", "feature": "intl"}],
    },
}


@dataclass(frozen=True)
class Token:
    """One extracted token. `url`/`line`/`column` locate it in its source resource."""
    token: str
    type: str
    url: Optional[str] = None
    line: int = 0
    column: int = 0
    count: int = 1
    origin_type: Optional[OriginType] = None


@dataclass
class FeatureMap:
    tokens: Dict[str, str] = field(default_factory=dict)
    patterns: Dict[str, List[Tuple[Pattern[str], str]]] = field(default_factory=dict)
    map_version: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "FeatureMap":
        """Build from the parsed JSON document. Raises ValueError on a wrong shape."""
        tokens = raw.get("tokens")
        if not isinstance(tokens, Mapping):
            raise ValueError("feature map 'tokens' must be an object")
        patterns_raw = raw.get("patterns") or {}
        if not isinstance(patterns_raw, Mapping):
            raise ValueError("feature map 'patterns' must be an object")

        patterns: Dict[str, List[Tuple[Pattern[str], str]]] = {}
        for kind in ("css", "js"):
            compiled: List[Tuple[Pattern[str], str]] = []
            for entry in patterns_raw.get(kind) or []:
                if not isinstance(entry, Mapping):
                    continue
                regex, feature = entry.get("regex"), entry.get("feature")
                if not isinstance(regex, str) or not isinstance(feature, str):
                    continue
                try:
                    compiled.append((re.compile(regex, re.IGNORECASE), feature))
                except re.error as e:
                    logger.warning("[FEATURE_MAP] skipping bad %s pattern %r: %s", kind, regex, e)
            patterns[kind] = compiled

        version = raw.get("mapVersion")
        return cls(
            tokens={str(k): str(v) for k, v in tokens.items() if isinstance(v, str)},
            patterns=patterns,
            map_version=str(version) if version is not None else None,
        )

    def known_features(self) -> Set[str]:
        features = set(self.tokens.values())
        for entries in self.patterns.values():
            features.update(feature for _, feature in entries)
        return features


@dataclass
class FeatureMapping:
    ids: Set[str]
    unresolved: List[Token]
    map_version: Optional[str] = None


def embedded_feature_map() -> FeatureMap:
    return FeatureMap.from_dict(_EMBEDDED_MAP)


def load_feature_map(path: Optional[Union[str, Path]] = None) -> FeatureMap:
    """Load a feature map file; the embedded map is used when it is missing or malformed."""
    if path is None:
        return embedded_feature_map()
    p = Path(path)
    if not p.exists():
        logger.warning("[FEATURE_MAP] %s not found; using embedded map", p)
        return embedded_feature_map()
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, Mapping):
            raise ValueError("feature map must be a JSON object")
        fmap = FeatureMap.from_dict(raw)
    except (OSError, ValueError) as e:
        logger.warning("[FEATURE_MAP] could not load %s: %s; using embedded map", p, e)
        return embedded_feature_map()
    logger.info("[FEATURE_MAP] loaded %d tokens from %s (version=%s)", len(fmap.tokens), p, fmap.map_version)
    return fmap


def normalize_token(token: str, token_type: str) -> str:
    normalized = token.strip().lower()
    if token_type == "css":
        normalized = _CSS_VENDOR_PREFIX.sub("", normalized)
        normalized = normalized.replace("_", "-")
    elif token_type == "js":
        normalized = normalized.replace(".prototype.", ".", 1)
        normalized = _JS_GLOBAL_PREFIX.sub("", normalized)
    return normalized


def _match_pattern(normalized: str, token_type: str, fmap: FeatureMap) -> Optional[str]:
    for regex, feature in fmap.patterns.get(token_type, []):
        if regex.search(normalized):
            return feature
    return None


def resolve_token(token: Token, fmap: FeatureMap) -> Optional[str]:
    """Feature id for one token, or None when nothing matches."""
    normalized = normalize_token(token.token, token.type)

    feature = fmap.tokens.get(normalized) or fmap.tokens.get(token.token)
    if feature:
        return feature

    feature = _match_pattern(normalized, token.type, fmap)
    if feature:
        return feature

    if token.type == "js" and "." in normalized:
        parts = normalized.split(".")
        base = parts[0]
        feature = fmap.tokens.get(base) or fmap.tokens.get(f"{base}-{parts[-1]}")
        if feature:
            return feature

    if token.type == "css" and "-" in normalized:
        # grid-template-columns -> grid
        feature = fmap.tokens.get(normalized.split("-")[0])
        if feature:
            return feature

    return None


def map_tokens_to_feature_ids(tokens: Iterable[Token], feature_map: Optional[FeatureMap] = None) -> FeatureMapping:
    fmap = feature_map if feature_map is not None else embedded_feature_map()
    ids: Set[str] = set()
    unresolved: List[Token] = []
    for token in tokens:
        feature = resolve_token(token, fmap)
        if feature:
            ids.add(feature)
        else:
            unresolved.append(token)
    if unresolved:
        logger.debug("[FEATURE_MAP] %d unresolved tokens", len(unresolved))
    return FeatureMapping(ids=ids, unresolved=unresolved, map_version=fmap.map_version)


def _origin(url: str) -> Optional[Tuple[str, str]]:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return parts.scheme.lower(), parts.netloc.lower()


def determine_origin_type(resource_url: Optional[str], main_url: Optional[str]) -> OriginType:
    """
    Classify a resource as vendor or first-party relative to the page URL.

    Vendor: different origin, a vendor path segment, or a known CDN host marker.
    Missing or unparsable URLs are first-party.
    """
    if not resource_url or not main_url:
        return OriginType.FIRST_PARTY
    try:
        resource_origin = _origin(resource_url)
        main_origin = _origin(main_url)
    except ValueError:
        return OriginType.FIRST_PARTY
    if resource_origin is None or main_origin is None:
        return OriginType.FIRST_PARTY

    if resource_origin != main_origin:
        return OriginType.VENDOR
    if any(segment in resource_url for segment in VENDOR_PATH_SEGMENTS):
        return OriginType.VENDOR
    if any(marker in resource_url for marker in CDN_HOST_MARKERS):
        return OriginType.VENDOR
    return OriginType.FIRST_PARTY


def collect_feature_usage(
    tokens: Iterable[Token],
    feature_map: Optional[FeatureMap] = None,
    main_url: Optional[str] = None,
) -> Dict[str, FeatureUsage]:
    """Aggregate token counts and source locations per resolved feature id."""
    fmap = feature_map if feature_map is not None else embedded_feature_map()
    usages: Dict[str, FeatureUsage] = {}
    for token in tokens:
        feature = resolve_token(token, fmap)
        if not feature:
            continue
        usage = usages.setdefault(feature, FeatureUsage(feature_id=feature))
        count = max(int(token.count), 1)
        usage.token_count += count
        if token.url:
            origin = token.origin_type or determine_origin_type(token.url, main_url)
        else:
            origin = token.origin_type or OriginType.FIRST_PARTY
        if origin == OriginType.FIRST_PARTY:
            usage.first_party_count += count
        if token.url:
            usage.locations.append(SourceLocation(
                url=token.url,
                line=token.line,
                column=token.column,
                origin_type=origin,
            ))
    return usages
