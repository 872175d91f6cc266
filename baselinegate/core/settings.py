# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Centralized configuration loader for BaselineGate.

Loads baselinegate.yaml (working directory, or the path in BASELINEGATE_CONFIG)
and provides typed access to settings. Falls back to defaults if the file is
missing or incomplete. Environment variables override YAML values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Optional

import yaml

from baselinegate.core.config import webstatus_config as wc
from baselinegate.core.scoring.config import NICHE_VENDOR_FEATURES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "baselinegate.yaml"

_CONFIG_CACHE: Optional["BaselineGateConfig"] = None


@dataclass(frozen=True)
class WebStatusConfig:
    """Status authority client configuration."""
    base_url: str
    batch_size: int
    timeout_ms: int
    max_retries: int
    max_concurrent: int
    breaker_threshold: int
    breaker_cooldown_sec: float
    overall_timeout_sec: Optional[float]


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring inputs that are data rather than algorithm."""
    niche_features: FrozenSet[str]


@dataclass(frozen=True)
class PolicyConfig:
    """Where policy files live and how violations gate the score."""
    budgets_path: str
    targets_path: str
    strict_gating: bool


@dataclass(frozen=True)
class BaselineGateConfig:
    """Root configuration object."""
    webstatus: WebStatusConfig
    scoring: ScoringConfig
    policy: PolicyConfig
    debug: bool


def _config_path() -> Path:
    raw = os.getenv("BASELINEGATE_CONFIG", "")
    if raw and raw.strip():
        return Path(raw.strip())
    return Path.cwd() / CONFIG_FILENAME


def _load_yaml_config() -> dict:
    """Load the YAML config. Returns empty dict if not found or unreadable."""
    config_path = _config_path()
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("[SETTINGS] could not read %s: %s; using defaults", config_path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("[SETTINGS] %s is not a mapping; using defaults", config_path)
        return {}
    return raw


def _env_bool(name: str, fallback: bool) -> bool:
    v = os.getenv(name, "").lower().strip()
    if v in ("true", "1", "yes"):
        return True
    if v in ("false", "0", "no"):
        return False
    return fallback


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name, {}) or {}
    return value if isinstance(value, dict) else {}


def load_config(*, reload: bool = False) -> BaselineGateConfig:
    """Load and return the BaselineGate configuration.

    Priority order (highest to lowest):
    1. Environment variables (WEBSTATUS_BASE_URL, WEBSTATUS_BATCH_SIZE, ...)
    2. baselinegate.yaml values
    3. Built-in defaults

    Parameters
    ----------
    reload : bool
        If True, force reload from disk. Otherwise use cached config.
    """
    global _CONFIG_CACHE

    if _CONFIG_CACHE is not None and not reload:
        return _CONFIG_CACHE

    raw = _load_yaml_config()

    ws_raw = _section(raw, "webstatus")
    try:
        overall = float(os.getenv(
            "WEBSTATUS_OVERALL_TIMEOUT_SEC",
            str(ws_raw.get("overall_timeout_sec", wc.WEBSTATUS_OVERALL_TIMEOUT_SEC)),
        ))
        webstatus = WebStatusConfig(
            base_url=os.getenv(
                "WEBSTATUS_BASE_URL",
                str(ws_raw.get("base_url", wc.WEBSTATUS_BASE_URL)),
            ).rstrip("/"),
            batch_size=max(1, int(os.getenv(
                "WEBSTATUS_BATCH_SIZE", str(ws_raw.get("batch_size", wc.WEBSTATUS_BATCH_SIZE))
            ))),
            timeout_ms=max(1, int(os.getenv(
                "WEBSTATUS_TIMEOUT_MS", str(ws_raw.get("timeout_ms", wc.WEBSTATUS_TIMEOUT_MS))
            ))),
            max_retries=max(0, int(os.getenv(
                "WEBSTATUS_MAX_RETRIES", str(ws_raw.get("max_retries", wc.WEBSTATUS_MAX_RETRIES))
            ))),
            max_concurrent=max(1, int(os.getenv(
                "WEBSTATUS_MAX_CONCURRENCY",
                str(ws_raw.get("max_concurrent", wc.WEBSTATUS_MAX_CONCURRENCY)),
            ))),
            breaker_threshold=max(1, int(os.getenv(
                "WEBSTATUS_BREAKER_THRESHOLD",
                str(ws_raw.get("breaker_threshold", wc.WEBSTATUS_BREAKER_THRESHOLD)),
            ))),
            breaker_cooldown_sec=float(os.getenv(
                "WEBSTATUS_BREAKER_COOLDOWN_SEC",
                str(ws_raw.get("breaker_cooldown_sec", wc.WEBSTATUS_BREAKER_COOLDOWN_SEC)),
            )),
            overall_timeout_sec=overall if overall > 0 else None,
        )
    except (TypeError, ValueError) as e:
        logger.warning("[SETTINGS] invalid webstatus settings (%s); using defaults", e)
        webstatus = WebStatusConfig(
            base_url=wc.WEBSTATUS_BASE_URL,
            batch_size=wc.WEBSTATUS_BATCH_SIZE,
            timeout_ms=wc.WEBSTATUS_TIMEOUT_MS,
            max_retries=wc.WEBSTATUS_MAX_RETRIES,
            max_concurrent=wc.WEBSTATUS_MAX_CONCURRENCY,
            breaker_threshold=wc.WEBSTATUS_BREAKER_THRESHOLD,
            breaker_cooldown_sec=wc.WEBSTATUS_BREAKER_COOLDOWN_SEC,
            overall_timeout_sec=None,
        )

    # Niche vendor list is data: YAML may replace the built-in default
    scoring_raw = _section(raw, "scoring")
    niche_raw = scoring_raw.get("niche_features")
    if isinstance(niche_raw, list) and all(isinstance(x, str) for x in niche_raw):
        niche = frozenset(x.strip() for x in niche_raw if x.strip())
    else:
        niche = NICHE_VENDOR_FEATURES
    scoring = ScoringConfig(niche_features=niche)

    policy_raw = _section(raw, "policy")
    policy = PolicyConfig(
        budgets_path=os.getenv(
            "BASELINE_BUDGETS_PATH",
            str(policy_raw.get("budgets_path", "baseline.budgets.json")),
        ),
        targets_path=os.getenv(
            "BASELINE_TARGETS_PATH",
            str(policy_raw.get("targets_path", "baseline.targets.json")),
        ),
        strict_gating=_env_bool("BASELINE_STRICT_GATING", bool(policy_raw.get("strict_gating", True))),
    )

    app_raw = _section(raw, "app")
    debug = _env_bool("BASELINEGATE_DEBUG", bool(app_raw.get("debug", False)))

    config = BaselineGateConfig(
        webstatus=webstatus,
        scoring=scoring,
        policy=policy,
        debug=debug,
    )

    _CONFIG_CACHE = config
    return config
