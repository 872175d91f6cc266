# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""WebStatus resolver config: endpoint, batching, retries, breaker.

Every value can be overridden via an env var of the same name. Invalid values
fall back to the default rather than failing the run.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


WEBSTATUS_BASE_URL: str = os.getenv("WEBSTATUS_BASE_URL", "https://api.webstatus.dev/v1").rstrip("/")
WEBSTATUS_FEATURES_PATH: str = "/features"
WEBSTATUS_USER_AGENT: str = "BaselineGate/Baseline-Audit"

WEBSTATUS_BATCH_SIZE: int = _int_env("WEBSTATUS_BATCH_SIZE", 20)
WEBSTATUS_TIMEOUT_MS: int = _int_env("WEBSTATUS_TIMEOUT_MS", 5000)
WEBSTATUS_MAX_RETRIES: int = _int_env("WEBSTATUS_MAX_RETRIES", 3)
WEBSTATUS_MAX_CONCURRENCY: int = _int_env("WEBSTATUS_MAX_CONCURRENCY", 3)

# Backoff (milliseconds). 429/5xx use the HTTP base, network errors the smaller one.
BACKOFF_HTTP_BASE_MS: int = 1000
BACKOFF_NETWORK_BASE_MS: int = 500
BACKOFF_CAP_MS: int = 8000
BACKOFF_JITTER_MS: int = 100

WEBSTATUS_BREAKER_THRESHOLD: int = _int_env("WEBSTATUS_BREAKER_THRESHOLD", 5)
WEBSTATUS_BREAKER_COOLDOWN_SEC: float = _float_env("WEBSTATUS_BREAKER_COOLDOWN_SEC", 30.0)

# 0 disables the overall deadline for a resolve() call
WEBSTATUS_OVERALL_TIMEOUT_SEC: float = _float_env("WEBSTATUS_OVERALL_TIMEOUT_SEC", 0.0)

__all__ = [
    "WEBSTATUS_BASE_URL",
    "WEBSTATUS_FEATURES_PATH",
    "WEBSTATUS_USER_AGENT",
    "WEBSTATUS_BATCH_SIZE",
    "WEBSTATUS_TIMEOUT_MS",
    "WEBSTATUS_MAX_RETRIES",
    "WEBSTATUS_MAX_CONCURRENCY",
    "BACKOFF_HTTP_BASE_MS",
    "BACKOFF_NETWORK_BASE_MS",
    "BACKOFF_CAP_MS",
    "BACKOFF_JITTER_MS",
    "WEBSTATUS_BREAKER_THRESHOLD",
    "WEBSTATUS_BREAKER_COOLDOWN_SEC",
    "WEBSTATUS_OVERALL_TIMEOUT_SEC",
]
