# Copyright 2026 BaselineGate
# SPDX-License-Identifier: MIT
"""Env-backed configuration constants."""
