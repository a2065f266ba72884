# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Reservation lifecycle: TTL and end-of-stay expiry, index rebuild and reconciliation."""

from .manager import LifecycleManager

__all__ = ["LifecycleManager"]
