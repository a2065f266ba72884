# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Interval index for peak-occupancy queries.

Exports:
    IntervalIndex: Per-campground ordered index of active reservation ranges
    IntervalEntry: A single indexed reservation footprint
"""

from .interval_index import IntervalEntry, IntervalIndex

__all__ = ["IntervalEntry", "IntervalIndex"]
