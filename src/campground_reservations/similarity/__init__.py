# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Shared-tag similarity ranking for campgrounds."""

from .ranker import TagSimilarityRanker

__all__ = ["TagSimilarityRanker"]
