# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Tag catalog: tag CRUD and tag assignment on campgrounds."""

from .tags import TagCatalog

__all__ = ["TagCatalog"]
