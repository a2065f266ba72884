# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Configuration for the campground reservations core.

This module provides the configuration dataclass shared by the admission
controller, the lifecycle manager and the similarity ranker.
"""

from dataclasses import dataclass

from .exceptions import ConfigurationError


@dataclass
class ReservationConfig:
    """
    Configuration for reservation admission, expiry and ranking.
    """

    # === Admission ===

    admission_timeout: float = 5.0
    """Maximum seconds to wait for a campground's admission lock."""

    # === Lifecycle ===

    pending_ttl: float = 3600.0
    """Seconds a Pending reservation may live before the sweep expires it."""

    sweep_interval: float = 60.0
    """Seconds between background expiry sweeps."""

    # === Similarity ===

    similar_default_limit: int = 10
    """Number of similar campgrounds returned when no limit is given."""

    # === Metrics ===

    metrics_enabled: bool = True
    """Record admission and lifecycle metrics."""

    # === Storage ===

    namespace: str = "campground_reservations"
    """Key prefix for persistent repositories."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.admission_timeout <= 0:
            raise ConfigurationError("admission_timeout must be positive")
        if self.pending_ttl <= 0:
            raise ConfigurationError("pending_ttl must be positive")
        if self.sweep_interval <= 0:
            raise ConfigurationError("sweep_interval must be positive")
        if self.similar_default_limit < 1:
            raise ConfigurationError("similar_default_limit must be at least 1")
        if not self.namespace:
            raise ConfigurationError("namespace must not be empty")


__all__ = ["ReservationConfig"]
