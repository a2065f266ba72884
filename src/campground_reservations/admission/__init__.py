# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Admission control for campground reservations.

Classes:
    AdmissionController: Capacity-checked creation, confirm and cancel.
    CampgroundLocks: Per-campground asyncio locks with bounded waits.
"""

from .controller import AdmissionController
from .locks import CampgroundLocks

__all__ = ["AdmissionController", "CampgroundLocks"]
