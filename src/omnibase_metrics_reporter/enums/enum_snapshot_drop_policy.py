# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enum for the sampler-to-publisher handoff policy."""

from __future__ import annotations

from enum import Enum


class EnumSnapshotDropPolicy(str, Enum):
    """Policy when the single-slot handoff still holds an unconsumed snapshot.

    Attributes:
        SKIP_NEW: Skip the sampling tick entirely; the pending snapshot is kept.
        REPLACE_OLDEST: Capture anyway and overwrite the pending snapshot.
    """

    SKIP_NEW = "skip_new"
    REPLACE_OLDEST = "replace_oldest"


__all__ = ["EnumSnapshotDropPolicy"]
