# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Outcome of a single provisioning attempt."""

from __future__ import annotations

from enum import Enum


class EnumProvisioningAttemptOutcome(str, Enum):
    """Outcome recorded for each provisioning attempt.

    Attributes:
        EXISTING: Topic already had the required shape (no create issued).
        CREATED: This attempt created the topic.
        ALREADY_EXISTS: Create raced with another creator; the topic exists.
        FAILED: The attempt failed (see the attempt's reason).
    """

    EXISTING = "existing"
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


__all__ = ["EnumProvisioningAttemptOutcome"]
