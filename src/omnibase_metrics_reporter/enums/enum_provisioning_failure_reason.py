# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reasons a provisioning run can terminate in FAILED."""

from __future__ import annotations

from enum import Enum


class EnumProvisioningFailureReason(str, Enum):
    """Terminal failure reasons for topic provisioning.

    Attributes:
        TOPIC_MISSING: Topic absent and auto-creation disabled.
        SHAPE_MISMATCH: Topic exists with fewer partitions or replicas than required.
        TIMEOUT: The overall creation deadline elapsed.
        RETRIES_EXHAUSTED: Every allowed attempt hit a transient failure.
        INVALID_REPLICATION_FACTOR: Replication factor exceeds the broker count.
        BROKER_REJECTED: The cluster refused the request with a non-retriable error.
    """

    TOPIC_MISSING = "topic_missing"
    SHAPE_MISMATCH = "shape_mismatch"
    TIMEOUT = "timeout"
    RETRIES_EXHAUSTED = "retries_exhausted"
    INVALID_REPLICATION_FACTOR = "invalid_replication_factor"
    BROKER_REJECTED = "broker_rejected"


__all__ = ["EnumProvisioningFailureReason"]
