# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Provisioning state machine states."""

from __future__ import annotations

from enum import Enum


class EnumProvisioningState(str, Enum):
    """States of a single topic provisioning run.

    Transitions::

        IDLE -> CHECKING -> PROVISIONED            (fast path)
        CHECKING -> CREATING -> VERIFYING -> PROVISIONED
        any non-terminal state -> FAILED
        CHECKING/CREATING/VERIFYING -> CHECKING    (retry after backoff)

    Attributes:
        IDLE: No provisioning run has started.
        CHECKING: Describing the topic to see whether it already exists.
        CREATING: Requesting topic creation from the cluster.
        VERIFYING: Re-describing the topic to confirm its final shape.
        PROVISIONED: Terminal success.
        FAILED: Terminal failure.
    """

    IDLE = "idle"
    CHECKING = "checking"
    CREATING = "creating"
    VERIFYING = "verifying"
    PROVISIONED = "provisioned"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition can happen from this state."""
        return self in (EnumProvisioningState.PROVISIONED, EnumProvisioningState.FAILED)


__all__ = ["EnumProvisioningState"]
