# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""What the reporter lifecycle does when provisioning fails."""

from __future__ import annotations

from enum import Enum


class EnumProvisioningFailurePolicy(str, Enum):
    """Host policy for a failed provisioning run.

    Attributes:
        ABORT: Raise TopicProvisioningError from ReporterLifecycle.start().
        DEGRADED: Log and keep the host running without metrics reporting.
    """

    ABORT = "abort"
    DEGRADED = "degraded"


__all__ = ["EnumProvisioningFailurePolicy"]
