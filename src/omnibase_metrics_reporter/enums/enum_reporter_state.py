# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reporter lifecycle states."""

from __future__ import annotations

from enum import Enum


class EnumReporterState(str, Enum):
    """Lifecycle state of a ReporterLifecycle instance."""

    IDLE = "idle"
    PROVISIONING = "provisioning"
    RUNNING = "running"
    DEGRADED = "degraded"
    STOPPING = "stopping"
    STOPPED = "stopped"


__all__ = ["EnumReporterState"]
