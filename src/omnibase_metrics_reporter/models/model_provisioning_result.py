# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Provisioning attempt and result models.

Attempts are owned by a single TopicProvisioner run; the result is the only
thing that outlives the run.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from omnibase_metrics_reporter.enums import (
    EnumProvisioningAttemptOutcome,
    EnumProvisioningFailureReason,
    EnumProvisioningState,
)
from omnibase_metrics_reporter.models.model_topic_description import (
    ModelTopicDescription,
)


class ModelProvisioningAttempt(BaseModel):
    """One pass through CHECKING (and possibly CREATING/VERIFYING)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    attempt_number: int = Field(..., ge=1)
    started_at: datetime
    outcome: EnumProvisioningAttemptOutcome
    reason: str | None = Field(
        default=None, description="Sanitized failure detail for FAILED attempts"
    )


class ModelProvisioningResult(BaseModel):
    """Terminal outcome of a provisioning run.

    Attributes:
        topic: Topic that was provisioned.
        state: PROVISIONED or FAILED.
        failure_reason: Set when state is FAILED.
        attempts: Every attempt made, in order.
        description: Final topic description when PROVISIONED.
        created: True when this run issued the create that made the topic.
        elapsed_seconds: Wall-clock duration of the run.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: str
    state: EnumProvisioningState
    failure_reason: EnumProvisioningFailureReason | None = None
    attempts: tuple[ModelProvisioningAttempt, ...] = ()
    description: ModelTopicDescription | None = None
    created: bool = False
    elapsed_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def succeeded(self) -> bool:
        return self.state == EnumProvisioningState.PROVISIONED


__all__ = ["ModelProvisioningAttempt", "ModelProvisioningResult"]
