# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Publisher accounting models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ModelPublishOutcome(BaseModel):
    """Result of a single send. Not persisted."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshot_id: UUID
    success: bool
    error: str | None = None


class ModelPublishStats(BaseModel):
    """Point-in-time copy of the publisher counters.

    Attributes:
        accepted: Snapshots handed to the producer.
        succeeded: Sends acknowledged by the broker.
        failed: Sends that errored or timed out.
        in_flight: Sends not yet completed.
        cancelled: Sends abandoned after the shutdown grace period.
        healthy: False while every send in the failure window has failed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    accepted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    in_flight: int = Field(default=0, ge=0)
    cancelled: int = Field(default=0, ge=0)
    healthy: bool = True


class ModelPublisherHealthEvent(BaseModel):
    """Health transition reported to the host."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    healthy: bool
    topic: str
    window_size: int = Field(..., ge=1)
    failures_in_window: int = Field(..., ge=0)
    last_error: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


__all__ = ["ModelPublishOutcome", "ModelPublishStats", "ModelPublisherHealthEvent"]
