# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""One timestamped capture of process metrics."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ModelMetricSnapshot(BaseModel):
    """A self-contained metrics sample ready for publication.

    Ownership moves from the sampler to the publisher through the handoff
    slot; the publisher drops its reference once the send completes.

    Attributes:
        snapshot_id: Unique id, used for failure accounting and dedup on the consumer side.
        captured_at: UTC capture time.
        source: Optional reporter/host identifier.
        fields: Metric name to numeric value.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshot_id: UUID = Field(default_factory=uuid4)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source: str | None = None
    fields: dict[str, float] = Field(default_factory=dict)


__all__ = ["ModelMetricSnapshot"]
