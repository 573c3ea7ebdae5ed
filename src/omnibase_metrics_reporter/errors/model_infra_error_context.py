# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Structured context attached to every reporter error."""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from omnibase_metrics_reporter.enums import EnumInfraTransportType


class ModelInfraErrorContext(BaseModel):
    """Where a reporter error happened.

    ``transport_type`` is KAFKA for admin and producer calls and RUNTIME for
    the sampler and handoff slot. ``operation`` names the call, e.g.
    ``describe_topic`` or ``send``; ``target_name`` is usually the topic.
    Instances are frozen so one context can be shared across the attempts of
    a provisioning run.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    transport_type: Optional[EnumInfraTransportType] = None
    operation: Optional[str] = None
    target_name: Optional[str] = None
    correlation_id: Optional[UUID] = None

    @classmethod
    def with_correlation(
        cls,
        correlation_id: UUID | None = None,
        **kwargs: object,
    ) -> ModelInfraErrorContext:
        """Build a context, generating ``correlation_id`` when it is not given."""
        return cls(correlation_id=correlation_id or uuid4(), **kwargs)


__all__ = ["ModelInfraErrorContext"]
