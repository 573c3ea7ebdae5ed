# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error raised by the reporter lifecycle when provisioning fails fatally."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from omnibase_metrics_reporter.errors.infra_errors import RuntimeHostError
from omnibase_metrics_reporter.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)

if TYPE_CHECKING:
    from omnibase_metrics_reporter.models.model_provisioning_result import (
        ModelProvisioningResult,
    )


class TopicProvisioningError(RuntimeHostError):
    """Raised when the metrics topic could not be provisioned.

    Attributes:
        result: The terminal provisioning result, including the failure
            reason and every attempt made.
    """

    def __init__(
        self,
        message: str,
        result: ModelProvisioningResult,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        self.result = result
        super().__init__(
            message=message,
            context=context,
            topic=result.topic,
            failure_reason=(
                result.failure_reason.value if result.failure_reason else None
            ),
            attempts=len(result.attempts),
            **extra_context,
        )


__all__ = ["TopicProvisioningError"]
