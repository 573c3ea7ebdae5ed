# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topic metadata and topic creation errors.

TopicDescriptionError is raised when every supported metadata query surface
failed to describe a topic. TopicNotFoundError is the definitive "topic does
not exist" answer and is what drives the provisioner from CHECKING into
CREATING. TopicCreationError covers broker rejections of a create request
other than "topic already exists", which is a normal outcome.
"""

from __future__ import annotations

from typing import Optional

from omnibase_core.enums.enum_core_error_code import EnumCoreErrorCode

from omnibase_metrics_reporter.errors.infra_errors import RuntimeHostError
from omnibase_metrics_reporter.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)


class TopicDescriptionError(RuntimeHostError):
    """Raised when a topic description cannot be resolved.

    Attributes:
        topic_name: Topic that was being described.
        cause: Underlying exception from the last query surface tried.
        retriable: Whether a later attempt may succeed.
    """

    def __init__(
        self,
        message: str,
        topic_name: str,
        cause: Optional[BaseException] = None,
        retriable: bool = True,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        self.topic_name = topic_name
        self.cause = cause
        self.retriable = retriable
        super().__init__(
            message=message,
            context=context,
            topic=topic_name,
            cause_type=type(cause).__name__ if cause is not None else None,
            **extra_context,
        )


class TopicNotFoundError(TopicDescriptionError):
    """Raised when the cluster reports that the topic does not exist."""

    default_error_code = EnumCoreErrorCode.RESOURCE_NOT_FOUND

    def __init__(
        self,
        message: str,
        topic_name: str,
        cause: Optional[BaseException] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            topic_name=topic_name,
            cause=cause,
            retriable=False,
            context=context,
            **extra_context,
        )


class TopicCreationError(RuntimeHostError):
    """Raised when the cluster rejects a create-topic request.

    Attributes:
        topic_name: Topic that was being created.
        retriable: Whether the broker classified the error as retriable.
        broker_error: Name of the broker error class (e.g. "InvalidReplicationFactorError").
    """

    def __init__(
        self,
        message: str,
        topic_name: str,
        retriable: bool,
        broker_error: Optional[str] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        self.topic_name = topic_name
        self.retriable = retriable
        self.broker_error = broker_error
        super().__init__(
            message=message,
            context=context,
            topic=topic_name,
            broker_error=broker_error,
            **extra_context,
        )


__all__ = [
    "TopicCreationError",
    "TopicDescriptionError",
    "TopicNotFoundError",
]
