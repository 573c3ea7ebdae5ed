# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Base error classes for the metrics reporter.

Every reporter failure is a ModelOnexError (from omnibase_core), so callers
embedding the reporter in an ONEX service get the usual error code,
correlation ID and structured context without special handling.

Error Hierarchy:
    ModelOnexError (from omnibase_core)
    └── RuntimeHostError
        ├── ProtocolConfigurationError   INVALID_CONFIGURATION
        ├── InfraConnectionError         DATABASE_CONNECTION_ERROR
        ├── InfraTimeoutError            TIMEOUT_ERROR
        ├── InfraUnavailableError        SERVICE_UNAVAILABLE
        ├── TopicDescriptionError        (errors/error_topic.py)
        ├── TopicCreationError           (errors/error_topic.py)
        ├── TopicProvisioningError       (errors/error_topic_provisioning.py)
        └── SnapshotDecodeError          (errors/error_snapshot_codec.py)

Subclasses pick their error code by overriding ``default_error_code``; an
explicit ``error_code`` argument still wins. Chain the underlying exception
with ``raise ... from e``.
"""

from typing import ClassVar, Optional

from omnibase_core.enums.enum_core_error_code import EnumCoreErrorCode
from omnibase_core.models.errors.model_onex_error import ModelOnexError

from omnibase_metrics_reporter.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)


class RuntimeHostError(ModelOnexError):
    """Base class for metrics reporter errors.

    The transport, operation and target of ``context`` are flattened into the
    error's structured context next to any keyword arguments; the context
    object itself stays available as ``infra_context``.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.KAFKA,
        ...     operation="create_topic",
        ...     target_name="metrics",
        ... )
        >>> raise RuntimeHostError("create failed", context=context, attempt=3)
    """

    default_error_code: ClassVar[EnumCoreErrorCode] = (
        EnumCoreErrorCode.OPERATION_FAILED
    )

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        error_code: Optional[EnumCoreErrorCode] = None,
        **extra_context: object,
    ) -> None:
        self.infra_context = context

        fields: dict[str, object] = {}
        if context is not None:
            fields = {
                key: value
                for key, value in (
                    ("transport_type", context.transport_type),
                    ("operation", context.operation),
                    ("target_name", context.target_name),
                )
                if value is not None
            }
        fields.update(extra_context)

        super().__init__(
            message=message,
            error_code=error_code or self.default_error_code,
            correlation_id=context.correlation_id if context is not None else None,
            **fields,
        )


class ProtocolConfigurationError(RuntimeHostError):
    """Invalid reporter configuration: a bad topic spec, env override or YAML file."""

    default_error_code = EnumCoreErrorCode.INVALID_CONFIGURATION


class InfraConnectionError(RuntimeHostError):
    """The broker could not be reached or dropped the connection."""

    default_error_code = EnumCoreErrorCode.DATABASE_CONNECTION_ERROR


class InfraTimeoutError(RuntimeHostError):
    default_error_code = EnumCoreErrorCode.TIMEOUT_ERROR


class InfraUnavailableError(RuntimeHostError):
    """A component was used before start or after close."""

    default_error_code = EnumCoreErrorCode.SERVICE_UNAVAILABLE


__all__ = [
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "ProtocolConfigurationError",
    "RuntimeHostError",
]
