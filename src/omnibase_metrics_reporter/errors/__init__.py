# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics Reporter Errors Module.

All errors extend ModelOnexError (omnibase_core) through RuntimeHostError.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    RuntimeHostError: Base infrastructure error class
    ProtocolConfigurationError: Configuration validation errors
    InfraConnectionError: Broker connection errors
    InfraTimeoutError: Broker operation timeouts
    InfraUnavailableError: Component not started or already closed
    TopicDescriptionError: Topic metadata could not be resolved
    TopicNotFoundError: Topic does not exist on the cluster
    TopicCreationError: Broker rejected a create-topic request
    TopicProvisioningError: Fatal provisioning failure surfaced to the host
    SnapshotDecodeError: Record value is not a decodable metric snapshot

Correlation ID Assignment:
    - Propagate correlation_id from the calling operation into error context
    - Generate one with uuid4() (or ModelInfraErrorContext.with_correlation)
      when none exists

Error Sanitization Guidelines:
    NEVER include credentials from bootstrap server strings or SASL settings
    in error messages. Use sanitize_bootstrap_servers() and
    sanitize_error_message() from omnibase_metrics_reporter.utils.
"""

from omnibase_metrics_reporter.errors.error_snapshot_codec import SnapshotDecodeError
from omnibase_metrics_reporter.errors.error_topic import (
    TopicCreationError,
    TopicDescriptionError,
    TopicNotFoundError,
)
from omnibase_metrics_reporter.errors.error_topic_provisioning import (
    TopicProvisioningError,
)
from omnibase_metrics_reporter.errors.infra_errors import (
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
    RuntimeHostError,
)
from omnibase_metrics_reporter.errors.model_infra_error_context import (
    ModelInfraErrorContext,
)

__all__: list[str] = [
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraUnavailableError",
    "ModelInfraErrorContext",
    "ProtocolConfigurationError",
    "RuntimeHostError",
    "SnapshotDecodeError",
    "TopicCreationError",
    "TopicDescriptionError",
    "TopicNotFoundError",
    "TopicProvisioningError",
]
