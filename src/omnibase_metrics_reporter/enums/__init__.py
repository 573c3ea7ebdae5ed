# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics Reporter Enumerations Module.

Exports:
    EnumCreateTopicOutcome: Non-error results of a create-topic request
    EnumInfraTransportType: Infrastructure transport type enumeration
    EnumMetadataQuerySurface: Client libraries used to describe topics
    EnumProvisioningAttemptOutcome: Outcome of a single provisioning attempt
    EnumProvisioningFailurePolicy: Lifecycle policy on provisioning failure (ABORT, DEGRADED)
    EnumProvisioningFailureReason: Terminal provisioning failure reasons
    EnumProvisioningState: Provisioning state machine states
    EnumReporterState: Reporter lifecycle states
    EnumSnapshotDropPolicy: Single-slot handoff policy (SKIP_NEW, REPLACE_OLDEST)
"""

from omnibase_metrics_reporter.enums.enum_create_topic_outcome import (
    EnumCreateTopicOutcome,
)
from omnibase_metrics_reporter.enums.enum_infra_transport_type import (
    EnumInfraTransportType,
)
from omnibase_metrics_reporter.enums.enum_metadata_query_surface import (
    EnumMetadataQuerySurface,
)
from omnibase_metrics_reporter.enums.enum_provisioning_attempt_outcome import (
    EnumProvisioningAttemptOutcome,
)
from omnibase_metrics_reporter.enums.enum_provisioning_failure_policy import (
    EnumProvisioningFailurePolicy,
)
from omnibase_metrics_reporter.enums.enum_provisioning_failure_reason import (
    EnumProvisioningFailureReason,
)
from omnibase_metrics_reporter.enums.enum_provisioning_state import (
    EnumProvisioningState,
)
from omnibase_metrics_reporter.enums.enum_reporter_state import EnumReporterState
from omnibase_metrics_reporter.enums.enum_snapshot_drop_policy import (
    EnumSnapshotDropPolicy,
)

__all__: list[str] = [
    "EnumCreateTopicOutcome",
    "EnumInfraTransportType",
    "EnumMetadataQuerySurface",
    "EnumProvisioningAttemptOutcome",
    "EnumProvisioningFailurePolicy",
    "EnumProvisioningFailureReason",
    "EnumProvisioningState",
    "EnumReporterState",
    "EnumSnapshotDropPolicy",
]
