# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics Reporter Models Module.

Exports:
    ModelMetricsReporterConfig: Reporter configuration (env and YAML loading)
    ModelTopicSpec: Creation spec for the metrics topic
    ModelPartitionDescription: Layout of a single partition
    ModelTopicDescription: Partition/replica layout of a topic
    ModelProvisioningAttempt: One provisioning attempt
    ModelProvisioningResult: Terminal provisioning outcome
    ModelMetricSnapshot: One timestamped metrics sample
    ModelPublishOutcome: Result of a single send
    ModelPublishStats: Publisher counters
    ModelPublisherHealthEvent: Publisher health transition
"""

from omnibase_metrics_reporter.models.model_metric_snapshot import (
    ModelMetricSnapshot,
)
from omnibase_metrics_reporter.models.model_metrics_reporter_config import (
    DEFAULT_BOOTSTRAP_SERVERS,
    DEFAULT_METRICS_TOPIC,
    ModelMetricsReporterConfig,
)
from omnibase_metrics_reporter.models.model_provisioning_result import (
    ModelProvisioningAttempt,
    ModelProvisioningResult,
)
from omnibase_metrics_reporter.models.model_publish_stats import (
    ModelPublisherHealthEvent,
    ModelPublishOutcome,
    ModelPublishStats,
)
from omnibase_metrics_reporter.models.model_topic_description import (
    ModelPartitionDescription,
    ModelTopicDescription,
)
from omnibase_metrics_reporter.models.model_topic_spec import (
    DEFAULT_METRICS_TOPIC_PARTITIONS,
    DEFAULT_METRICS_TOPIC_REPLICATION_FACTOR,
    ModelTopicSpec,
)

__all__: list[str] = [
    "DEFAULT_BOOTSTRAP_SERVERS",
    "DEFAULT_METRICS_TOPIC",
    "DEFAULT_METRICS_TOPIC_PARTITIONS",
    "DEFAULT_METRICS_TOPIC_REPLICATION_FACTOR",
    "ModelMetricSnapshot",
    "ModelMetricsReporterConfig",
    "ModelPartitionDescription",
    "ModelProvisioningAttempt",
    "ModelProvisioningResult",
    "ModelPublishOutcome",
    "ModelPublishStats",
    "ModelPublisherHealthEvent",
    "ModelTopicDescription",
    "ModelTopicSpec",
]
