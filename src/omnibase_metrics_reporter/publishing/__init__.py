# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics publishing.

Exports:
    MetricsPublisher: Bounded, non-retrying asynchronous snapshot publisher
    encode_snapshot: Serialize a snapshot to its JSON envelope
    decode_snapshot: Parse a JSON envelope back into a snapshot
    snapshot_headers: Headers attached to every snapshot record
"""

from omnibase_metrics_reporter.publishing.codec_metric_snapshot import (
    SNAPSHOT_CONTENT_TYPE,
    SNAPSHOT_SCHEMA,
    SNAPSHOT_SCHEMA_VERSION,
    decode_snapshot,
    encode_snapshot,
    snapshot_headers,
)
from omnibase_metrics_reporter.publishing.metrics_publisher import (
    HealthCallbackType,
    MetricsPublisher,
)

__all__: list[str] = [
    "HealthCallbackType",
    "MetricsPublisher",
    "SNAPSHOT_CONTENT_TYPE",
    "SNAPSHOT_SCHEMA",
    "SNAPSHOT_SCHEMA_VERSION",
    "decode_snapshot",
    "encode_snapshot",
    "snapshot_headers",
]
