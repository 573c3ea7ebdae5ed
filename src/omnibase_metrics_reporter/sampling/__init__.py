# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics sampling.

Exports:
    MetricsSampler: Fixed-interval, restartable snapshot generator
    SnapshotSlot: Single-slot handoff to the publisher
    ProtocolMetricSource: Interface for metric sources
    ProcessMetricSource: psutil-backed process metrics
    MetricRegistry: Host-registered gauges and counters
    CompositeMetricSource: Merge of several sources
"""

from omnibase_metrics_reporter.sampling.metric_sources import (
    CompositeMetricSource,
    MetricRegistry,
    ProcessMetricSource,
    ProtocolMetricSource,
)
from omnibase_metrics_reporter.sampling.metrics_sampler import MetricsSampler
from omnibase_metrics_reporter.sampling.snapshot_slot import SnapshotSlot

__all__: list[str] = [
    "CompositeMetricSource",
    "MetricRegistry",
    "MetricsSampler",
    "ProcessMetricSource",
    "ProtocolMetricSource",
    "SnapshotSlot",
]
