# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metrics Reporter - Topic provisioning and metrics publishing for Kafka.

This package gets process metrics safely onto a Kafka topic:

- Idempotent provisioning of the metrics topic with bounded retries and a deadline
- Broker metadata resolution across the aiokafka and kafka-python client surfaces
- A fixed-interval sampler feeding an asynchronous, failure-tracking publisher

Key Components:
    - BrokerMetadataClient: create, describe and inspect topics
    - TopicProvisioner: provisioning state machine
    - MetricsSampler / MetricsPublisher: sampling and publishing pipeline
    - ReporterLifecycle: ordered startup and shutdown
    - Transport-aware error handling with ModelInfraErrorContext
"""

__all__: list[str] = []
