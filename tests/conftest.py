# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pytest configuration and shared fixtures for omnibase_metrics_reporter tests.

Fixtures:
    cluster: Fresh single-broker InMemoryBrokerCluster
    metadata_client: BrokerMetadataClient wired to ``cluster``
    scenario_config: Small reporter configuration used by end-to-end tests
    fake_clock: Manually advanced monotonic clock with a matching sleep
    clean_env: Removes every reporter environment override
"""

from __future__ import annotations

import asyncio

import pytest

from omnibase_metrics_reporter.broker import BrokerMetadataClient, InMemoryBrokerCluster
from omnibase_metrics_reporter.models import ModelMetricsReporterConfig

SCENARIO_TOPIC = "CruiseControlMetricsReporterTest"

REPORTER_ENV_VARS = (
    "KAFKA_BOOTSTRAP_SERVERS",
    "METRICS_REPORTER_TOPIC",
    "METRICS_REPORTER_TOPIC_AUTO_CREATE",
    "METRICS_REPORTER_TOPIC_AUTO_CREATE_TIMEOUT_MS",
    "METRICS_REPORTER_TOPIC_AUTO_CREATE_RETRIES",
    "METRICS_REPORTER_TOPIC_PARTITIONS",
    "METRICS_REPORTER_TOPIC_REPLICATION_FACTOR",
    "METRICS_REPORTER_SAMPLE_INTERVAL_MS",
)


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is awaited.

    ``sleep`` still yields to the event loop so other tasks make progress.
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += max(0.0, seconds)
        await asyncio.sleep(0)


@pytest.fixture
def cluster() -> InMemoryBrokerCluster:
    """Single-broker in-memory cluster."""
    return InMemoryBrokerCluster(broker_count=1)


@pytest.fixture
def metadata_client(cluster: InMemoryBrokerCluster) -> BrokerMetadataClient:
    """Metadata client probing both surfaces of ``cluster``."""
    return BrokerMetadataClient(
        bootstrap_servers="in-memory:9092",
        admin_factory=cluster.admin_factory,
        kafka_python_admin_factory=cluster.kafka_python_admin_factory,
    )


@pytest.fixture
def scenario_config() -> ModelMetricsReporterConfig:
    """One partition, replication factor one, a single provisioning attempt."""
    return ModelMetricsReporterConfig(
        bootstrap_servers="in-memory:9092",
        topic=SCENARIO_TOPIC,
        topic_partitions=1,
        topic_replication_factor=1,
        topic_auto_create=True,
        topic_auto_create_timeout_ms=5000,
        topic_auto_create_retries=1,
        sample_interval_ms=100,
        shutdown_grace_ms=1000,
        send_timeout_ms=1000,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear reporter environment overrides for the duration of a test."""
    for name in REPORTER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
