# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for ReporterLifecycle against the in-memory cluster.

Tests cover:
- Startup ordering: the topic exists before anything is published
- ABORT and DEGRADED handling of a provisioning failure
- Ordered, idempotent shutdown
- Sampling that keeps running while the broker rejects every send
- Health reporting
"""

from __future__ import annotations

import asyncio

import pytest

from omnibase_metrics_reporter.broker import BrokerMetadataClient, InMemoryBrokerCluster
from omnibase_metrics_reporter.enums import (
    EnumProvisioningFailurePolicy,
    EnumProvisioningFailureReason,
    EnumReporterState,
)
from omnibase_metrics_reporter.errors import (
    InfraConnectionError,
    InfraUnavailableError,
    TopicProvisioningError,
)
from omnibase_metrics_reporter.models import ModelMetricsReporterConfig
from omnibase_metrics_reporter.publishing import decode_snapshot
from omnibase_metrics_reporter.runtime import ReporterLifecycle
from omnibase_metrics_reporter.sampling import MetricRegistry

pytestmark = [pytest.mark.asyncio, pytest.mark.unit]


def _lifecycle(
    config: ModelMetricsReporterConfig,
    cluster: InMemoryBrokerCluster,
    metadata_client: BrokerMetadataClient,
) -> ReporterLifecycle:
    registry = MetricRegistry()
    registry.set_gauge("queue.depth", 4.0)
    return ReporterLifecycle(
        config,
        metadata_client=metadata_client,
        producer=cluster.create_producer(),
        metric_source=registry,
    )


async def _wait_for_records(
    cluster: InMemoryBrokerCluster, topic: str, count: int
) -> None:
    while len(cluster.records(topic)) < count:
        await asyncio.sleep(0.01)


class TestReporterLifecycleStart:
    async def test_provisions_then_publishes(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)

        await reporter.start()
        try:
            assert reporter.state == EnumReporterState.RUNNING
            assert cluster.topic_shape(scenario_config.topic) == (1, 1)
            assert reporter.provisioning_result is not None
            assert reporter.provisioning_result.succeeded
            assert reporter.provisioning_result.created is True

            await asyncio.wait_for(
                _wait_for_records(cluster, scenario_config.topic, 2), timeout=5.0
            )
        finally:
            await reporter.stop()

        snapshot = decode_snapshot(cluster.records(scenario_config.topic)[0].value)
        assert snapshot.fields == {"queue.depth": 4.0}
        assert snapshot.source == scenario_config.client_id

    async def test_uses_existing_topic(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        cluster.add_topic(scenario_config.topic, partitions=2)
        reporter = _lifecycle(scenario_config, cluster, metadata_client)

        await reporter.start()
        await reporter.stop()

        assert reporter.provisioning_result is not None
        assert reporter.provisioning_result.created is False
        assert cluster.create_requests == 0

    async def test_second_start_is_noop(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)

        await reporter.start()
        publisher = reporter.publisher
        await reporter.start()
        await reporter.stop()

        assert reporter.publisher is publisher
        assert cluster.create_requests == 1

    async def test_start_after_stop_is_rejected(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)
        await reporter.start()
        await reporter.stop()

        with pytest.raises(InfraUnavailableError):
            await reporter.start()

    async def test_producer_failure_stops_reporter(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        cluster.add_topic(scenario_config.topic)
        reporter = _lifecycle(scenario_config, cluster, metadata_client)
        producer = reporter._producer

        async def refuse() -> None:
            raise ConnectionRefusedError("producer refused")

        producer.start = refuse  # type: ignore[union-attr]

        with pytest.raises(InfraConnectionError):
            await reporter.start()
        assert reporter.state == EnumReporterState.STOPPED
        assert reporter.publisher is None


class TestReporterLifecycleProvisioningFailure:
    async def test_abort_raises_with_result(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        config = scenario_config.model_copy(update={"topic_auto_create": False})
        reporter = _lifecycle(config, cluster, metadata_client)

        with pytest.raises(TopicProvisioningError) as exc_info:
            await reporter.start()

        assert (
            exc_info.value.result.failure_reason
            == EnumProvisioningFailureReason.TOPIC_MISSING
        )
        assert reporter.state == EnumReporterState.STOPPED
        assert reporter.publisher is None
        assert cluster.records(config.topic) == []
        assert cluster.topic_names() == []

    async def test_degraded_runs_without_publisher(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        config = scenario_config.model_copy(
            update={
                "topic_replication_factor": 3,
                "on_provisioning_failure": EnumProvisioningFailurePolicy.DEGRADED,
            }
        )
        reporter = _lifecycle(config, cluster, metadata_client)

        await reporter.start()
        health = await reporter.health_check()
        await reporter.stop()

        assert health["state"] == "degraded"
        assert health["healthy"] is False
        assert health["provisioned"] is False
        assert health["provisioning_failure"] == "invalid_replication_factor"
        assert health["publisher"] is None
        assert reporter.publisher is None
        assert reporter.state == EnumReporterState.STOPPED


class TestReporterLifecycleStop:
    async def test_stop_is_idempotent(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)
        await reporter.start()

        await reporter.stop()
        await reporter.stop()

        assert reporter.state == EnumReporterState.STOPPED
        assert reporter.sampler is not None and not reporter.sampler.running
        assert reporter.slot is not None and reporter.slot.closed
        assert reporter._producer.closed is True  # type: ignore[union-attr]

    async def test_stop_before_start(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)
        await reporter.stop()
        assert reporter.state == EnumReporterState.STOPPED

    async def test_stop_cancels_stuck_sends(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        config = scenario_config.model_copy(
            update={"shutdown_grace_ms": 50, "send_timeout_ms": 60000}
        )
        reporter = _lifecycle(config, cluster, metadata_client)
        cluster.send_delay_seconds = 30.0
        await reporter.start()
        publisher = reporter.publisher
        assert publisher is not None
        while publisher.stats.accepted < 1:
            await asyncio.sleep(0.01)

        await asyncio.wait_for(reporter.stop(), timeout=5.0)

        assert publisher.stats.cancelled >= 1
        assert publisher.stats.in_flight == 0
        assert cluster.records(config.topic) == []

    async def test_async_context_manager(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        async with _lifecycle(scenario_config, cluster, metadata_client) as reporter:
            assert reporter.state == EnumReporterState.RUNNING

        assert reporter.state == EnumReporterState.STOPPED


class TestReporterLifecycleRejectedSends:
    async def test_keeps_sampling_while_broker_rejects_sends(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        config = scenario_config.model_copy(
            update={
                "sample_interval_ms": 10,
                "max_in_flight_sends": 2,
                "publish_failure_window": 3,
            }
        )
        cluster.reject_sends()
        reporter = _lifecycle(config, cluster, metadata_client)

        await reporter.start()
        publisher = reporter.publisher
        sampler = reporter.sampler
        assert publisher is not None and sampler is not None
        try:
            ticks_before = sampler.ticks
            for _ in range(10):
                await asyncio.sleep(0.03)
                assert sampler.running
                assert publisher.stats.in_flight <= config.max_in_flight_sends
                # A finished task leaves the set one loop step after its slot frees.
                assert len(publisher._tasks) <= 2 * config.max_in_flight_sends
            assert sampler.ticks > ticks_before

            stats = publisher.stats
            assert stats.failed > 0
            assert stats.succeeded == 0
            assert stats.healthy is False
        finally:
            await reporter.stop()

        assert reporter.state == EnumReporterState.STOPPED
        assert cluster.records(config.topic) == []
        stats = publisher.stats
        assert stats.in_flight == 0
        assert stats.failed + stats.cancelled == stats.accepted


class TestReporterLifecycleHealth:
    async def test_health_while_running(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        reporter = _lifecycle(scenario_config, cluster, metadata_client)
        await reporter.start()
        try:
            await asyncio.wait_for(
                _wait_for_records(cluster, scenario_config.topic, 1), timeout=5.0
            )
            health = await reporter.health_check()
        finally:
            await reporter.stop()

        assert health["healthy"] is True
        assert health["state"] == "running"
        assert health["topic"] == scenario_config.topic
        assert health["provisioned"] is True
        assert health["provisioning_failure"] is None
        assert isinstance(health["publisher"], dict)
        assert health["sampler_ticks"] >= 1

    async def test_health_before_start(
        self,
        cluster: InMemoryBrokerCluster,
        metadata_client: BrokerMetadataClient,
        scenario_config: ModelMetricsReporterConfig,
    ) -> None:
        health = await _lifecycle(
            scenario_config, cluster, metadata_client
        ).health_check()

        assert health["healthy"] is False
        assert health["state"] == "idle"
        assert health["publisher"] is None
