# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reporter lifecycle: provision first, then sample and publish.

Startup order:
    1. provision the metrics topic (bounded by the creation timeout)
    2. start the producer
    3. start the publisher pump (slot -> publisher)
    4. start the sampler (source -> slot)

When provisioning fails the publisher is never started. What happens next
is the host's choice (``on_provisioning_failure``):

    ABORT     start() raises TopicProvisioningError
    DEGRADED  start() returns, the reporter stays in DEGRADED and publishes
              nothing

Shutdown order:
    1. stop the sampler timer
    2. close the handoff slot (a pending snapshot is discarded)
    3. let in-flight sends drain for up to ``shutdown_grace_ms``
    4. force-close the producer, cancelling whatever is still in flight

Usage:
    ```python
    async with ReporterLifecycle(ModelMetricsReporterConfig.default()) as reporter:
        ...
    ```
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID, uuid4

from aiokafka import AIOKafkaProducer

from omnibase_metrics_reporter.broker import BrokerMetadataClient
from omnibase_metrics_reporter.enums import (
    EnumInfraTransportType,
    EnumProvisioningFailurePolicy,
    EnumReporterState,
)
from omnibase_metrics_reporter.errors import (
    InfraUnavailableError,
    ModelInfraErrorContext,
    TopicProvisioningError,
)
from omnibase_metrics_reporter.models import (
    ModelMetricsReporterConfig,
    ModelProvisioningResult,
)
from omnibase_metrics_reporter.provisioning import TopicProvisioner
from omnibase_metrics_reporter.publishing import MetricsPublisher
from omnibase_metrics_reporter.sampling import (
    MetricsSampler,
    ProcessMetricSource,
    ProtocolMetricSource,
    SnapshotSlot,
)
from omnibase_metrics_reporter.utils import (
    sanitize_bootstrap_servers,
    sanitize_error_message,
)

logger = logging.getLogger(__name__)


class ReporterLifecycle:
    """Wires provisioner, sampler and publisher together.

    Args:
        config: Reporter configuration.
        metadata_client: Client used for provisioning. Defaults to one built
            from ``config``.
        producer: Unstarted AIOKafkaProducer-compatible producer. Defaults to
            an AIOKafkaProducer built from ``config``.
        metric_source: What to sample. Defaults to ProcessMetricSource.
    """

    def __init__(
        self,
        config: ModelMetricsReporterConfig,
        metadata_client: BrokerMetadataClient | None = None,
        producer: Any | None = None,
        metric_source: ProtocolMetricSource | None = None,
    ) -> None:
        self._config = config
        self._metadata_client = metadata_client or BrokerMetadataClient.from_config(
            config
        )
        self._producer = producer
        self._metric_source = metric_source

        self._lock = asyncio.Lock()
        self._state = EnumReporterState.IDLE
        self._provisioning_result: ModelProvisioningResult | None = None
        self._publisher: MetricsPublisher | None = None
        self._sampler: MetricsSampler | None = None
        self._slot: SnapshotSlot | None = None
        self._pump_task: asyncio.Task[None] | None = None

    @property
    def config(self) -> ModelMetricsReporterConfig:
        return self._config

    @property
    def state(self) -> EnumReporterState:
        return self._state

    @property
    def provisioning_result(self) -> ModelProvisioningResult | None:
        return self._provisioning_result

    @property
    def publisher(self) -> MetricsPublisher | None:
        return self._publisher

    @property
    def sampler(self) -> MetricsSampler | None:
        return self._sampler

    @property
    def slot(self) -> SnapshotSlot | None:
        return self._slot

    def _build_producer(self) -> AIOKafkaProducer:
        acks: int | str = self._config.producer_acks
        if acks != "all":
            acks = int(acks)
        return AIOKafkaProducer(
            bootstrap_servers=self._config.bootstrap_servers,
            client_id=self._config.client_id,
            acks=acks,
            compression_type=self._config.producer_compression_type,
            linger_ms=self._config.producer_linger_ms,
            request_timeout_ms=self._config.request_timeout_ms,
        )

    async def start(self, correlation_id: UUID | None = None) -> None:
        """Provision the topic and start publishing.

        Raises:
            TopicProvisioningError: Provisioning failed and the policy is ABORT.
            InfraConnectionError: The producer could not connect.
            InfraTimeoutError: The producer did not connect in time.
            InfraUnavailableError: The reporter was already stopped.
        """
        correlation_id = correlation_id or uuid4()
        async with self._lock:
            if self._state in (EnumReporterState.RUNNING, EnumReporterState.DEGRADED):
                logger.debug("Reporter already started")
                return
            if self._state != EnumReporterState.IDLE:
                raise InfraUnavailableError(
                    f"Reporter cannot start from state {self._state.value}",
                    context=self._context("start", correlation_id),
                )

            self._state = EnumReporterState.PROVISIONING
            logger.info(
                "Starting metrics reporter",
                extra={
                    "correlation_id": str(correlation_id),
                    "topic": self._config.topic,
                    "bootstrap_servers": sanitize_bootstrap_servers(
                        self._config.bootstrap_servers
                    ),
                },
            )
            provisioner = TopicProvisioner.from_config(
                self._config, self._metadata_client
            )
            result = await provisioner.provision(
                self._config.topic_spec(), correlation_id
            )
            self._provisioning_result = result

            if not result.succeeded:
                reason = result.failure_reason.value if result.failure_reason else None
                if (
                    self._config.on_provisioning_failure
                    == EnumProvisioningFailurePolicy.DEGRADED
                ):
                    self._state = EnumReporterState.DEGRADED
                    logger.warning(
                        "Metrics topic unavailable (%s); running without metrics",
                        reason,
                        extra={
                            "correlation_id": str(correlation_id),
                            "topic": self._config.topic,
                        },
                    )
                    return
                self._state = EnumReporterState.STOPPED
                raise TopicProvisioningError(
                    f"Failed to provision metrics topic '{self._config.topic}': {reason}",
                    result=result,
                    context=self._context("start", correlation_id),
                )

            producer = self._producer or self._build_producer()
            publisher = MetricsPublisher.from_config(self._config, producer)
            try:
                await publisher.start()
            except Exception:
                self._state = EnumReporterState.STOPPED
                raise

            slot = SnapshotSlot(self._config.snapshot_drop_policy)
            sampler = MetricsSampler.from_config(
                self._config, self._metric_source or ProcessMetricSource()
            )
            self._publisher = publisher
            self._slot = slot
            self._sampler = sampler
            self._pump_task = asyncio.get_running_loop().create_task(
                publisher.run(slot), name="metrics-publisher"
            )
            sampler.start(slot)
            self._state = EnumReporterState.RUNNING
            logger.info(
                "Metrics reporter running",
                extra={
                    "correlation_id": str(correlation_id),
                    "topic": self._config.topic,
                    "interval_ms": self._config.sample_interval_ms,
                },
            )

    async def stop(self) -> None:
        """Stop sampling, drain in-flight sends, close the producer.

        Safe to call multiple times and from any state.
        """
        async with self._lock:
            if self._state == EnumReporterState.STOPPED:
                return
            self._state = EnumReporterState.STOPPING

            if self._sampler is not None:
                await self._sampler.stop()
            if self._slot is not None:
                self._slot.close()
            if self._publisher is not None:
                await self._publisher.close(self._config.shutdown_grace_seconds)
            if self._pump_task is not None:
                await self._finish_pump(self._pump_task)
                self._pump_task = None

            self._state = EnumReporterState.STOPPED
            logger.info("Metrics reporter stopped", extra={"topic": self._config.topic})

    async def _finish_pump(self, task: asyncio.Task[None]) -> None:
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(
                "Publisher pump ended with error: %s",
                type(e).__name__,
                extra={"topic": self._config.topic, "error": sanitize_error_message(e)},
            )

    async def health_check(self) -> dict[str, object]:
        """Health snapshot for host health endpoints.

        ``healthy`` is True only while RUNNING with a healthy publisher.
        """
        publisher_health = (
            await self._publisher.health_check() if self._publisher is not None else None
        )
        result = self._provisioning_result
        healthy = (
            self._state == EnumReporterState.RUNNING
            and publisher_health is not None
            and bool(publisher_health["healthy"])
        )
        return {
            "healthy": healthy,
            "state": self._state.value,
            "topic": self._config.topic,
            "provisioned": result.succeeded if result is not None else False,
            "provisioning_failure": (
                result.failure_reason.value
                if result is not None and result.failure_reason is not None
                else None
            ),
            "publisher": publisher_health,
            "sampler_ticks": self._sampler.ticks if self._sampler else 0,
            "sampler_skipped": self._sampler.skipped if self._sampler else 0,
            "sampler_missed": self._sampler.missed if self._sampler else 0,
            "snapshots_dropped": self._slot.dropped if self._slot else 0,
        }

    def _context(self, operation: str, correlation_id: UUID) -> ModelInfraErrorContext:
        return ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation=operation,
            target_name=self._config.topic,
            correlation_id=correlation_id,
        )

    async def __aenter__(self) -> ReporterLifecycle:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


__all__ = ["ReporterLifecycle"]
