# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-memory broker cluster for local development and testing.

Provides admin and producer objects with the same call shapes as the real
client libraries, backed by a single in-process topic table:

    - ``admin_factory()`` -> aiokafka-shaped admin client (legacy metadata keys)
    - ``kafka_python_admin_factory()`` -> kafka-python-shaped admin client
      (current metadata keys, synchronous)
    - ``create_producer()`` -> aiokafka-shaped producer

Failure injection knobs cover the situations the reporter has to survive:
unreachable cluster, failing describe calls on one or both surfaces, broker
rejections of a create request, metadata that lags behind a create, and
rejected or slow sends.

Usage:
    ```python
    cluster = InMemoryBrokerCluster(broker_count=3)
    client = BrokerMetadataClient(
        admin_factory=cluster.admin_factory,
        kafka_python_admin_factory=cluster.kafka_python_admin_factory,
    )
    await client.create_topic(ModelTopicSpec(name="metrics", replication_factor=3))
    cluster.topic_shape("metrics")  # (1, 3)
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from aiokafka.errors import (
    InvalidPartitionsError,
    InvalidReplicationFactorError,
    KafkaConnectionError,
    KafkaError,
    ProducerClosed,
    TopicAlreadyExistsError,
    UnknownTopicOrPartitionError,
)
from kafka.errors import KafkaConnectionError as KafkaPythonConnectionError

from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface

logger = logging.getLogger(__name__)

_NO_ERROR = 0


@dataclass
class InMemoryTopic:
    """Topic layout: one replica list per partition."""

    name: str
    replicas: list[tuple[int, ...]]
    configs: dict[str, str] = field(default_factory=dict)
    hidden_describes: int = 0


@dataclass(frozen=True)
class InMemoryRecord:
    """A record accepted by the in-memory producer."""

    topic: str
    partition: int
    offset: int
    value: bytes | None
    key: bytes | None
    headers: tuple[tuple[str, bytes], ...]


@dataclass(frozen=True)
class InMemoryRecordMetadata:
    topic: str
    partition: int
    offset: int


@dataclass(frozen=True)
class InMemoryCreateTopicsResponse:
    """CreateTopics response with aiokafka's ``topic_errors`` layout."""

    topic_errors: list[tuple[str, int, str | None]]


@dataclass
class _InjectedFailure:
    remaining: int | None
    error: Exception | None


class InMemoryBrokerCluster:
    """In-process stand-in for a Kafka cluster.

    Attributes:
        broker_ids: Ids of the brokers in the cluster.
        available: When False every admin or producer start fails with a
            connection error.
        send_delay_seconds: Delay before a send is acknowledged.
        metadata_propagation_describes: Number of describe calls after a
            create that still report the new topic as unknown.
        create_requests: Number of create-topic requests received.
        describe_requests: Describe requests received, per surface.
        sessions_opened: Admin clients started.
        sessions_closed: Admin clients closed.
    """

    def __init__(self, broker_count: int = 1) -> None:
        if broker_count < 1:
            raise ValueError("broker_count must be >= 1")
        self.broker_ids: tuple[int, ...] = tuple(range(1, broker_count + 1))
        self.available = True
        self.send_delay_seconds = 0.0
        self.metadata_propagation_describes = 0

        self.create_requests = 0
        self.describe_requests: dict[EnumMetadataQuerySurface, int] = defaultdict(int)
        self.sessions_opened = 0
        self.sessions_closed = 0

        self._topics: dict[str, InMemoryTopic] = {}
        self._records: dict[str, list[InMemoryRecord]] = defaultdict(list)
        self._describe_failures: dict[EnumMetadataQuerySurface, _InjectedFailure] = {}
        self._create_failures: list[int] = []
        self._send_error: Exception | None = None

    # -- topic table -------------------------------------------------------

    def add_topic(
        self,
        name: str,
        partitions: int = 1,
        replication_factor: int = 1,
        configs: dict[str, str] | None = None,
    ) -> None:
        """Create a topic directly, bypassing admin requests."""
        self._topics[name] = InMemoryTopic(
            name=name,
            replicas=self._assign_replicas(partitions, replication_factor),
            configs=dict(configs or {}),
        )

    def topic_names(self) -> list[str]:
        return sorted(self._topics)

    def topic_shape(self, name: str) -> tuple[int, int] | None:
        """(partition count, minimum replica count), or None when absent."""
        topic = self._topics.get(name)
        if topic is None:
            return None
        return len(topic.replicas), min((len(r) for r in topic.replicas), default=0)

    def topic_configs(self, name: str) -> dict[str, str]:
        return dict(self._topics[name].configs)

    def records(self, topic: str) -> list[InMemoryRecord]:
        return list(self._records.get(topic, ()))

    def _assign_replicas(
        self, partitions: int, replication_factor: int
    ) -> list[tuple[int, ...]]:
        brokers = self.broker_ids
        return [
            tuple(brokers[(p + r) % len(brokers)] for r in range(replication_factor))
            for p in range(partitions)
        ]

    # -- failure injection -------------------------------------------------

    def fail_describes(
        self,
        count: int | None = None,
        error: Exception | None = None,
        surface: EnumMetadataQuerySurface | None = None,
    ) -> None:
        """Make describe calls fail.

        Args:
            count: Number of calls to fail; None fails every call.
            error: Exception to raise; defaults to the surface's connection error.
            surface: Surface to affect; None affects every surface.
        """
        surfaces = (surface,) if surface is not None else tuple(EnumMetadataQuerySurface)
        for s in surfaces:
            self._describe_failures[s] = _InjectedFailure(remaining=count, error=error)

    def clear_describe_failures(self) -> None:
        self._describe_failures.clear()

    def fail_creates(self, error_code: int, count: int = 1) -> None:
        """Answer the next ``count`` create requests with ``error_code``."""
        self._create_failures.extend([error_code] * count)

    def reject_sends(self, error: Exception | None = None) -> None:
        """Fail every subsequent send with ``error``."""
        self._send_error = error or KafkaError("send rejected by in-memory cluster")

    def accept_sends(self) -> None:
        self._send_error = None

    def _take_describe_failure(
        self, surface: EnumMetadataQuerySurface
    ) -> Exception | None:
        injected = self._describe_failures.get(surface)
        if injected is None:
            return None
        if injected.remaining is not None:
            if injected.remaining <= 0:
                del self._describe_failures[surface]
                return None
            injected.remaining -= 1
        if injected.error is not None:
            return injected.error
        if surface == EnumMetadataQuerySurface.KAFKA_PYTHON:
            return KafkaPythonConnectionError("injected describe failure")
        return KafkaConnectionError("injected describe failure")

    def _ensure_available(self) -> None:
        if not self.available:
            raise KafkaConnectionError("in-memory cluster unavailable")

    # -- request handlers ----------------------------------------------------

    def _create(
        self, name: str, partitions: int, replication_factor: int, configs: dict[str, str]
    ) -> tuple[str, int, str | None]:
        self.create_requests += 1
        if self._create_failures:
            code = self._create_failures.pop(0)
            return name, code, "injected create failure"
        if name in self._topics:
            return name, TopicAlreadyExistsError.errno, f"Topic '{name}' already exists."
        if partitions < 1:
            return name, InvalidPartitionsError.errno, "Number of partitions must be >= 1"
        if replication_factor < 1 or replication_factor > len(self.broker_ids):
            return (
                name,
                InvalidReplicationFactorError.errno,
                f"Replication factor: {replication_factor} larger than available "
                f"brokers: {len(self.broker_ids)}.",
            )
        self._topics[name] = InMemoryTopic(
            name=name,
            replicas=self._assign_replicas(partitions, replication_factor),
            configs=dict(configs),
            hidden_describes=self.metadata_propagation_describes,
        )
        logger.debug("In-memory cluster created topic %s", name)
        return name, _NO_ERROR, None

    def _describe(self, name: str, surface: EnumMetadataQuerySurface) -> InMemoryTopic | None:
        self.describe_requests[surface] += 1
        failure = self._take_describe_failure(surface)
        if failure is not None:
            raise failure
        topic = self._topics.get(name)
        if topic is not None and topic.hidden_describes > 0:
            topic.hidden_describes -= 1
            return None
        return topic

    def _describe_legacy(self, name: str) -> dict[str, object]:
        topic = self._describe(name, EnumMetadataQuerySurface.AIOKAFKA)
        if topic is None:
            return {
                "error_code": UnknownTopicOrPartitionError.errno,
                "topic": name,
                "is_internal": False,
                "partitions": [],
            }
        return {
            "error_code": _NO_ERROR,
            "topic": name,
            "is_internal": name.startswith("__consumer_offsets"),
            "partitions": [
                {
                    "error_code": _NO_ERROR,
                    "partition": index,
                    "leader": replicas[0],
                    "replicas": list(replicas),
                    "isr": list(replicas),
                }
                for index, replicas in enumerate(topic.replicas)
            ],
        }

    def _describe_current(self, name: str) -> dict[str, object]:
        topic = self._describe(name, EnumMetadataQuerySurface.KAFKA_PYTHON)
        if topic is None:
            return {
                "error_code": UnknownTopicOrPartitionError.errno,
                "name": name,
                "is_internal": False,
                "partitions": [],
            }
        return {
            "error_code": _NO_ERROR,
            "name": name,
            "is_internal": name.startswith("__consumer_offsets"),
            "partitions": [
                {
                    "error_code": _NO_ERROR,
                    "partition_index": index,
                    "leader_id": replicas[0],
                    "replica_nodes": list(replicas),
                    "isr_nodes": list(replicas),
                }
                for index, replicas in enumerate(topic.replicas)
            ],
        }

    def _append(
        self,
        topic: str,
        value: bytes | None,
        key: bytes | None,
        headers: Sequence[tuple[str, bytes]] | None,
    ) -> InMemoryRecordMetadata:
        if topic not in self._topics:
            raise UnknownTopicOrPartitionError()
        records = self._records[topic]
        record = InMemoryRecord(
            topic=topic,
            partition=0,
            offset=len(records),
            value=value,
            key=key,
            headers=tuple(headers or ()),
        )
        records.append(record)
        return InMemoryRecordMetadata(topic=topic, partition=0, offset=record.offset)

    # -- client factories ----------------------------------------------------

    def admin_factory(self) -> InMemoryAdminClient:
        return InMemoryAdminClient(self)

    def kafka_python_admin_factory(self) -> InMemoryKafkaPythonAdminClient:
        return InMemoryKafkaPythonAdminClient(self)

    def create_producer(self) -> InMemoryProducer:
        return InMemoryProducer(self)


class InMemoryAdminClient:
    """aiokafka ``AIOKafkaAdminClient`` look-alike."""

    def __init__(self, cluster: InMemoryBrokerCluster) -> None:
        self._cluster = cluster
        self._started = False

    async def start(self) -> None:
        await asyncio.sleep(0)
        self._cluster._ensure_available()
        self._started = True
        self._cluster.sessions_opened += 1

    async def close(self) -> None:
        if self._started:
            self._started = False
            self._cluster.sessions_closed += 1

    def _check_started(self) -> None:
        if not self._started:
            raise KafkaConnectionError("admin client not started")

    async def create_topics(
        self,
        new_topics: Sequence[object],
        timeout_ms: int | None = None,
        validate_only: bool = False,
    ) -> InMemoryCreateTopicsResponse:
        self._check_started()
        await asyncio.sleep(0)
        errors = [
            self._cluster._create(
                name=getattr(t, "name"),
                partitions=getattr(t, "num_partitions"),
                replication_factor=getattr(t, "replication_factor"),
                configs=dict(getattr(t, "topic_configs", None) or {}),
            )
            for t in new_topics
        ]
        return InMemoryCreateTopicsResponse(topic_errors=errors)

    async def describe_topics(
        self, topics: Sequence[str] | None = None
    ) -> list[dict[str, object]]:
        self._check_started()
        await asyncio.sleep(0)
        names = list(topics) if topics is not None else self._cluster.topic_names()
        return [self._cluster._describe_legacy(name) for name in names]

    async def describe_cluster(self) -> dict[str, object]:
        self._check_started()
        return {
            "cluster_id": "in-memory",
            "controller_id": self._cluster.broker_ids[0],
            "brokers": [
                {"node_id": node_id, "host": "localhost", "port": 9092 + node_id, "rack": None}
                for node_id in self._cluster.broker_ids
            ],
        }

    async def list_topics(self) -> list[str]:
        self._check_started()
        return self._cluster.topic_names()


class InMemoryKafkaPythonAdminClient:
    """kafka-python ``KafkaAdminClient`` look-alike (synchronous)."""

    def __init__(self, cluster: InMemoryBrokerCluster) -> None:
        if not cluster.available:
            raise KafkaPythonConnectionError("in-memory cluster unavailable")
        self._cluster = cluster
        self.closed = False

    def describe_topics(self, topics: Sequence[str] | None = None) -> list[dict[str, object]]:
        names = list(topics) if topics is not None else self._cluster.topic_names()
        return [self._cluster._describe_current(name) for name in names]

    def close(self) -> None:
        self.closed = True


class InMemoryProducer:
    """aiokafka ``AIOKafkaProducer`` look-alike.

    ``send()`` enqueues the record and returns a future that resolves to
    record metadata once the (optionally delayed) acknowledgement arrives.
    ``stop()`` fails every unacknowledged future.
    """

    def __init__(self, cluster: InMemoryBrokerCluster) -> None:
        self._cluster = cluster
        self._started = False
        self._closed = False
        self._pending: set[asyncio.Future[InMemoryRecordMetadata]] = set()
        self._deliveries: set[asyncio.Task[None]] = set()

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        await asyncio.sleep(0)
        self._cluster._ensure_available()
        self._started = True

    async def stop(self) -> None:
        self._closed = True
        self._started = False
        for task in list(self._deliveries):
            task.cancel()
        for fut in list(self._pending):
            if not fut.done():
                fut.set_exception(KafkaConnectionError("producer closed"))
        self._pending.clear()

    async def flush(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def send(
        self,
        topic: str,
        value: bytes | None = None,
        key: bytes | None = None,
        partition: int | None = None,
        timestamp_ms: int | None = None,
        headers: Sequence[tuple[str, bytes]] | None = None,
    ) -> asyncio.Future[InMemoryRecordMetadata]:
        if self._closed or not self._started:
            raise ProducerClosed()
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[InMemoryRecordMetadata] = loop.create_future()
        self._pending.add(fut)
        fut.add_done_callback(self._pending.discard)
        task = loop.create_task(self._deliver(fut, topic, value, key, headers))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)
        return fut

    async def send_and_wait(
        self,
        topic: str,
        value: bytes | None = None,
        key: bytes | None = None,
        partition: int | None = None,
        timestamp_ms: int | None = None,
        headers: Sequence[tuple[str, bytes]] | None = None,
    ) -> InMemoryRecordMetadata:
        fut = await self.send(topic, value=value, key=key, headers=headers)
        return await fut

    async def _deliver(
        self,
        fut: asyncio.Future[InMemoryRecordMetadata],
        topic: str,
        value: bytes | None,
        key: bytes | None,
        headers: Sequence[tuple[str, bytes]] | None,
    ) -> None:
        await asyncio.sleep(self._cluster.send_delay_seconds)
        if fut.done():
            return
        if self._cluster._send_error is not None:
            fut.set_exception(self._cluster._send_error)
            return
        try:
            metadata = self._cluster._append(topic, value, key, headers)
        except KafkaError as e:
            fut.set_exception(e)
        else:
            fut.set_result(metadata)


__all__ = [
    "InMemoryAdminClient",
    "InMemoryBrokerCluster",
    "InMemoryCreateTopicsResponse",
    "InMemoryKafkaPythonAdminClient",
    "InMemoryProducer",
    "InMemoryRecord",
    "InMemoryRecordMetadata",
    "InMemoryTopic",
]
