# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Broker metadata client: create, describe and inspect topics.

The client hides which metadata query surface answered a describe request.
Surfaces are queried in the configured order on every call; a definitive
"topic does not exist" from any surface ends the lookup immediately, while
any other failure falls through to the next surface.

Each call opens and closes its own admin connection, so a client instance
carries no broker state and can be shared freely.

Usage:
    ```python
    client = BrokerMetadataClient.from_config(ModelMetricsReporterConfig.default())
    outcome = await client.create_topic(ModelTopicSpec(name="metrics"))
    description = await client.describe_topic("metrics")
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from aiokafka.admin import AIOKafkaAdminClient, NewTopic
from aiokafka.errors import (
    KafkaConnectionError,
    KafkaError,
    KafkaTimeoutError,
    TopicAlreadyExistsError,
    for_code,
)
from kafka.admin import KafkaAdminClient

from omnibase_metrics_reporter.broker.metadata_query_aiokafka import (
    AioKafkaTopicMetadataQuery,
)
from omnibase_metrics_reporter.broker.metadata_query_kafka_python import (
    KafkaPythonAdminFactory,
    KafkaPythonTopicMetadataQuery,
)
from omnibase_metrics_reporter.broker.protocol_topic_metadata_query import (
    ProtocolTopicMetadataQuery,
)
from omnibase_metrics_reporter.broker.util_admin_session import (
    AdminClientFactory,
    admin_session,
)
from omnibase_metrics_reporter.broker.util_topic_metadata_parser import (
    NO_ERROR_CODE,
)
from omnibase_metrics_reporter.enums import (
    EnumCreateTopicOutcome,
    EnumInfraTransportType,
    EnumMetadataQuerySurface,
)
from omnibase_metrics_reporter.errors import (
    ModelInfraErrorContext,
    TopicCreationError,
    TopicDescriptionError,
    TopicNotFoundError,
)
from omnibase_metrics_reporter.models import (
    DEFAULT_BOOTSTRAP_SERVERS,
    ModelMetricsReporterConfig,
    ModelTopicDescription,
    ModelTopicSpec,
)
from omnibase_metrics_reporter.utils import sanitize_error_message

logger = logging.getLogger(__name__)

TOPIC_ALREADY_EXISTS_CODE = TopicAlreadyExistsError.errno


class BrokerMetadataClient:
    """Create and describe topics against a live cluster.

    Thread Safety:
        Coroutine-safe. No state is shared between calls.
    """

    def __init__(
        self,
        bootstrap_servers: str = DEFAULT_BOOTSTRAP_SERVERS,
        client_id: str = "metrics-reporter",
        request_timeout_ms: int = 30000,
        surfaces: Sequence[EnumMetadataQuerySurface] = (
            EnumMetadataQuerySurface.AIOKAFKA,
            EnumMetadataQuerySurface.KAFKA_PYTHON,
        ),
        admin_factory: AdminClientFactory | None = None,
        kafka_python_admin_factory: KafkaPythonAdminFactory | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            bootstrap_servers: Kafka broker addresses.
            client_id: Client id for admin connections.
            request_timeout_ms: Timeout for a single admin request.
            surfaces: Metadata query surfaces, in query order.
            admin_factory: Builds an unstarted aiokafka admin client. Defaults
                to AIOKafkaAdminClient with the settings above.
            kafka_python_admin_factory: Builds a kafka-python admin client.
                Defaults to kafka.admin.KafkaAdminClient with the settings above.
        """
        self._bootstrap_servers = bootstrap_servers
        self._client_id = client_id
        self._request_timeout_ms = request_timeout_ms
        self._admin_factory = admin_factory or self._default_admin_factory
        self._kafka_python_admin_factory = (
            kafka_python_admin_factory or self._default_kafka_python_admin_factory
        )
        self._queries: tuple[ProtocolTopicMetadataQuery, ...] = tuple(
            self._build_query(surface) for surface in dict.fromkeys(surfaces)
        )

    @classmethod
    def from_config(
        cls,
        config: ModelMetricsReporterConfig,
        admin_factory: AdminClientFactory | None = None,
        kafka_python_admin_factory: KafkaPythonAdminFactory | None = None,
    ) -> BrokerMetadataClient:
        return cls(
            bootstrap_servers=config.bootstrap_servers,
            client_id=config.client_id,
            request_timeout_ms=config.request_timeout_ms,
            surfaces=config.metadata_query_surfaces,
            admin_factory=admin_factory,
            kafka_python_admin_factory=kafka_python_admin_factory,
        )

    @property
    def surfaces(self) -> tuple[EnumMetadataQuerySurface, ...]:
        return tuple(q.surface for q in self._queries)

    def _default_admin_factory(self) -> AIOKafkaAdminClient:
        return AIOKafkaAdminClient(
            bootstrap_servers=self._bootstrap_servers,
            client_id=self._client_id,
            request_timeout_ms=self._request_timeout_ms,
        )

    def _default_kafka_python_admin_factory(self) -> KafkaAdminClient:
        return KafkaAdminClient(
            bootstrap_servers=self._bootstrap_servers,
            client_id=self._client_id,
            request_timeout_ms=self._request_timeout_ms,
        )

    def _build_query(
        self, surface: EnumMetadataQuerySurface
    ) -> ProtocolTopicMetadataQuery:
        if surface == EnumMetadataQuerySurface.AIOKAFKA:
            return AioKafkaTopicMetadataQuery(self._admin_factory)
        return KafkaPythonTopicMetadataQuery(self._kafka_python_admin_factory)

    async def create_topic(
        self,
        spec: ModelTopicSpec,
        correlation_id: UUID | None = None,
    ) -> EnumCreateTopicOutcome:
        """Ask the cluster to create a topic.

        Returns:
            CREATED, or ALREADY_EXISTS when the topic was there first
            (including when a concurrent creator won the race).

        Raises:
            TopicCreationError: The broker rejected the request.
            InfraConnectionError: The cluster could not be reached.
            InfraTimeoutError: The request timed out client-side.
        """
        context = ModelInfraErrorContext.with_correlation(
            correlation_id=correlation_id,
            transport_type=EnumInfraTransportType.KAFKA,
            operation="create_topic",
            target_name=spec.name,
        )
        new_topic = NewTopic(
            name=spec.name,
            num_partitions=spec.partitions,
            replication_factor=spec.replication_factor,
            topic_configs=spec.topic_configs(),
        )

        async with admin_session(
            self._admin_factory, "create_topic", spec.name, context.correlation_id
        ) as admin:
            try:
                response = await admin.create_topics(
                    [new_topic], timeout_ms=self._request_timeout_ms
                )
            except TopicAlreadyExistsError:
                outcome = EnumCreateTopicOutcome.ALREADY_EXISTS
            except (KafkaConnectionError, KafkaTimeoutError):
                raise
            except KafkaError as e:
                raise TopicCreationError(
                    f"Cluster rejected creation of topic '{spec.name}': "
                    f"{type(e).__name__}",
                    topic_name=spec.name,
                    retriable=bool(getattr(e, "retriable", False)),
                    broker_error=type(e).__name__,
                    context=context,
                ) from e
            else:
                outcome = self._create_outcome(response, spec.name, context)

        logger.debug(
            "create_topic %s -> %s",
            spec.name,
            outcome.value,
            extra={"correlation_id": str(context.correlation_id), "topic": spec.name},
        )
        return outcome

    def _create_outcome(
        self,
        response: object,
        topic: str,
        context: ModelInfraErrorContext,
    ) -> EnumCreateTopicOutcome:
        """Read the per-topic error code out of a CreateTopics response."""
        for topic_error in getattr(response, "topic_errors", None) or ():
            name, code = topic_error[0], int(topic_error[1])
            if name != topic or code == NO_ERROR_CODE:
                continue
            if code == TOPIC_ALREADY_EXISTS_CODE:
                return EnumCreateTopicOutcome.ALREADY_EXISTS
            error_cls = for_code(code)
            message = topic_error[2] if len(topic_error) > 2 else None
            raise TopicCreationError(
                f"Cluster rejected creation of topic '{topic}': {error_cls.__name__}",
                topic_name=topic,
                retriable=bool(getattr(error_cls, "retriable", False)),
                broker_error=error_cls.__name__,
                context=context,
                broker_error_code=code,
                broker_message=message,
            )
        return EnumCreateTopicOutcome.CREATED

    async def describe_topic(
        self,
        topic: str,
        correlation_id: UUID | None = None,
    ) -> ModelTopicDescription:
        """Describe a topic using the first metadata surface that answers.

        Raises:
            TopicNotFoundError: A surface reported that the topic does not exist.
            TopicDescriptionError: Every surface failed; ``cause`` holds the
                last failure.
        """
        context = ModelInfraErrorContext.with_correlation(
            correlation_id=correlation_id,
            transport_type=EnumInfraTransportType.KAFKA,
            operation="describe_topic",
            target_name=topic,
        )
        last_error: Exception | None = None

        for query in self._queries:
            try:
                description = await query.describe_topic(topic)
            except TopicNotFoundError:
                raise
            except Exception as e:
                last_error = e
                logger.debug(
                    "Metadata surface %s failed for topic %s: %s",
                    query.surface.value,
                    topic,
                    type(e).__name__,
                    extra={
                        "correlation_id": str(context.correlation_id),
                        "error": sanitize_error_message(e),
                    },
                )
                continue
            return description

        raise TopicDescriptionError(
            f"All metadata query surfaces failed to describe topic '{topic}'",
            topic_name=topic,
            cause=last_error,
            retriable=bool(getattr(last_error, "retriable", True)),
            context=context,
            surfaces=[s.value for s in self.surfaces],
        ) from last_error

    async def list_topics(self, correlation_id: UUID | None = None) -> list[str]:
        async with admin_session(
            self._admin_factory, "list_topics", "cluster", correlation_id
        ) as admin:
            topics = await admin.list_topics()
        return sorted(topics)

    async def broker_count(self, correlation_id: UUID | None = None) -> int:
        """Number of brokers currently registered in the cluster."""
        async with admin_session(
            self._admin_factory, "describe_cluster", "cluster", correlation_id
        ) as admin:
            cluster = await admin.describe_cluster()
        return len(cluster.get("brokers") or ())


async def get_topic_description(
    client: BrokerMetadataClient,
    topic: str,
) -> ModelTopicDescription:
    """Describe ``topic`` through ``client``.

    Raises:
        TopicDescriptionError: The topic could not be described (TopicNotFoundError
            when it does not exist).
    """
    return await client.describe_topic(topic)


__all__ = ["BrokerMetadataClient", "get_topic_description"]
