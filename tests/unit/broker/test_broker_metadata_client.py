# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for BrokerMetadataClient.

Covers create outcomes, surface fallback when describing a topic, the
not-found short-circuit, and admin session handling.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiokafka.errors import (
    KafkaTimeoutError,
    NotControllerError,
    PolicyViolationError,
    TopicAlreadyExistsError,
)

from omnibase_metrics_reporter.broker import (
    BrokerMetadataClient,
    InMemoryBrokerCluster,
    ProtocolTopicMetadataQuery,
    get_topic_description,
)
from omnibase_metrics_reporter.enums import (
    EnumCreateTopicOutcome,
    EnumMetadataQuerySurface,
)
from omnibase_metrics_reporter.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    TopicCreationError,
    TopicDescriptionError,
    TopicNotFoundError,
)
from omnibase_metrics_reporter.models import ModelMetricsReporterConfig, ModelTopicSpec

pytestmark = [pytest.mark.asyncio, pytest.mark.unit]


def _mock_admin(**methods: object) -> MagicMock:
    admin = MagicMock()
    admin.start = AsyncMock()
    admin.close = AsyncMock()
    for name, side_effect in methods.items():
        setattr(admin, name, AsyncMock(side_effect=side_effect))
    return admin


class TestBrokerMetadataClientInit:
    def test_from_config(self) -> None:
        config = ModelMetricsReporterConfig(
            bootstrap_servers="kafka:9092",
            metadata_query_surfaces=(EnumMetadataQuerySurface.KAFKA_PYTHON,),
        )
        client = BrokerMetadataClient.from_config(config)
        assert client.surfaces == (EnumMetadataQuerySurface.KAFKA_PYTHON,)

    def test_duplicate_surfaces_are_collapsed(self) -> None:
        client = BrokerMetadataClient(
            surfaces=(
                EnumMetadataQuerySurface.KAFKA_PYTHON,
                EnumMetadataQuerySurface.AIOKAFKA,
                EnumMetadataQuerySurface.KAFKA_PYTHON,
            )
        )
        assert client.surfaces == (
            EnumMetadataQuerySurface.KAFKA_PYTHON,
            EnumMetadataQuerySurface.AIOKAFKA,
        )

    def test_queries_conform_to_protocol(
        self, metadata_client: BrokerMetadataClient
    ) -> None:
        for query in metadata_client._queries:
            assert isinstance(query, ProtocolTopicMetadataQuery)


class TestCreateTopic:
    """create_topic outcomes."""

    async def test_created_then_already_exists(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        spec = ModelTopicSpec(name="metrics", kafka_config={"cleanup.policy": "delete"})

        assert await metadata_client.create_topic(spec) == EnumCreateTopicOutcome.CREATED
        assert (
            await metadata_client.create_topic(spec)
            == EnumCreateTopicOutcome.ALREADY_EXISTS
        )
        assert cluster.topic_configs("metrics") == {"cleanup.policy": "delete"}
        assert cluster.sessions_opened == cluster.sessions_closed == 2

    async def test_raised_already_exists_is_an_outcome(self) -> None:
        admin = _mock_admin(create_topics=TopicAlreadyExistsError())
        client = BrokerMetadataClient(admin_factory=lambda: admin)

        outcome = await client.create_topic(ModelTopicSpec(name="metrics"))

        assert outcome == EnumCreateTopicOutcome.ALREADY_EXISTS
        admin.close.assert_awaited_once()

    async def test_rejection_from_response(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.fail_creates(PolicyViolationError.errno)

        with pytest.raises(TopicCreationError) as exc_info:
            await metadata_client.create_topic(ModelTopicSpec(name="metrics"))

        assert exc_info.value.broker_error == "PolicyViolationError"
        assert exc_info.value.retriable is False
        assert exc_info.value.topic_name == "metrics"

    async def test_retriable_rejection_from_response(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.fail_creates(NotControllerError.errno)

        with pytest.raises(TopicCreationError) as exc_info:
            await metadata_client.create_topic(ModelTopicSpec(name="metrics"))

        assert exc_info.value.retriable is True

    async def test_invalid_replication_factor(
        self, metadata_client: BrokerMetadataClient
    ) -> None:
        with pytest.raises(TopicCreationError) as exc_info:
            await metadata_client.create_topic(
                ModelTopicSpec(name="metrics", replication_factor=2)
            )
        assert exc_info.value.broker_error == "InvalidReplicationFactorError"

    async def test_raised_broker_error(self) -> None:
        admin = _mock_admin(create_topics=PolicyViolationError())
        client = BrokerMetadataClient(admin_factory=lambda: admin)

        with pytest.raises(TopicCreationError) as exc_info:
            await client.create_topic(ModelTopicSpec(name="metrics"))

        assert exc_info.value.broker_error == "PolicyViolationError"
        admin.close.assert_awaited_once()

    async def test_unreachable_cluster(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.available = False

        with pytest.raises(InfraConnectionError):
            await metadata_client.create_topic(ModelTopicSpec(name="metrics"))

        assert cluster.create_requests == 0

    async def test_client_side_timeout(self) -> None:
        admin = _mock_admin(create_topics=KafkaTimeoutError())
        client = BrokerMetadataClient(admin_factory=lambda: admin)

        with pytest.raises(InfraTimeoutError):
            await client.create_topic(ModelTopicSpec(name="metrics"))

        admin.close.assert_awaited_once()


class TestDescribeTopic:
    """Surface probing."""

    async def test_primary_surface_answers(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("metrics", partitions=3)

        description = await metadata_client.describe_topic("metrics")

        assert description.surface == EnumMetadataQuerySurface.AIOKAFKA
        assert description.partition_count == 3
        assert cluster.describe_requests[EnumMetadataQuerySurface.KAFKA_PYTHON] == 0

    async def test_falls_back_to_next_surface(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("metrics", partitions=2)
        cluster.fail_describes(count=1, surface=EnumMetadataQuerySurface.AIOKAFKA)

        description = await metadata_client.describe_topic("metrics")

        assert description.surface == EnumMetadataQuerySurface.KAFKA_PYTHON
        assert description.partition_count == 2

        again = await metadata_client.describe_topic("metrics")
        assert again.surface == EnumMetadataQuerySurface.AIOKAFKA

    async def test_not_found_short_circuits(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        """A definitive not-found answer is not second-guessed by other surfaces."""
        with pytest.raises(TopicNotFoundError):
            await metadata_client.describe_topic("missing")

        assert cluster.describe_requests[EnumMetadataQuerySurface.AIOKAFKA] == 1
        assert cluster.describe_requests[EnumMetadataQuerySurface.KAFKA_PYTHON] == 0

    async def test_all_surfaces_fail(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("metrics")
        cluster.fail_describes()

        with pytest.raises(TopicDescriptionError) as exc_info:
            await metadata_client.describe_topic("metrics")

        error = exc_info.value
        assert not isinstance(error, TopicNotFoundError)
        assert error.retriable is True
        assert error.cause is not None
        assert error.topic_name == "metrics"

    async def test_single_surface_configuration(
        self, cluster: InMemoryBrokerCluster
    ) -> None:
        cluster.add_topic("metrics")
        client = BrokerMetadataClient(
            surfaces=(EnumMetadataQuerySurface.KAFKA_PYTHON,),
            kafka_python_admin_factory=cluster.kafka_python_admin_factory,
        )

        description = await client.describe_topic("metrics")

        assert description.surface == EnumMetadataQuerySurface.KAFKA_PYTHON
        assert cluster.describe_requests[EnumMetadataQuerySurface.AIOKAFKA] == 0

    async def test_sessions_are_closed(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("metrics")
        await metadata_client.describe_topic("metrics")
        with pytest.raises(TopicNotFoundError):
            await metadata_client.describe_topic("missing")

        assert cluster.sessions_opened == 2
        assert cluster.sessions_closed == 2

    async def test_get_topic_description(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("metrics", partitions=2)

        description = await get_topic_description(metadata_client, "metrics")

        assert description.name == "metrics"
        assert description.partition_count == 2


class TestClusterQueries:
    async def test_list_topics_sorted(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.add_topic("zeta")
        cluster.add_topic("alpha")

        assert await metadata_client.list_topics() == ["alpha", "zeta"]

    async def test_broker_count(self) -> None:
        cluster = InMemoryBrokerCluster(broker_count=3)
        client = BrokerMetadataClient(admin_factory=cluster.admin_factory)

        assert await client.broker_count() == 3

    async def test_broker_count_unreachable(
        self, cluster: InMemoryBrokerCluster, metadata_client: BrokerMetadataClient
    ) -> None:
        cluster.available = False

        with pytest.raises(InfraConnectionError):
            await metadata_client.broker_count()
