# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for the in-memory cluster and the admin session helper."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiokafka.admin import NewTopic
from aiokafka.errors import (
    KafkaConnectionError,
    ProducerClosed,
    TopicAlreadyExistsError,
    UnknownTopicOrPartitionError,
)

from omnibase_metrics_reporter.broker import InMemoryBrokerCluster, admin_session
from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface
from omnibase_metrics_reporter.errors import InfraConnectionError, InfraTimeoutError

pytestmark = [pytest.mark.asyncio, pytest.mark.unit]


class TestInMemoryBrokerCluster:
    def test_rejects_empty_cluster(self) -> None:
        with pytest.raises(ValueError):
            InMemoryBrokerCluster(broker_count=0)

    def test_replicas_assigned_round_robin(self) -> None:
        cluster = InMemoryBrokerCluster(broker_count=3)
        cluster.add_topic("metrics", partitions=3, replication_factor=2)

        assert cluster.topic_shape("metrics") == (3, 2)
        assert cluster.topic_shape("missing") is None

    async def test_create_topics_response_codes(self) -> None:
        cluster = InMemoryBrokerCluster(broker_count=1)
        admin = cluster.admin_factory()
        await admin.start()

        ok = await admin.create_topics([NewTopic("metrics", 1, 1)])
        dup = await admin.create_topics([NewTopic("metrics", 1, 1)])
        too_many = await admin.create_topics([NewTopic("other", 1, 2)])
        await admin.close()

        assert ok.topic_errors[0][1] == 0
        assert dup.topic_errors[0][1] == TopicAlreadyExistsError.errno
        assert too_many.topic_errors[0][1] == 38
        assert cluster.create_requests == 3
        assert cluster.topic_names() == ["metrics"]

    async def test_describe_payload_generations(self) -> None:
        cluster = InMemoryBrokerCluster(broker_count=2)
        cluster.add_topic("metrics", partitions=1, replication_factor=2)
        admin = cluster.admin_factory()
        await admin.start()

        legacy = await admin.describe_topics(["metrics"])
        current = cluster.kafka_python_admin_factory().describe_topics(["metrics"])

        assert legacy[0]["topic"] == "metrics"
        assert legacy[0]["partitions"][0]["replicas"] == [1, 2]
        assert current[0]["name"] == "metrics"
        assert current[0]["partitions"][0]["replica_nodes"] == [1, 2]
        assert cluster.describe_requests[EnumMetadataQuerySurface.AIOKAFKA] == 1
        assert cluster.describe_requests[EnumMetadataQuerySurface.KAFKA_PYTHON] == 1

    async def test_unavailable_cluster_refuses_admin(self) -> None:
        cluster = InMemoryBrokerCluster()
        cluster.available = False

        with pytest.raises(KafkaConnectionError):
            await cluster.admin_factory().start()

    async def test_producer_roundtrip(self) -> None:
        cluster = InMemoryBrokerCluster()
        cluster.add_topic("metrics")
        producer = cluster.create_producer()

        with pytest.raises(ProducerClosed):
            await producer.send("metrics", value=b"x")

        await producer.start()
        metadata = await producer.send_and_wait(
            "metrics", value=b"payload", headers=[("k", b"v")]
        )
        await producer.stop()

        assert metadata.offset == 0
        records = cluster.records("metrics")
        assert [r.value for r in records] == [b"payload"]
        assert records[0].headers == (("k", b"v"),)
        assert producer.closed is True

    async def test_send_to_unknown_topic_fails(self) -> None:
        cluster = InMemoryBrokerCluster()
        producer = cluster.create_producer()
        await producer.start()

        with pytest.raises(UnknownTopicOrPartitionError):
            await producer.send_and_wait("missing", value=b"x")
        await producer.stop()

    async def test_stop_fails_pending_sends(self) -> None:
        cluster = InMemoryBrokerCluster()
        cluster.add_topic("metrics")
        cluster.send_delay_seconds = 10.0
        producer = cluster.create_producer()
        await producer.start()

        future = await producer.send("metrics", value=b"x")
        await producer.stop()

        with pytest.raises(KafkaConnectionError):
            await future
        assert cluster.records("metrics") == []


class TestAdminSession:
    """admin_session always closes the client and maps transport errors."""

    @staticmethod
    def _admin(start_error: BaseException | None = None) -> MagicMock:
        admin = MagicMock()
        admin.start = AsyncMock(side_effect=start_error)
        admin.close = AsyncMock()
        return admin

    async def test_yields_started_admin(self) -> None:
        admin = self._admin()

        async with admin_session(lambda: admin, "op", "target") as session:
            assert session is admin
            admin.start.assert_awaited_once()

        admin.close.assert_awaited_once()

    async def test_connection_error_on_start(self) -> None:
        admin = self._admin(start_error=KafkaConnectionError("refused"))

        with pytest.raises(InfraConnectionError) as exc_info:
            async with admin_session(lambda: admin, "describe_topic", "metrics"):
                pass

        assert exc_info.value.model.context["operation"] == "describe_topic"
        admin.close.assert_awaited_once()

    async def test_timeout_in_body(self) -> None:
        admin = self._admin()

        with pytest.raises(InfraTimeoutError):
            async with admin_session(lambda: admin, "create_topic", "metrics"):
                raise TimeoutError

        admin.close.assert_awaited_once()

    async def test_other_errors_pass_through(self) -> None:
        admin = self._admin()

        with pytest.raises(KeyError):
            async with admin_session(lambda: admin, "create_topic", "metrics"):
                raise KeyError("boom")

        admin.close.assert_awaited_once()

    async def test_close_errors_are_swallowed(self) -> None:
        admin = self._admin()
        admin.close = AsyncMock(side_effect=RuntimeError("close failed"))

        async with admin_session(lambda: admin, "list_topics", "cluster"):
            pass

        admin.close.assert_awaited_once()
