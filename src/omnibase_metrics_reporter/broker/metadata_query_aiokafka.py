# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topic metadata via ``AIOKafkaAdminClient.describe_topics`` (legacy payload keys)."""

from __future__ import annotations

from aiokafka.errors import UnknownTopicOrPartitionError

from omnibase_metrics_reporter.broker.util_admin_session import (
    AdminClientFactory,
    admin_session,
)
from omnibase_metrics_reporter.broker.util_topic_metadata_parser import (
    parse_topic_metadata,
)
from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface
from omnibase_metrics_reporter.errors import TopicNotFoundError
from omnibase_metrics_reporter.models import ModelTopicDescription


class AioKafkaTopicMetadataQuery:
    """Describe a topic with a fresh aiokafka admin session per call."""

    def __init__(self, admin_factory: AdminClientFactory) -> None:
        self._admin_factory = admin_factory

    @property
    def surface(self) -> EnumMetadataQuerySurface:
        return EnumMetadataQuerySurface.AIOKAFKA

    async def describe_topic(self, topic: str) -> ModelTopicDescription:
        async with admin_session(
            self._admin_factory, "describe_topic", topic
        ) as admin:
            try:
                payload = await admin.describe_topics([topic])
            except UnknownTopicOrPartitionError as e:
                raise TopicNotFoundError(
                    f"Topic '{topic}' does not exist",
                    topic_name=topic,
                    cause=e,
                    surface=self.surface.value,
                ) from e
        return parse_topic_metadata(payload, topic, self.surface)


__all__ = ["AioKafkaTopicMetadataQuery"]
