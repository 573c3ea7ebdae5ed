# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topic metadata via kafka-python's synchronous ``KafkaAdminClient``.

kafka-python 3.x reports topic metadata with the current field names
(``name``, ``partition_index``, ``leader_id``, ``replica_nodes``). The
client is blocking, so each call runs in a worker thread.

Note:
    A worker thread cannot be cancelled. When the caller's deadline fires
    first, the thread keeps running until the client's own
    request_timeout_ms elapses and then closes its connection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

from kafka.errors import UnknownTopicOrPartitionError

from omnibase_metrics_reporter.broker.util_topic_metadata_parser import (
    parse_topic_metadata,
)
from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface
from omnibase_metrics_reporter.errors import TopicNotFoundError
from omnibase_metrics_reporter.models import ModelTopicDescription

# Zero-arg callable returning a kafka.admin.KafkaAdminClient-compatible object.
KafkaPythonAdminFactory = Callable[[], Any]


class KafkaPythonTopicMetadataQuery:
    """Describe a topic with a fresh kafka-python admin client per call."""

    def __init__(self, client_factory: KafkaPythonAdminFactory) -> None:
        self._client_factory = client_factory

    @property
    def surface(self) -> EnumMetadataQuerySurface:
        return EnumMetadataQuerySurface.KAFKA_PYTHON

    async def describe_topic(self, topic: str) -> ModelTopicDescription:
        try:
            payload = await asyncio.to_thread(self._describe_blocking, topic)
        except UnknownTopicOrPartitionError as e:
            raise TopicNotFoundError(
                f"Topic '{topic}' does not exist",
                topic_name=topic,
                cause=e,
                surface=self.surface.value,
            ) from e
        return parse_topic_metadata(payload, topic, self.surface)

    def _describe_blocking(self, topic: str) -> list[Mapping[str, object]]:
        client = self._client_factory()
        try:
            return list(client.describe_topics([topic]))
        finally:
            client.close()


__all__ = ["KafkaPythonAdminFactory", "KafkaPythonTopicMetadataQuery"]
