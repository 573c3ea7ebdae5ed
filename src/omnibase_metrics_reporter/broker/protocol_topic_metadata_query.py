# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol for a single topic metadata query surface.

Different client libraries (and different broker API generations) expose
topic metadata with different call shapes and payload field names. Each
surface hides one of them behind ``describe_topic``; BrokerMetadataClient
queries the configured surfaces in order.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface
from omnibase_metrics_reporter.models import ModelTopicDescription


@runtime_checkable
class ProtocolTopicMetadataQuery(Protocol):
    """One way of asking the cluster for a topic's partition layout.

    Implementations must:
        - raise TopicNotFoundError when the cluster definitively reports
          the topic as unknown
        - let any other failure propagate; the caller decides whether to
          fall back to another surface
        - hold no state between calls
    """

    @property
    def surface(self) -> EnumMetadataQuerySurface:
        """Identifier recorded on descriptions produced by this surface."""
        ...

    async def describe_topic(self, topic: str) -> ModelTopicDescription:
        """Describe ``topic`` from a fresh metadata request."""
        ...


__all__ = ["ProtocolTopicMetadataQuery"]
