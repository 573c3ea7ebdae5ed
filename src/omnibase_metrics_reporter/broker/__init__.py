# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Broker metadata access.

Exports:
    BrokerMetadataClient: Create, describe and inspect topics
    get_topic_description: Convenience accessor for a topic description
    ProtocolTopicMetadataQuery: One metadata query surface
    AioKafkaTopicMetadataQuery: Surface backed by aiokafka (legacy payload keys)
    KafkaPythonTopicMetadataQuery: Surface backed by kafka-python (current payload keys)
    parse_topic_metadata: Normalize describe-topics payloads
    InMemoryBrokerCluster: In-process cluster for development and testing
"""

from omnibase_metrics_reporter.broker.broker_metadata_client import (
    BrokerMetadataClient,
    get_topic_description,
)
from omnibase_metrics_reporter.broker.inmemory_broker_cluster import (
    InMemoryBrokerCluster,
    InMemoryProducer,
)
from omnibase_metrics_reporter.broker.metadata_query_aiokafka import (
    AioKafkaTopicMetadataQuery,
)
from omnibase_metrics_reporter.broker.metadata_query_kafka_python import (
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
    UNKNOWN_TOPIC_OR_PARTITION_CODE,
    parse_topic_metadata,
)

__all__: list[str] = [
    "AdminClientFactory",
    "AioKafkaTopicMetadataQuery",
    "BrokerMetadataClient",
    "InMemoryBrokerCluster",
    "InMemoryProducer",
    "KafkaPythonTopicMetadataQuery",
    "ProtocolTopicMetadataQuery",
    "UNKNOWN_TOPIC_OR_PARTITION_CODE",
    "admin_session",
    "get_topic_description",
    "parse_topic_metadata",
]
