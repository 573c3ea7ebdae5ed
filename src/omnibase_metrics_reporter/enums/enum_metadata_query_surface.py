# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metadata query surfaces supported by the broker metadata client."""

from __future__ import annotations

from enum import Enum


class EnumMetadataQuerySurface(str, Enum):
    """Client libraries used to describe topics.

    Attributes:
        AIOKAFKA: aiokafka.admin.AIOKafkaAdminClient.describe_topics. Returns
            the legacy metadata field names (topic, partition, replicas).
        KAFKA_PYTHON: kafka.admin.KafkaAdminClient.describe_topics. Negotiates
            the broker API version on its own and returns the current field
            names (name, partition_index, replica_nodes) on 3.x.
    """

    AIOKAFKA = "aiokafka"
    KAFKA_PYTHON = "kafka_python"


__all__ = ["EnumMetadataQuerySurface"]
