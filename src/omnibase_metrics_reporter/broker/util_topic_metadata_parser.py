# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Normalize describe-topics payloads into ModelTopicDescription.

Two payload generations are in circulation:

    legacy  (aiokafka MetadataResponse objects)
        {"error_code", "topic", "is_internal",
         "partitions": [{"error_code", "partition", "leader", "replicas", "isr"}]}

    current (kafka-python 3.x DescribeTopics / Metadata v10+)
        {"error_code", "name", "is_internal",
         "partitions": [{"error_code", "partition_index", "leader_id",
                         "replica_nodes", "isr_nodes"}]}

Both are accepted; the first key present wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Final

from aiokafka.errors import for_code

from omnibase_metrics_reporter.enums import (
    EnumInfraTransportType,
    EnumMetadataQuerySurface,
)
from omnibase_metrics_reporter.errors import (
    ModelInfraErrorContext,
    TopicDescriptionError,
    TopicNotFoundError,
)
from omnibase_metrics_reporter.models import (
    ModelPartitionDescription,
    ModelTopicDescription,
)

NO_ERROR_CODE: Final[int] = 0
UNKNOWN_TOPIC_OR_PARTITION_CODE: Final[int] = 3

_TOPIC_NAME_KEYS: Final[tuple[str, ...]] = ("name", "topic")
_PARTITION_INDEX_KEYS: Final[tuple[str, ...]] = ("partition_index", "partition")
_LEADER_KEYS: Final[tuple[str, ...]] = ("leader_id", "leader")
_REPLICA_KEYS: Final[tuple[str, ...]] = ("replica_nodes", "replicas")
_ISR_KEYS: Final[tuple[str, ...]] = ("isr_nodes", "isr")


def _first(entry: Mapping[str, object], keys: Sequence[str]) -> object | None:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def _node_ids(value: object | None) -> tuple[int, ...]:
    if value is None:
        return ()
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return tuple(int(node) for node in value)
    return ()


def _as_int(value: object | None, default: int) -> int:
    if value is None:
        return default
    return int(value)  # type: ignore[call-overload]


def _parse_partition(entry: Mapping[str, object]) -> ModelPartitionDescription:
    return ModelPartitionDescription(
        partition=_as_int(_first(entry, _PARTITION_INDEX_KEYS), 0),
        leader=_as_int(_first(entry, _LEADER_KEYS), -1),
        replicas=_node_ids(_first(entry, _REPLICA_KEYS)),
        isr=_node_ids(_first(entry, _ISR_KEYS)),
    )


def parse_topic_metadata(
    payload: Iterable[Mapping[str, object]],
    topic: str,
    surface: EnumMetadataQuerySurface,
) -> ModelTopicDescription:
    """Pick ``topic`` out of a describe-topics payload.

    Args:
        payload: Topic entries as returned by the client library.
        topic: Topic that was asked for.
        surface: Surface that produced the payload.

    Returns:
        The topic's description, partitions sorted by index.

    Raises:
        TopicNotFoundError: The topic is absent from the payload or flagged
            with UNKNOWN_TOPIC_OR_PARTITION.
        TopicDescriptionError: The topic carries any other error code.
    """
    context = ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.KAFKA,
        operation="describe_topic",
        target_name=topic,
    )

    entry = next(
        (e for e in payload if _first(e, _TOPIC_NAME_KEYS) == topic),
        None,
    )
    if entry is None:
        raise TopicNotFoundError(
            f"Topic '{topic}' not present in metadata response",
            topic_name=topic,
            context=context,
            surface=surface.value,
        )

    error_code = _as_int(entry.get("error_code"), NO_ERROR_CODE)
    if error_code == UNKNOWN_TOPIC_OR_PARTITION_CODE:
        raise TopicNotFoundError(
            f"Topic '{topic}' does not exist",
            topic_name=topic,
            context=context,
            surface=surface.value,
        )
    if error_code != NO_ERROR_CODE:
        error_cls = for_code(error_code)
        raise TopicDescriptionError(
            f"Describing topic '{topic}' failed with {error_cls.__name__}",
            topic_name=topic,
            retriable=bool(getattr(error_cls, "retriable", True)),
            context=context,
            surface=surface.value,
            broker_error_code=error_code,
        )

    raw_partitions = entry.get("partitions") or ()
    partitions = sorted(
        (_parse_partition(p) for p in raw_partitions),  # type: ignore[union-attr]
        key=lambda p: p.partition,
    )
    return ModelTopicDescription(
        name=topic,
        partitions=tuple(partitions),
        internal=bool(entry.get("is_internal", False)),
        surface=surface,
    )


__all__ = [
    "NO_ERROR_CODE",
    "UNKNOWN_TOPIC_OR_PARTITION_CODE",
    "parse_topic_metadata",
]
