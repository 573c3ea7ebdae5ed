# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Read-only snapshot of a topic's partition and replica layout.

A description is fetched per call and never cached: partitions can be added
and replicas reassigned between two reads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from omnibase_metrics_reporter.enums import EnumMetadataQuerySurface

if TYPE_CHECKING:
    from omnibase_metrics_reporter.models.model_topic_spec import ModelTopicSpec


class ModelPartitionDescription(BaseModel):
    """Layout of a single partition."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    partition: int = Field(..., ge=0, description="Partition index")
    leader: int = Field(default=-1, description="Leader broker id, -1 if none")
    replicas: tuple[int, ...] = Field(
        default=(), description="Broker ids holding a replica"
    )
    isr: tuple[int, ...] = Field(default=(), description="In-sync replica broker ids")


class ModelTopicDescription(BaseModel):
    """Partition/replica layout of a topic as reported by the cluster.

    Attributes:
        name: Topic name.
        partitions: Partitions ordered by index.
        internal: Whether the broker flags the topic as internal.
        surface: Metadata query surface that produced this description.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    partitions: tuple[ModelPartitionDescription, ...] = Field(default=())
    internal: bool = Field(default=False)
    surface: EnumMetadataQuerySurface = Field(default=EnumMetadataQuerySurface.AIOKAFKA)

    @property
    def partition_count(self) -> int:
        return len(self.partitions)

    @property
    def replica_counts(self) -> tuple[int, ...]:
        """Replica count of every partition, in partition order."""
        return tuple(len(p.replicas) for p in self.partitions)

    @property
    def min_replica_count(self) -> int:
        """Smallest replica count across partitions (0 with no partitions)."""
        return min(self.replica_counts, default=0)

    def satisfies(self, spec: ModelTopicSpec) -> bool:
        """Whether the topic has at least the requested partitions and replicas."""
        return (
            self.partition_count >= spec.partitions
            and self.min_replica_count >= spec.replication_factor
        )


__all__ = ["ModelPartitionDescription", "ModelTopicDescription"]
