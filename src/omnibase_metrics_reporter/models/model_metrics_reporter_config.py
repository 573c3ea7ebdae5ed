# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Configuration model for the metrics reporter.

Environment Variables:
    All variables are optional and fall back to the field defaults.

    KAFKA_BOOTSTRAP_SERVERS: Kafka broker addresses (comma-separated)
        Default: "localhost:9092"
    METRICS_REPORTER_TOPIC: Destination topic for metric snapshots
        Default: "__MetricsReporterSnapshots"
    METRICS_REPORTER_TOPIC_AUTO_CREATE: Allow the reporter to create the topic
        Default: true ("true", "1", "yes", "on" are truthy, case-insensitive)
    METRICS_REPORTER_TOPIC_AUTO_CREATE_TIMEOUT_MS: Overall provisioning deadline
        Default: 10000
    METRICS_REPORTER_TOPIC_AUTO_CREATE_RETRIES: Maximum provisioning attempts
        Default: 5
    METRICS_REPORTER_TOPIC_PARTITIONS: Partition count for the topic
        Default: 1
    METRICS_REPORTER_TOPIC_REPLICATION_FACTOR: Replicas per partition
        Default: 1
    METRICS_REPORTER_SAMPLE_INTERVAL_MS: Sampler tick period
        Default: 60000

Usage:
    ```python
    config = ModelMetricsReporterConfig.default()
    config = ModelMetricsReporterConfig.from_yaml(Path("reporter.yaml"))
    config = ModelMetricsReporterConfig(bootstrap_servers="kafka:9092", topic="metrics")
    ```
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from omnibase_metrics_reporter.enums import (
    EnumInfraTransportType,
    EnumMetadataQuerySurface,
    EnumProvisioningFailurePolicy,
    EnumSnapshotDropPolicy,
)
from omnibase_metrics_reporter.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)
from omnibase_metrics_reporter.models.model_topic_spec import ModelTopicSpec
from omnibase_metrics_reporter.utils import validate_topic_name

DEFAULT_BOOTSTRAP_SERVERS: Final[str] = "localhost:9092"
DEFAULT_METRICS_TOPIC: Final[str] = "__MetricsReporterSnapshots"

_TRUTHY: Final[frozenset[str]] = frozenset({"true", "1", "yes", "on"})
_FALSY: Final[frozenset[str]] = frozenset({"false", "0", "no", "off"})

# env var -> (field name, parser kind)
_ENV_OVERRIDES: Final[dict[str, tuple[str, str]]] = {
    "KAFKA_BOOTSTRAP_SERVERS": ("bootstrap_servers", "str"),
    "METRICS_REPORTER_TOPIC": ("topic", "str"),
    "METRICS_REPORTER_TOPIC_AUTO_CREATE": ("topic_auto_create", "bool"),
    "METRICS_REPORTER_TOPIC_AUTO_CREATE_TIMEOUT_MS": (
        "topic_auto_create_timeout_ms",
        "int",
    ),
    "METRICS_REPORTER_TOPIC_AUTO_CREATE_RETRIES": ("topic_auto_create_retries", "int"),
    "METRICS_REPORTER_TOPIC_PARTITIONS": ("topic_partitions", "int"),
    "METRICS_REPORTER_TOPIC_REPLICATION_FACTOR": ("topic_replication_factor", "int"),
    "METRICS_REPORTER_SAMPLE_INTERVAL_MS": ("sample_interval_ms", "int"),
}


def _config_context(operation: str) -> ModelInfraErrorContext:
    return ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.RUNTIME,
        operation=operation,
        target_name="metrics_reporter_config",
    )


class ModelMetricsReporterConfig(BaseModel):
    """All options recognised by the metrics reporter.

    Attributes:
        bootstrap_servers: Kafka broker addresses (comma-separated).
        client_id: Client id used for admin and producer connections.
        topic: Destination topic for metric snapshots.
        topic_auto_create: Whether the provisioner may create the topic.
        topic_auto_create_timeout_ms: Overall provisioning deadline.
        topic_auto_create_retries: Maximum provisioning attempts within the deadline.
        topic_partitions: Desired (minimum) partition count.
        topic_replication_factor: Desired (minimum) replicas per partition.
        topic_configs: Topic config overrides applied on creation only.
        sample_interval_ms: Sampler tick period.
        request_timeout_ms: Timeout for a single admin request.
        retry_backoff_base_ms: Backoff after the first failed attempt.
        retry_backoff_max_ms: Upper bound for any backoff.
        max_in_flight_sends: Bound on concurrently outstanding sends.
        send_timeout_ms: Time to wait for a send acknowledgement.
        publish_failure_window: Number of most recent sends that must all fail
            before the publisher reports itself unhealthy.
        shutdown_grace_ms: Time allowed for in-flight sends to drain on stop.
        snapshot_drop_policy: Handoff policy when the previous snapshot is unconsumed.
        metadata_query_surfaces: Metadata query surfaces, in query order.
        producer_acks: Producer acknowledgement policy ("all", "1", "0").
        producer_compression_type: Optional producer compression codec.
        producer_linger_ms: Producer batching delay.
        on_provisioning_failure: What the lifecycle does when provisioning fails.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    bootstrap_servers: str = Field(default=DEFAULT_BOOTSTRAP_SERVERS, min_length=1)
    client_id: str = Field(default="metrics-reporter", min_length=1)
    topic: str = Field(default=DEFAULT_METRICS_TOPIC)
    topic_auto_create: bool = True
    topic_auto_create_timeout_ms: int = Field(default=10000, ge=1)
    topic_auto_create_retries: int = Field(default=5, ge=1)
    topic_partitions: int = Field(default=1, ge=1)
    topic_replication_factor: int = Field(default=1, ge=1)
    topic_configs: dict[str, str] = Field(default_factory=dict)
    sample_interval_ms: int = Field(default=60000, ge=1)
    request_timeout_ms: int = Field(default=30000, ge=1)
    retry_backoff_base_ms: int = Field(default=100, ge=0)
    retry_backoff_max_ms: int = Field(default=5000, ge=0)
    max_in_flight_sends: int = Field(default=8, ge=1)
    send_timeout_ms: int = Field(default=30000, ge=1)
    publish_failure_window: int = Field(default=5, ge=1)
    shutdown_grace_ms: int = Field(default=5000, ge=0)
    snapshot_drop_policy: EnumSnapshotDropPolicy = EnumSnapshotDropPolicy.SKIP_NEW
    metadata_query_surfaces: tuple[EnumMetadataQuerySurface, ...] = Field(
        default=(EnumMetadataQuerySurface.AIOKAFKA, EnumMetadataQuerySurface.KAFKA_PYTHON),
        min_length=1,
    )
    producer_acks: str = Field(default="all", pattern=r"^(all|-1|0|1)$")
    producer_compression_type: str | None = Field(
        default=None, pattern=r"^(gzip|snappy|lz4|zstd)$"
    )
    producer_linger_ms: int = Field(default=0, ge=0)
    on_provisioning_failure: EnumProvisioningFailurePolicy = (
        EnumProvisioningFailurePolicy.ABORT
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> ModelMetricsReporterConfig:
        validate_topic_name(self.topic)
        if self.retry_backoff_max_ms < self.retry_backoff_base_ms:
            raise ValueError(
                "retry_backoff_max_ms must be >= retry_backoff_base_ms "
                f"({self.retry_backoff_max_ms} < {self.retry_backoff_base_ms})"
            )
        return self

    @property
    def creation_timeout_seconds(self) -> float:
        return self.topic_auto_create_timeout_ms / 1000.0

    @property
    def sample_interval_seconds(self) -> float:
        return self.sample_interval_ms / 1000.0

    @property
    def send_timeout_seconds(self) -> float:
        return self.send_timeout_ms / 1000.0

    @property
    def shutdown_grace_seconds(self) -> float:
        return self.shutdown_grace_ms / 1000.0

    def topic_spec(self) -> ModelTopicSpec:
        """Creation spec for the configured metrics topic."""
        return ModelTopicSpec(
            name=self.topic,
            partitions=self.topic_partitions,
            replication_factor=self.topic_replication_factor,
            kafka_config=dict(self.topic_configs) or None,
        )

    @classmethod
    def default(cls) -> ModelMetricsReporterConfig:
        """Defaults with environment variable overrides.

        Raises:
            ProtocolConfigurationError: If an override cannot be parsed or the
                resulting configuration is invalid.
        """
        overrides: dict[str, object] = {}
        for env_var, (field_name, kind) in _ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if kind == "bool":
                flag = raw.lower()
                if flag not in _TRUTHY | _FALSY:
                    raise ProtocolConfigurationError(
                        f"Environment variable {env_var} must be a boolean "
                        f"(true/false, 1/0, yes/no, on/off), got {raw!r}",
                        context=_config_context("load_env"),
                        parameter=env_var,
                    )
                overrides[field_name] = flag in _TRUTHY
            elif kind == "int":
                try:
                    overrides[field_name] = int(raw)
                except ValueError as e:
                    raise ProtocolConfigurationError(
                        f"Environment variable {env_var} must be an integer, got {raw!r}",
                        context=_config_context("load_env"),
                        parameter=env_var,
                    ) from e
            else:
                overrides[field_name] = raw
        return cls._build(overrides, operation="load_env")

    @classmethod
    def from_yaml(cls, path: Path) -> ModelMetricsReporterConfig:
        """Load configuration from a YAML mapping.

        The document may either be the mapping itself or nest it under a
        top-level ``metrics_reporter`` key.

        Raises:
            ProtocolConfigurationError: If the file is missing, unparseable,
                not a mapping, or describes an invalid configuration.
        """
        context = _config_context("load_yaml")
        if not path.is_file():
            raise ProtocolConfigurationError(
                f"Configuration file not found: {path}",
                context=context,
                path=str(path),
            )
        try:
            with path.open(encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProtocolConfigurationError(
                f"Configuration file {path} is not valid YAML",
                context=context,
                path=str(path),
            ) from e

        if isinstance(document, dict) and isinstance(
            document.get("metrics_reporter"), dict
        ):
            document = document["metrics_reporter"]
        if not isinstance(document, dict):
            raise ProtocolConfigurationError(
                f"Configuration file {path} must contain a mapping",
                context=context,
                path=str(path),
            )
        return cls._build(document, operation="load_yaml")

    @classmethod
    def _build(
        cls, values: dict[str, object], operation: str
    ) -> ModelMetricsReporterConfig:
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ProtocolConfigurationError(
                f"Invalid metrics reporter configuration: {e.error_count()} error(s)",
                context=_config_context(operation),
                errors=[err["msg"] for err in e.errors()],
            ) from e


__all__: list[str] = [
    "DEFAULT_BOOTSTRAP_SERVERS",
    "DEFAULT_METRICS_TOPIC",
    "ModelMetricsReporterConfig",
]
