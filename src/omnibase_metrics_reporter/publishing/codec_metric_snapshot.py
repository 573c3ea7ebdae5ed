# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Wire format for metric snapshots.

Each record value is a UTF-8 JSON envelope::

    {
        "schema": "metrics-snapshot",
        "version": 1,
        "snapshot_id": "7f0c...",
        "captured_at": "2025-01-01T00:00:00+00:00",
        "source": "metrics-reporter",
        "fields": {"process.cpu_percent": 3.5}
    }

Records carry ``content-type`` and ``schema-version`` headers and no key.
Decoders ignore keys they do not know, so fields can be added without a
version bump; only a change of ``version`` breaks compatibility.
"""

from __future__ import annotations

import json
from typing import Final

from pydantic import ValidationError

from omnibase_metrics_reporter.enums import EnumInfraTransportType
from omnibase_metrics_reporter.errors import (
    ModelInfraErrorContext,
    SnapshotDecodeError,
)
from omnibase_metrics_reporter.models import ModelMetricSnapshot

SNAPSHOT_SCHEMA: Final[str] = "metrics-snapshot"
SNAPSHOT_SCHEMA_VERSION: Final[int] = 1
SNAPSHOT_CONTENT_TYPE: Final[str] = "application/json"

_ENVELOPE_KEYS: Final[tuple[str, ...]] = (
    "snapshot_id",
    "captured_at",
    "source",
    "fields",
)


def encode_snapshot(snapshot: ModelMetricSnapshot) -> bytes:
    envelope = {
        "schema": SNAPSHOT_SCHEMA,
        "version": SNAPSHOT_SCHEMA_VERSION,
        **snapshot.model_dump(mode="json"),
    }
    return json.dumps(envelope, separators=(",", ":"), sort_keys=True).encode("utf-8")


def snapshot_headers() -> list[tuple[str, bytes]]:
    """Kafka headers attached to every snapshot record."""
    return [
        ("content-type", SNAPSHOT_CONTENT_TYPE.encode("utf-8")),
        ("schema-version", str(SNAPSHOT_SCHEMA_VERSION).encode("utf-8")),
    ]


def decode_snapshot(value: bytes) -> ModelMetricSnapshot:
    """Decode a record value produced by ``encode_snapshot``.

    Raises:
        SnapshotDecodeError: The value is not JSON, is not a snapshot
            envelope, or uses an unsupported schema version.
    """
    context = ModelInfraErrorContext.with_correlation(
        transport_type=EnumInfraTransportType.KAFKA,
        operation="decode_snapshot",
        target_name=SNAPSHOT_SCHEMA,
    )
    try:
        envelope = json.loads(value)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SnapshotDecodeError(
            "Record value is not valid JSON", context=context
        ) from e

    if not isinstance(envelope, dict) or envelope.get("schema") != SNAPSHOT_SCHEMA:
        raise SnapshotDecodeError(
            "Record value is not a metrics snapshot envelope", context=context
        )
    version = envelope.get("version")
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise SnapshotDecodeError(
            f"Unsupported snapshot schema version: {version!r}",
            context=context,
            version=version,
        )

    try:
        return ModelMetricSnapshot.model_validate(
            {key: envelope[key] for key in _ENVELOPE_KEYS if key in envelope}
        )
    except ValidationError as e:
        raise SnapshotDecodeError(
            f"Malformed snapshot envelope: {e.error_count()} error(s)",
            context=context,
        ) from e


__all__ = [
    "SNAPSHOT_CONTENT_TYPE",
    "SNAPSHOT_SCHEMA",
    "SNAPSHOT_SCHEMA_VERSION",
    "decode_snapshot",
    "encode_snapshot",
    "snapshot_headers",
]
