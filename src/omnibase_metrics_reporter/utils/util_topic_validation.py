# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Kafka topic name validation.

A name is rejected when it is empty, longer than the broker's 249 character
limit, one of the reserved names ``.`` and ``..``, or uses anything other
than ASCII letters, digits, ``.``, ``_`` and ``-``.

Names mixing ``.`` and ``_`` are accepted with a warning: the broker maps
both to the same character in its own metric names, so ``metrics.raw`` and
``metrics_raw`` would collide there.

Example:
    >>> validate_topic_name("__MetricsReporterSnapshots")
    >>> validate_topic_name("bad topic!")
    Traceback (most recent call last):
    ...
    ProtocolConfigurationError: ...
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from uuid import UUID

from omnibase_metrics_reporter.enums import EnumInfraTransportType
from omnibase_metrics_reporter.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)

logger = logging.getLogger(__name__)

MAX_TOPIC_NAME_LENGTH = 249

_LEGAL_CHARS = re.compile(r"[a-zA-Z0-9._-]+")

# (violated, message) pairs, checked in order; the first hit is reported.
_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda t: not t, "Topic name cannot be empty"),
    (
        lambda t: len(t) > MAX_TOPIC_NAME_LENGTH,
        f"Topic name exceeds the broker limit of {MAX_TOPIC_NAME_LENGTH} characters",
    ),
    (lambda t: t in (".", ".."), "Topic name '{topic}' is reserved"),
    (
        lambda t: _LEGAL_CHARS.fullmatch(t) is None,
        "Topic name '{topic}' may only contain ASCII letters, digits, "
        "'.', '_' and '-'",
    ),
)


def validate_topic_name(topic: str, correlation_id: UUID | None = None) -> None:
    """Raise ProtocolConfigurationError if ``topic`` is not a legal Kafka topic name.

    Args:
        topic: Candidate topic name.
        correlation_id: Correlation ID for the error context; generated when
            omitted.
    """
    for violated, message in _RULES:
        if violated(topic):
            raise ProtocolConfigurationError(
                message.format(topic=topic),
                context=ModelInfraErrorContext.with_correlation(
                    correlation_id=correlation_id,
                    transport_type=EnumInfraTransportType.KAFKA,
                    operation="validate_topic",
                ),
                parameter="topic",
                value=topic[:MAX_TOPIC_NAME_LENGTH],
            )

    if "." in topic and "_" in topic:
        logger.warning(
            "Topic name %r mixes '.' and '_'; broker metric names for it may "
            "collide with another topic",
            topic,
        )


__all__ = ["MAX_TOPIC_NAME_LENGTH", "validate_topic_name"]
