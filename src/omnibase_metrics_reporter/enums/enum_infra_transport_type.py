# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Defines the transport types used for error context and log correlation.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Transport types touched by the metrics reporter.

    Attributes:
        KAFKA: Kafka message broker transport (admin and producer)
        RUNTIME: Reporter process internal transport (sampler, handoff slot)
    """

    KAFKA = "kafka"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]
