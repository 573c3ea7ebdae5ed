# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Non-error outcomes of a create-topic request."""

from __future__ import annotations

from enum import Enum


class EnumCreateTopicOutcome(str, Enum):
    """Successful results of BrokerMetadataClient.create_topic.

    ALREADY_EXISTS is an expected result when several reporter instances race
    to create the same topic, so it is not modelled as an error.
    """

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


__all__ = ["EnumCreateTopicOutcome"]
