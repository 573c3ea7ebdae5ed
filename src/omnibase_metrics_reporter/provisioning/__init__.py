# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topic provisioning.

Exports:
    TopicProvisioner: Idempotent topic provisioning with bounded retries and a deadline
"""

from omnibase_metrics_reporter.provisioning.service_topic_provisioner import (
    TopicProvisioner,
)

__all__: list[str] = ["TopicProvisioner"]
