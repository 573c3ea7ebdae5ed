# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Utility functions for the metrics reporter.

Exports:
    compute_backoff_seconds: Exponential backoff with jitter
    sanitize_bootstrap_servers: Strip credentials from bootstrap strings
    sanitize_error_message: Sanitize exception messages for logging
    sanitize_error_string: Sanitize raw error strings for logging
    validate_topic_name: Validate Kafka topic names
"""

from omnibase_metrics_reporter.utils.util_backoff import compute_backoff_seconds
from omnibase_metrics_reporter.utils.util_error_sanitization import (
    SENSITIVE_PATTERNS,
    sanitize_bootstrap_servers,
    sanitize_error_message,
    sanitize_error_string,
)
from omnibase_metrics_reporter.utils.util_topic_validation import validate_topic_name

__all__: list[str] = [
    "SENSITIVE_PATTERNS",
    "compute_backoff_seconds",
    "sanitize_bootstrap_servers",
    "sanitize_error_message",
    "sanitize_error_string",
    "validate_topic_name",
]
