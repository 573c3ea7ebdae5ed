# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Scrubbing of broker error text before it reaches logs or error context.

aiokafka and kafka-python errors can echo back the bootstrap string, SASL
settings or SSL key material passed to the client. A message that mentions
any of ``SENSITIVE_PATTERNS`` is replaced wholesale by ``REDACTED``; cutting
out just the secret is not attempted.

Example:
    >>> sanitize_error_message(ValueError("SASL auth failed, password=hunter2"))
    'ValueError: [REDACTED - potentially sensitive data]'
"""

from __future__ import annotations

REDACTED = "[REDACTED - potentially sensitive data]"

# Lower-case substrings. Client option names come first since those are what
# the Kafka clients actually echo.
SENSITIVE_PATTERNS: tuple[str, ...] = (
    "sasl_plain_password",
    "sasl_plain_username",
    "sasl_oauth_token",
    "ssl_password",
    "ssl_keyfile",
    "-----begin",
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "credential",
    "bearer",
    "authorization",
    "sasl_ssl://",
    "sasl_plaintext://",
    "user:pass",
)


def _is_sensitive(text: str) -> bool:
    lowered = text.lower()
    return any(pattern in lowered for pattern in SENSITIVE_PATTERNS)


def sanitize_error_string(error_str: str, max_length: int = 500) -> str:
    """Return ``error_str`` redacted or truncated to ``max_length`` characters."""
    if not error_str:
        return ""
    if _is_sensitive(error_str):
        return REDACTED
    if len(error_str) > max_length:
        return f"{error_str[:max_length]}... [truncated]"
    return error_str


def sanitize_error_message(exception: BaseException, max_length: int = 500) -> str:
    """Render ``exception`` as ``"{Type}: {sanitized message}"``."""
    message = sanitize_error_string(str(exception), max_length)
    return f"{type(exception).__name__}: {message}"


def sanitize_bootstrap_servers(servers: str) -> str:
    """Drop any ``user:pass@`` userinfo from a comma-separated bootstrap string.

    ``"user:pass@kafka:9092"`` becomes ``"kafka:9092"``; an empty string is
    reported as ``"unknown"``.
    """
    hosts = [entry.strip().rpartition("@")[2] for entry in servers.split(",")]
    return ",".join(host for host in hosts if host) or "unknown"


__all__: list[str] = [
    "REDACTED",
    "SENSITIVE_PATTERNS",
    "sanitize_bootstrap_servers",
    "sanitize_error_message",
    "sanitize_error_string",
]
