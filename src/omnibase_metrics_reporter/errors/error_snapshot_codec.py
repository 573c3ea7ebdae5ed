# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Wire-format decode errors for published metric snapshots."""

from omnibase_core.enums.enum_core_error_code import EnumCoreErrorCode

from omnibase_metrics_reporter.errors.infra_errors import RuntimeHostError


class SnapshotDecodeError(RuntimeHostError):
    """Raised when a record value is not a decodable metric snapshot."""

    default_error_code = EnumCoreErrorCode.VALIDATION_ERROR


__all__ = ["SnapshotDecodeError"]
