# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Short-lived aiokafka admin sessions.

Every metadata operation opens its own admin connection and closes it before
returning, so no broker state is carried between calls.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError

from omnibase_metrics_reporter.enums import EnumInfraTransportType
from omnibase_metrics_reporter.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    ModelInfraErrorContext,
)
from omnibase_metrics_reporter.utils import sanitize_error_message

logger = logging.getLogger(__name__)

# Zero-arg callable returning an unstarted AIOKafkaAdminClient-compatible object.
AdminClientFactory = Callable[[], Any]


@asynccontextmanager
async def admin_session(
    admin_factory: AdminClientFactory,
    operation: str,
    target_name: str,
    correlation_id: UUID | None = None,
) -> AsyncIterator[Any]:
    """Start an admin client, yield it, and always close it.

    Connection and client-side timeout errors, raised either while starting
    the client or inside the ``async with`` body, are re-raised as
    InfraConnectionError / InfraTimeoutError.
    """
    context = ModelInfraErrorContext.with_correlation(
        correlation_id=correlation_id,
        transport_type=EnumInfraTransportType.KAFKA,
        operation=operation,
        target_name=target_name,
    )
    admin = admin_factory()
    try:
        await admin.start()
        yield admin
    except (TimeoutError, KafkaTimeoutError) as e:
        raise InfraTimeoutError(
            f"Timed out during {operation} for '{target_name}'",
            context=context,
            error=sanitize_error_message(e),
        ) from e
    except KafkaConnectionError as e:
        raise InfraConnectionError(
            f"Could not reach the cluster during {operation} for '{target_name}'",
            context=context,
            error=sanitize_error_message(e),
        ) from e
    finally:
        try:
            await admin.close()
        except Exception as e:
            logger.debug(
                "Error closing admin client: %s",
                type(e).__name__,
                extra={
                    "correlation_id": str(context.correlation_id),
                    "error": sanitize_error_message(e),
                },
            )


__all__ = ["AdminClientFactory", "admin_session"]
