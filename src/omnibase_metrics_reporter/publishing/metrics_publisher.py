# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Asynchronous publisher for metric snapshots.

Each snapshot is serialized and handed to the producer as its own send task.
The number of outstanding sends is bounded by ``max_in_flight``: once the
bound is reached ``publish()`` waits for a send to complete, which in turn
leaves new snapshots in the handoff slot where the drop policy applies.

Sends are never retried. A failed send is logged and counted; only a
sustained failure (every send in the last ``failure_window`` sends failed)
is escalated, by flipping ``healthy`` to False, logging at ERROR and
notifying registered health callbacks. The next successful send flips it
back.

Thread Safety:
    Coroutine-safe. Counters are updated under an asyncio.Lock by the
    concurrent send completions.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID, uuid4

from omnibase_metrics_reporter.enums import EnumInfraTransportType
from omnibase_metrics_reporter.errors import (
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ModelInfraErrorContext,
)
from omnibase_metrics_reporter.models import (
    ModelMetricSnapshot,
    ModelMetricsReporterConfig,
    ModelPublisherHealthEvent,
    ModelPublishOutcome,
    ModelPublishStats,
)
from omnibase_metrics_reporter.publishing.codec_metric_snapshot import (
    encode_snapshot,
    snapshot_headers,
)
from omnibase_metrics_reporter.sampling import SnapshotSlot
from omnibase_metrics_reporter.utils import sanitize_error_message

logger = logging.getLogger(__name__)

HealthCallbackType = Callable[[ModelPublisherHealthEvent], Awaitable[None]]


class MetricsPublisher:
    """Ships snapshots to a topic without blocking the sampler.

    Example:
        ```python
        publisher = MetricsPublisher("metrics", producer)
        await publisher.start()
        await publisher.publish(snapshot)
        await publisher.close(grace_seconds=5.0)
        ```
    """

    def __init__(
        self,
        topic: str,
        producer: Any,
        max_in_flight: int = 8,
        send_timeout_seconds: float = 30.0,
        failure_window: int = 5,
    ) -> None:
        """Initialize the publisher.

        Args:
            topic: Destination topic; must already be provisioned.
            producer: Unstarted AIOKafkaProducer-compatible producer. The
                publisher starts and stops it.
            max_in_flight: Bound on concurrently outstanding sends.
            send_timeout_seconds: Time to wait for one acknowledgement.
            failure_window: Consecutive failed sends that make the publisher
                unhealthy.
        """
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be >= 1")
        if failure_window < 1:
            raise ValueError("failure_window must be >= 1")
        self._topic = topic
        self._producer = producer
        self._max_in_flight = max_in_flight
        self._send_timeout = send_timeout_seconds
        self._failure_window = failure_window

        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._lock = asyncio.Lock()
        self._callbacks_lock = asyncio.Lock()
        self._health_callbacks: list[HealthCallbackType] = []
        self._tasks: set[asyncio.Task[None]] = set()

        self._recent: deque[bool] = deque(maxlen=failure_window)
        self._last_error: str | None = None
        self._accepted = 0
        self._succeeded = 0
        self._failed = 0
        self._in_flight = 0
        self._cancelled = 0
        self._healthy = True

        self._started = False
        self._closed = False

    @classmethod
    def from_config(
        cls, config: ModelMetricsReporterConfig, producer: Any
    ) -> MetricsPublisher:
        return cls(
            topic=config.topic,
            producer=producer,
            max_in_flight=config.max_in_flight_sends,
            send_timeout_seconds=config.send_timeout_seconds,
            failure_window=config.publish_failure_window,
        )

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def healthy(self) -> bool:
        return self._healthy

    @property
    def stats(self) -> ModelPublishStats:
        """Copy of the current counters."""
        return ModelPublishStats(
            accepted=self._accepted,
            succeeded=self._succeeded,
            failed=self._failed,
            in_flight=self._in_flight,
            cancelled=self._cancelled,
            healthy=self._healthy,
        )

    async def register_health_callback(
        self, callback: HealthCallbackType
    ) -> Callable[[], Awaitable[None]]:
        """Register a callback for healthy/unhealthy transitions.

        Callback errors are logged and never affect publishing.

        Returns:
            Async function that unregisters the callback.
        """
        async with self._callbacks_lock:
            self._health_callbacks.append(callback)

        async def unregister() -> None:
            async with self._callbacks_lock:
                if callback in self._health_callbacks:
                    self._health_callbacks.remove(callback)

        return unregister

    async def start(self) -> None:
        """Start the producer.

        Raises:
            InfraTimeoutError: The producer did not connect within the send timeout.
            InfraConnectionError: The producer could not connect.
        """
        if self._started:
            return
        if self._closed:
            raise InfraUnavailableError(
                "Publisher is closed",
                context=self._context("start"),
            )
        try:
            await asyncio.wait_for(self._producer.start(), timeout=self._send_timeout)
        except TimeoutError as e:
            await self._stop_producer()
            raise InfraTimeoutError(
                f"Timeout starting producer after {self._send_timeout}s",
                context=self._context("start"),
                timeout_seconds=self._send_timeout,
            ) from e
        except Exception as e:
            await self._stop_producer()
            raise InfraConnectionError(
                f"Failed to start producer: {type(e).__name__}",
                context=self._context("start"),
                error=sanitize_error_message(e),
            ) from e
        self._started = True
        logger.info("MetricsPublisher started", extra={"topic": self._topic})

    async def publish(self, snapshot: ModelMetricSnapshot) -> None:
        """Hand a snapshot to the producer.

        Returns as soon as the send is scheduled; waits only while
        ``max_in_flight`` sends are outstanding.

        Raises:
            InfraUnavailableError: The publisher is not started or is closed.
        """
        if not self._started or self._closed:
            raise InfraUnavailableError(
                "Publisher not started. Call start() first.",
                context=self._context("publish"),
                topic=self._topic,
            )
        await self._semaphore.acquire()
        if self._closed:
            self._semaphore.release()
            raise InfraUnavailableError(
                "Publisher closed while waiting for a send slot",
                context=self._context("publish"),
                topic=self._topic,
            )
        async with self._lock:
            self._accepted += 1
            self._in_flight += 1
        task = asyncio.get_running_loop().create_task(self._send(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run(self, slot: SnapshotSlot) -> None:
        """Publish every snapshot taken from ``slot`` until it is closed."""
        async for snapshot in slot:
            if self._closed:
                break
            try:
                await self.publish(snapshot)
            except InfraUnavailableError:
                if self._closed:
                    break
                raise

    async def _send(self, snapshot: ModelMetricSnapshot) -> None:
        # Each send is accounted exactly once: here if it is cancelled before
        # an outcome exists, otherwise in _record().
        try:
            try:
                outcome = await self._deliver(snapshot)
            except asyncio.CancelledError:
                async with self._lock:
                    self._in_flight -= 1
                    self._cancelled += 1
                raise
            await self._record(outcome)
        finally:
            self._semaphore.release()

    async def _deliver(self, snapshot: ModelMetricSnapshot) -> ModelPublishOutcome:
        try:
            future = await self._producer.send(
                self._topic,
                value=encode_snapshot(snapshot),
                key=None,
                headers=snapshot_headers(),
            )
            await asyncio.wait_for(future, timeout=self._send_timeout)
        except TimeoutError:
            return ModelPublishOutcome(
                snapshot_id=snapshot.snapshot_id,
                success=False,
                error=f"send not acknowledged within {self._send_timeout}s",
            )
        except Exception as e:
            return ModelPublishOutcome(
                snapshot_id=snapshot.snapshot_id,
                success=False,
                error=sanitize_error_message(e),
            )
        return ModelPublishOutcome(snapshot_id=snapshot.snapshot_id, success=True)

    async def _record(self, outcome: ModelPublishOutcome) -> None:
        event: ModelPublisherHealthEvent | None = None
        async with self._lock:
            self._in_flight -= 1
            self._recent.append(outcome.success)
            if outcome.success:
                self._succeeded += 1
                if not self._healthy:
                    self._healthy = True
                    event = self._health_event()
            else:
                self._failed += 1
                self._last_error = outcome.error
                if (
                    self._healthy
                    and len(self._recent) == self._failure_window
                    and not any(self._recent)
                ):
                    self._healthy = False
                    event = self._health_event()

        if not outcome.success:
            logger.warning(
                "Failed to publish snapshot %s: %s",
                outcome.snapshot_id,
                outcome.error,
                extra={"topic": self._topic},
            )
        if event is not None:
            if event.healthy:
                logger.info(
                    "Metrics publishing recovered",
                    extra={"topic": self._topic},
                )
            else:
                logger.error(
                    "Metrics publishing failing: last %d sends failed",
                    self._failure_window,
                    extra={"topic": self._topic, "last_error": self._last_error},
                )
            await self._invoke_health_callbacks(event)

    def _health_event(self) -> ModelPublisherHealthEvent:
        return ModelPublisherHealthEvent(
            healthy=self._healthy,
            topic=self._topic,
            window_size=self._failure_window,
            failures_in_window=sum(1 for ok in self._recent if not ok),
            last_error=self._last_error,
        )

    async def _invoke_health_callbacks(self, event: ModelPublisherHealthEvent) -> None:
        async with self._callbacks_lock:
            callbacks = list(self._health_callbacks)
        for callback in callbacks:
            try:
                await callback(event)
            except Exception as e:
                logger.warning(
                    "Health callback failed: %s",
                    type(e).__name__,
                    extra={"topic": self._topic, "error": sanitize_error_message(e)},
                )

    async def drain(self, grace_seconds: float) -> bool:
        """Wait up to ``grace_seconds`` for outstanding sends.

        Returns:
            True when no send is outstanding any more.
        """
        pending = [t for t in self._tasks if not t.done()]
        if not pending:
            return True
        _, still_pending = await asyncio.wait(pending, timeout=max(0.0, grace_seconds))
        return not still_pending

    async def close(self, grace_seconds: float = 5.0) -> None:
        """Stop accepting snapshots, drain, then force-close the producer.

        Sends still outstanding after ``grace_seconds`` are cancelled and
        counted in ``stats.cancelled``. Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True

        drained = await self.drain(grace_seconds)
        if not drained:
            # Counters are settled by the tasks themselves as they unwind.
            leftover = [t for t in self._tasks if not t.done()]
            cancelled_before = self._cancelled
            for task in leftover:
                task.cancel()
            await asyncio.gather(*leftover, return_exceptions=True)
            logger.warning(
                "Cancelled %d in-flight send(s) after %.1fs grace period",
                self._cancelled - cancelled_before,
                grace_seconds,
                extra={"topic": self._topic},
            )

        await self._stop_producer()
        self._started = False
        stats = self.stats
        logger.info(
            "MetricsPublisher closed",
            extra={
                "topic": self._topic,
                "accepted": stats.accepted,
                "succeeded": stats.succeeded,
                "failed": stats.failed,
                "cancelled": stats.cancelled,
            },
        )

    async def _stop_producer(self) -> None:
        try:
            await self._producer.stop()
        except Exception as e:
            logger.warning(
                "Error stopping producer: %s",
                type(e).__name__,
                extra={"topic": self._topic, "error": sanitize_error_message(e)},
            )

    async def health_check(self) -> dict[str, object]:
        """Health snapshot for host health endpoints."""
        stats = self.stats
        return {
            "healthy": stats.healthy and self._started,
            "started": self._started,
            "closed": self._closed,
            "topic": self._topic,
            "accepted": stats.accepted,
            "succeeded": stats.succeeded,
            "failed": stats.failed,
            "in_flight": stats.in_flight,
            "cancelled": stats.cancelled,
            "max_in_flight": self._max_in_flight,
            "failure_window": self._failure_window,
            "last_error": self._last_error,
        }

    def _context(
        self, operation: str, correlation_id: UUID | None = None
    ) -> ModelInfraErrorContext:
        return ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.KAFKA,
            operation=operation,
            target_name=self._topic,
            correlation_id=correlation_id or uuid4(),
        )


__all__ = ["HealthCallbackType", "MetricsPublisher"]
