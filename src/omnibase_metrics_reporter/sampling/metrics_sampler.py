# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Periodic metrics sampler.

``snapshots()`` is a lazy, infinite async generator: nothing is sampled until
the consumer asks for the next item, and each call starts a fresh schedule,
so a stopped sampler can be restarted.

Ticks follow a fixed schedule anchored at the first tick (``t0``,
``t0 + interval``, ``t0 + 2 * interval``, ...). When the consumer or a slow
source makes the sampler miss ticks, the missed ticks are dropped and
counted; they are never fired in a burst.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from numbers import Real

from omnibase_metrics_reporter.enums import EnumSnapshotDropPolicy
from omnibase_metrics_reporter.models import (
    ModelMetricSnapshot,
    ModelMetricsReporterConfig,
)
from omnibase_metrics_reporter.sampling.metric_sources import ProtocolMetricSource
from omnibase_metrics_reporter.sampling.snapshot_slot import SnapshotSlot
from omnibase_metrics_reporter.utils import sanitize_error_message

logger = logging.getLogger(__name__)


class MetricsSampler:
    """Samples a metric source on a fixed interval.

    Attributes:
        ticks: Ticks that fired (sampled or skipped).
        skipped: Ticks that produced no snapshot, because the consumer had
            not taken the previous one or because the source failed.
        missed: Ticks dropped because the sampler fell behind schedule.
    """

    def __init__(
        self,
        source: ProtocolMetricSource,
        interval_seconds: float,
        source_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._source = source
        self._interval = interval_seconds
        self._source_id = source_id
        self._clock = clock
        self._sleep = sleep
        self._ticks = 0
        self._skipped = 0
        self._missed = 0
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(
        cls,
        config: ModelMetricsReporterConfig,
        source: ProtocolMetricSource,
        source_id: str | None = None,
    ) -> MetricsSampler:
        return cls(
            source=source,
            interval_seconds=config.sample_interval_seconds,
            source_id=source_id or config.client_id,
        )

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def skipped(self) -> int:
        return self._skipped

    @property
    def missed(self) -> int:
        return self._missed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sample(self) -> ModelMetricSnapshot | None:
        """Capture one snapshot now; None when the source fails."""
        try:
            raw = self._source.collect()
        except Exception as e:
            logger.warning(
                "Metric source failed, skipping tick: %s",
                type(e).__name__,
                extra={"error": sanitize_error_message(e)},
            )
            return None
        return ModelMetricSnapshot(source=self._source_id, fields=_numeric_fields(raw))

    async def snapshots(
        self, should_skip: Callable[[], bool] | None = None
    ) -> AsyncIterator[ModelMetricSnapshot]:
        """Yield one snapshot per tick, forever.

        Args:
            should_skip: Checked at every tick before sampling; a true result
                skips the tick without touching the source.
        """
        next_tick = self._clock()
        while True:
            now = self._clock()
            if now < next_tick:
                await self._sleep(next_tick - now)
                now = self._clock()

            behind = now - next_tick
            if behind >= self._interval:
                missed = int(behind // self._interval)
                self._missed += missed
                next_tick += missed * self._interval
                logger.debug("Sampler fell behind, dropped %d tick(s)", missed)
            next_tick += self._interval
            self._ticks += 1

            if should_skip is not None and should_skip():
                self._skipped += 1
                continue
            snapshot = self.sample()
            if snapshot is None:
                self._skipped += 1
                continue
            yield snapshot

    def start(self, slot: SnapshotSlot) -> None:
        """Feed ``slot`` from a background task until stop() is called."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._feed(slot), name="metrics-sampler"
        )

    async def stop(self) -> None:
        """Stop the background task. The sampler can be started again."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _feed(self, slot: SnapshotSlot) -> None:
        should_skip = (
            (lambda: slot.pending)
            if slot.policy == EnumSnapshotDropPolicy.SKIP_NEW
            else None
        )
        async for snapshot in self.snapshots(should_skip):
            if slot.closed:
                return
            slot.put(snapshot)


def _numeric_fields(raw: Mapping[str, object]) -> dict[str, float]:
    fields: dict[str, float] = {}
    for name, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, Real):
            continue
        number = float(value)
        if math.isfinite(number):
            fields[str(name)] = number
    return fields


__all__ = ["MetricsSampler"]
