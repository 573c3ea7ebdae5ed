# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tests for the single-slot sampler/publisher handoff."""

from __future__ import annotations

import asyncio

import pytest

from omnibase_metrics_reporter.enums import EnumSnapshotDropPolicy
from omnibase_metrics_reporter.models import ModelMetricSnapshot
from omnibase_metrics_reporter.sampling import SnapshotSlot

pytestmark = [pytest.mark.asyncio, pytest.mark.unit]


def _snapshot(value: float) -> ModelMetricSnapshot:
    return ModelMetricSnapshot(fields={"value": value})


class TestSnapshotSlot:
    async def test_put_then_get(self) -> None:
        slot = SnapshotSlot()
        snapshot = _snapshot(1)

        assert slot.put(snapshot) is True
        assert slot.pending is True
        assert await slot.get() is snapshot
        assert slot.pending is False

    async def test_skip_new_keeps_pending_snapshot(self) -> None:
        slot = SnapshotSlot(EnumSnapshotDropPolicy.SKIP_NEW)
        first, second = _snapshot(1), _snapshot(2)

        assert slot.put(first) is True
        assert slot.put(second) is False

        assert slot.dropped == 1
        assert await slot.get() is first

    async def test_replace_oldest_keeps_newest_snapshot(self) -> None:
        slot = SnapshotSlot(EnumSnapshotDropPolicy.REPLACE_OLDEST)
        first, second = _snapshot(1), _snapshot(2)

        slot.put(first)
        assert slot.put(second) is True

        assert slot.dropped == 1
        assert await slot.get() is second

    async def test_get_waits_for_put(self) -> None:
        slot = SnapshotSlot()
        snapshot = _snapshot(1)
        waiter = asyncio.create_task(slot.get())
        await asyncio.sleep(0)
        assert not waiter.done()

        slot.put(snapshot)

        assert await asyncio.wait_for(waiter, timeout=1.0) is snapshot

    async def test_close_discards_pending_and_wakes_consumer(self) -> None:
        slot = SnapshotSlot()
        waiter = asyncio.create_task(slot.get())
        await asyncio.sleep(0)

        slot.close()

        assert await asyncio.wait_for(waiter, timeout=1.0) is None
        assert slot.closed is True

    async def test_close_counts_pending_as_dropped(self) -> None:
        slot = SnapshotSlot()
        slot.put(_snapshot(1))

        slot.close()
        slot.close()

        assert slot.pending is False
        assert slot.dropped == 1
        assert await slot.get() is None

    async def test_put_after_close_is_rejected(self) -> None:
        slot = SnapshotSlot()
        slot.close()

        assert slot.put(_snapshot(1)) is False
        assert slot.dropped == 1

    async def test_async_iteration_ends_on_close(self) -> None:
        slot = SnapshotSlot()
        received: list[ModelMetricSnapshot] = []

        async def consume() -> None:
            async for snapshot in slot:
                received.append(snapshot)

        consumer = asyncio.create_task(consume())
        for value in (1.0, 2.0):
            slot.put(_snapshot(value))
            await asyncio.sleep(0)
        await asyncio.sleep(0)
        slot.close()
        await asyncio.wait_for(consumer, timeout=1.0)

        assert [s.fields["value"] for s in received] == [1.0, 2.0]
