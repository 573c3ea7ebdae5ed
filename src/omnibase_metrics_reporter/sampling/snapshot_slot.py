# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Single-slot handoff between the sampler and the publisher.

The slot holds at most one snapshot, so a slow publisher can never build up
a backlog. What happens when a new snapshot arrives while the previous one
is still pending depends on the drop policy:

    SKIP_NEW        the new snapshot is discarded (the sampler normally
                    avoids capturing it at all by checking ``pending``)
    REPLACE_OLDEST  the pending snapshot is discarded and replaced

Closing the slot discards any pending snapshot and ends iteration for the
consumer.
"""

from __future__ import annotations

import asyncio
import logging

from omnibase_metrics_reporter.enums import EnumSnapshotDropPolicy
from omnibase_metrics_reporter.models import ModelMetricSnapshot

logger = logging.getLogger(__name__)


class SnapshotSlot:
    """Async single-item channel with a drop policy.

    Not thread-safe: producer and consumer must share one event loop.

    Example:
        ```python
        slot = SnapshotSlot()
        slot.put(snapshot)
        async for snapshot in slot:
            await publisher.publish(snapshot)
        ```
    """

    def __init__(
        self, policy: EnumSnapshotDropPolicy = EnumSnapshotDropPolicy.SKIP_NEW
    ) -> None:
        self._policy = policy
        self._item: ModelMetricSnapshot | None = None
        self._closed = False
        self._ready = asyncio.Event()
        self._dropped = 0

    @property
    def policy(self) -> EnumSnapshotDropPolicy:
        return self._policy

    @property
    def pending(self) -> bool:
        """True while a snapshot waits for the consumer."""
        return self._item is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Snapshots discarded by the drop policy or by close()."""
        return self._dropped

    def put(self, snapshot: ModelMetricSnapshot) -> bool:
        """Offer a snapshot.

        Returns:
            True if the snapshot is now pending, False if it was discarded.
        """
        if self._closed:
            self._dropped += 1
            return False
        if self._item is not None:
            self._dropped += 1
            if self._policy == EnumSnapshotDropPolicy.SKIP_NEW:
                logger.debug(
                    "Snapshot slot busy, discarding new snapshot %s",
                    snapshot.snapshot_id,
                )
                return False
            logger.debug(
                "Snapshot slot busy, replacing snapshot %s with %s",
                self._item.snapshot_id,
                snapshot.snapshot_id,
            )
        self._item = snapshot
        self._ready.set()
        return True

    async def get(self) -> ModelMetricSnapshot | None:
        """Wait for the next snapshot; None once the slot is closed."""
        while self._item is None:
            if self._closed:
                return None
            self._ready.clear()
            await self._ready.wait()
        item, self._item = self._item, None
        return item

    def close(self) -> None:
        """Stop accepting snapshots, discard any pending one and wake the consumer."""
        if self._closed:
            return
        self._closed = True
        if self._item is not None:
            self._dropped += 1
            self._item = None
        self._ready.set()

    def __aiter__(self) -> SnapshotSlot:
        return self

    async def __anext__(self) -> ModelMetricSnapshot:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item


__all__ = ["SnapshotSlot"]
