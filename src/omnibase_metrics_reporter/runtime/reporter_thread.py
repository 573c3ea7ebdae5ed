# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Run a ReporterLifecycle on its own event loop thread.

For hosts without an asyncio loop of their own:

    ```python
    reporter = ReporterThread(ReporterLifecycle(config))
    reporter.start(timeout=15.0)   # blocks until provisioning is done
    ...
    reporter.stop()
    ```
"""

from __future__ import annotations

import asyncio
import logging
import threading

from omnibase_metrics_reporter.enums import EnumInfraTransportType, EnumReporterState
from omnibase_metrics_reporter.errors import (
    InfraTimeoutError,
    InfraUnavailableError,
    ModelInfraErrorContext,
)
from omnibase_metrics_reporter.runtime.reporter_lifecycle import ReporterLifecycle

logger = logging.getLogger(__name__)


class ReporterThread:
    """Owns a daemon thread running ``lifecycle`` until stop() is called."""

    def __init__(self, lifecycle: ReporterLifecycle) -> None:
        self._lifecycle = lifecycle
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_requested: asyncio.Event | None = None
        self._started = threading.Event()
        self._start_error: Exception | None = None

    @property
    def lifecycle(self) -> ReporterLifecycle:
        return self._lifecycle

    @property
    def state(self) -> EnumReporterState:
        return self._lifecycle.state

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, timeout: float | None = None) -> None:
        """Start the thread and wait for the lifecycle to start.

        Blocks for at most ``timeout`` seconds, plus up to ``timeout`` more
        to join the thread when startup times out. A start still in progress
        then runs to completion on the daemon thread and is stopped right
        after.

        Raises:
            InfraTimeoutError: Startup did not finish within ``timeout``.
            Whatever ReporterLifecycle.start() raised.
        """
        if self._thread is not None:
            raise InfraUnavailableError(
                "ReporterThread can only be started once",
                context=self._context("start"),
            )
        self._loop = asyncio.new_event_loop()
        self._stop_requested = asyncio.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._loop, self._stop_requested),
            name="metrics-reporter",
            daemon=True,
        )
        self._thread.start()

        if not self._started.wait(timeout):
            self.stop(timeout)
            raise InfraTimeoutError(
                f"Metrics reporter did not start within {timeout}s",
                context=self._context("start"),
                timeout_seconds=timeout,
            )
        if self._start_error is not None:
            self._thread.join()
            raise self._start_error

    def stop(self, timeout: float | None = None) -> None:
        """Ask the lifecycle to stop and join the thread."""
        loop, stop_requested = self._loop, self._stop_requested
        if self._thread is None or loop is None or stop_requested is None:
            return
        if not loop.is_closed():
            try:
                loop.call_soon_threadsafe(stop_requested.set)
            except RuntimeError:
                # Loop closed between the check and the call.
                pass
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Metrics reporter thread did not stop within %ss", timeout)

    def health_check(self, timeout: float = 5.0) -> dict[str, object]:
        """Run the lifecycle health check on the reporter loop."""
        loop = self._loop
        if loop is None or loop.is_closed() or not self.alive:
            return {"healthy": False, "state": self._lifecycle.state.value}
        future = asyncio.run_coroutine_threadsafe(self._lifecycle.health_check(), loop)
        return future.result(timeout)

    def _run(
        self, loop: asyncio.AbstractEventLoop, stop_requested: asyncio.Event
    ) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._main(stop_requested))
        finally:
            loop.close()

    async def _main(self, stop_requested: asyncio.Event) -> None:
        try:
            await self._lifecycle.start()
        except Exception as e:
            self._start_error = e
            await self._lifecycle.stop()
            return
        finally:
            self._started.set()

        await stop_requested.wait()
        await self._lifecycle.stop()

    def _context(self, operation: str) -> ModelInfraErrorContext:
        return ModelInfraErrorContext.with_correlation(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation=operation,
            target_name=self._lifecycle.config.topic,
        )


__all__ = ["ReporterThread"]
