# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Metric sources sampled on every tick.

A source returns a flat mapping of metric name to number. Values are not
interpreted by the pipeline; anything non-numeric is dropped by the sampler.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Protocol, runtime_checkable

import psutil


@runtime_checkable
class ProtocolMetricSource(Protocol):
    """Something that can be asked for the current metric values."""

    def collect(self) -> Mapping[str, float]:
        """Return current metric values. May raise; the tick is then skipped."""
        ...


class ProcessMetricSource:
    """CPU, memory, thread and file-descriptor figures for one process.

    Fields (with the default ``process.`` prefix):
        process.cpu_percent, process.memory_rss_bytes,
        process.memory_vms_bytes, process.num_threads,
        process.num_fds (POSIX only), process.uptime_seconds
    """

    def __init__(
        self,
        process: psutil.Process | None = None,
        prefix: str = "process.",
    ) -> None:
        self._process = process or psutil.Process()
        self._prefix = prefix
        # First cpu_percent() call always returns 0.0; prime it.
        self._process.cpu_percent(interval=None)

    def collect(self) -> dict[str, float]:
        p = self._prefix
        with self._process.oneshot():
            memory = self._process.memory_info()
            fields: dict[str, float] = {
                f"{p}cpu_percent": float(self._process.cpu_percent(interval=None)),
                f"{p}memory_rss_bytes": float(memory.rss),
                f"{p}memory_vms_bytes": float(memory.vms),
                f"{p}num_threads": float(self._process.num_threads()),
                f"{p}uptime_seconds": max(
                    0.0, time.time() - self._process.create_time()
                ),
            }
            if hasattr(self._process, "num_fds"):
                fields[f"{p}num_fds"] = float(self._process.num_fds())
        return fields


class MetricRegistry:
    """Gauges and counters registered by the host application.

    Safe to update from any thread.

    Example:
        ```python
        registry = MetricRegistry()
        registry.gauge("queue.depth", lambda: len(queue))
        registry.increment("requests.total")
        ```
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gauges: dict[str, float | Callable[[], float]] = {}
        self._counters: dict[str, float] = {}

    def gauge(self, name: str, value: float | Callable[[], float]) -> None:
        """Register a gauge: a fixed value or a zero-arg callable read on every tick."""
        with self._lock:
            self._gauges[name] = value

    def set_gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = value

    def increment(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + amount

    def remove(self, name: str) -> None:
        with self._lock:
            self._gauges.pop(name, None)
            self._counters.pop(name, None)

    def collect(self) -> dict[str, float]:
        with self._lock:
            gauges = dict(self._gauges)
            fields = dict(self._counters)
        for name, value in gauges.items():
            fields[name] = value() if callable(value) else value
        return fields


class CompositeMetricSource:
    """Merge several sources; later sources win on duplicate names."""

    def __init__(self, sources: Iterable[ProtocolMetricSource]) -> None:
        self._sources = tuple(sources)

    def collect(self) -> dict[str, float]:
        fields: dict[str, float] = {}
        for source in self._sources:
            fields.update(source.collect())
        return fields


__all__ = [
    "CompositeMetricSource",
    "MetricRegistry",
    "ProcessMetricSource",
    "ProtocolMetricSource",
]
