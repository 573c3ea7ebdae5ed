# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Reporter runtime.

Exports:
    ReporterLifecycle: Provision, then sample and publish; ordered shutdown
    ReporterThread: Runs a lifecycle on a dedicated event loop thread
"""

from omnibase_metrics_reporter.runtime.reporter_lifecycle import ReporterLifecycle
from omnibase_metrics_reporter.runtime.reporter_thread import ReporterThread

__all__: list[str] = ["ReporterLifecycle", "ReporterThread"]
