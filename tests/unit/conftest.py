# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared pytest configuration for all unit tests.

Every test under tests/unit/ is marked with ``pytest.mark.unit`` at
collection time, so files do not need to repeat it:

    # Run only unit tests
    pytest -m unit
"""

import pytest


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Add the unit marker to every test collected from tests/unit."""
    for item in items:
        if "tests/unit" in str(item.fspath).replace("\\", "/"):
            item.add_marker(pytest.mark.unit)
