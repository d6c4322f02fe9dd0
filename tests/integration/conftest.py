"""Fixtures for tests against a running OmniFocus.

These tests change the user's database, so they only run when
OMNIFOCUS_BRIDGE_INTEGRATION=1 is set and osascript is available.
"""

import os
import shutil
import uuid
from typing import Iterator

import pytest

from omnifocus_bridge.bridge import OmniFocusBridge


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    enabled = os.environ.get("OMNIFOCUS_BRIDGE_INTEGRATION") == "1" and shutil.which("osascript")
    if enabled:
        return
    skip = pytest.mark.skip(reason="set OMNIFOCUS_BRIDGE_INTEGRATION=1 on macOS to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def bridge() -> OmniFocusBridge:
    return OmniFocusBridge()


@pytest.fixture
def prefix() -> str:
    """Unique name prefix so test entities never collide with real ones."""
    return f"Bridge Test {uuid.uuid4().hex[:8]}"


@pytest.fixture
def created_tags(bridge: OmniFocusBridge) -> Iterator[list[str]]:
    """Ids of tags created by a test; whatever is left is removed afterwards."""
    tag_ids: list[str] = []
    yield tag_ids
    # Children first so that removing a parent never takes a tracked child with it.
    for tag_id in reversed(tag_ids):
        bridge.remove_item("tag", id=tag_id)
