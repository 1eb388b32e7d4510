"""
Shared pytest fixtures for topo_map tests.

This module provides reusable fixtures that are automatically discovered
by pytest. Fixtures here are available to all test files.

Educational notes for new developers:
- Fixtures are functions that provide test data or set up test state
- @pytest.fixture decorator marks a function as a fixture
- Fixtures can depend on other fixtures (dependency injection)
- Timers are driven by FakeScheduler so tests never sleep
"""

from typing import Callable

import pytest
from unittest.mock import AsyncMock

from src.topo_map.config import ViewerConfig
from src.topo_map.controller import TopologyViewer


class FakeTimer:
    """Handle returned by FakeScheduler.call_later."""

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """
    Manual clock implementing the Scheduler protocol.

    Example:
        scheduler.call_later(2.0, restore)
        scheduler.advance(1.9)   # nothing fires
        scheduler.advance(0.1)   # restore() runs
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted(
            (timer for timer in self.pending if timer.due <= self.now + 1e-9),
            key=lambda timer: timer.due,
        )
        for timer in due:
            timer.cancelled = True
            timer.callback()


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def mock_status_callback() -> AsyncMock:
    """
    Create a mock async callback for status updates.

    Example:
        async def test_load(viewer, mock_status_callback):
            await viewer.load("Network-L1")
            last_msg = mock_status_callback.call_args_list[-1][0][0]
            assert "loaded" in last_msg
    """
    return AsyncMock()


@pytest.fixture
def example_document() -> dict:
    """Two nodes and one bidirectional, Up link."""
    return {
        "name": "example",
        "nodes": {
            "n1": {"displayId": "N1", "coordinate": {"latitude": 0, "longitude": 0}, "locationLabel": "Null Island"},
            "n2": {"displayId": "N2", "coordinate": {"latitude": 45, "longitude": 90}, "locationLabel": "Mongolia"},
        },
        "links": {
            "l1": {"aSideNodeId": "n1", "zSideNodeId": "n2", "direction": 3, "status": 1},
        },
    }


@pytest.fixture
def legacy_document() -> dict:
    """Document using the dashboard's older field names (flat lat/lon, aside/zside)."""
    return {
        "name": "Network-L1",
        "nodes": {
            "node-1": {"globalL8id": "node-1", "nodeId": "R1", "latitude": 37.7749,
                       "longitude": -122.4194, "location": "San Francisco, USA"},
            "node-2": {"globalL8id": "node-2", "nodeId": "R2", "latitude": 51.5074,
                       "longitude": -0.1278, "location": "London, UK"},
            "node-3": {"globalL8id": "node-3", "nodeId": "SW1", "latitude": 35.6895,
                       "longitude": 139.6917, "location": "Tokyo, Japan"},
            "node-4": {"globalL8id": "node-4", "nodeId": "FW1", "location": "Unknown site"},
        },
        "links": {
            "link-1": {"linkId": "link-1", "aside": "node-1", "zside": "node-2", "direction": 3, "status": 1},
            "link-2": {"linkId": "link-2", "aside": "node-2", "zside": "node-3", "direction": 1, "status": 1,
                       "aggregated": {
                           "link-2a": {"aside": "node-2", "zside": "node-3", "direction": 1, "status": 2},
                           "link-2b": {"aside": "node-2", "zside": "node-3", "direction": 1, "status": 1},
                       }},
            "link-3": {"linkId": "link-3", "aside": "node-1", "zside": "node-4", "direction": 2, "status": 2},
            "link-4": {"linkId": "link-4", "aside": "node-3", "zside": "node-9", "direction": 3, "status": 3},
        },
    }


@pytest.fixture
def viewer_config() -> ViewerConfig:
    return ViewerConfig(page_size=2)


@pytest.fixture
def viewer(viewer_config, fake_scheduler, mock_status_callback) -> TopologyViewer:
    """A viewer with a fake clock and no transport."""
    return TopologyViewer(
        viewer_config,
        scheduler=fake_scheduler,
        status_callback=mock_status_callback,
    )
