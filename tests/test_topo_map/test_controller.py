"""Tests for TopologyViewer: loading, races, viewport policy and lists."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.topo_map.config import ViewerConfig
from src.topo_map.controller import FALLBACK_TOPOLOGY_NAMES, SelectionEvent, TopologyViewer
from src.topo_map.scene import KIND_LINK, KIND_NODE


def documents_fetch(documents: dict):
    """Async fetch backed by a dict of name -> document."""

    async def fetch(name: str):
        if name not in documents:
            raise ConnectionError(f"HTTP 404 for {name}")
        return documents[name]

    return fetch


def last_status(mock_status_callback) -> str:
    return mock_status_callback.call_args_list[-1][0][0]


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_success(self, viewer, mock_status_callback, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})

        assert await viewer.load("Network-L1") is True

        assert viewer.current_name == "Network-L1"
        assert len(viewer.graph.nodes) == 4
        first_msg = mock_status_callback.call_args_list[0][0][0]
        assert first_msg == "Loading topology: Network-L1..."
        assert last_status(mock_status_callback) == 'Topology "Network-L1" loaded successfully (4 nodes, 4 links)'

    @pytest.mark.asyncio
    async def test_load_renders_scene(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")

        assert {marker.node_id for marker in viewer.scene.node_markers()} == {"node-1", "node-2", "node-3"}
        assert {stroke.link_id for stroke in viewer.scene.strokes} == {"link-1", "link-2"}

    @pytest.mark.asyncio
    async def test_load_populates_lists(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")

        page = viewer.node_page()
        assert page.total_count == 4
        assert len(page.items) == 2  # page_size=2 in the fixture config
        assert viewer.link_page().total_count == 4

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_graph(self, viewer, mock_status_callback, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")

        assert await viewer.load("Missing") is False

        assert viewer.graph.name == "Network-L1"
        assert viewer.current_name == "Network-L1"
        assert last_status(mock_status_callback) == "Error loading topology: HTTP 404 for Missing"

    @pytest.mark.asyncio
    async def test_load_without_fetch_raises(self, viewer):
        with pytest.raises(RuntimeError, match="no fetch"):
            await viewer.load("Network-L1")

    @pytest.mark.asyncio
    async def test_newest_load_wins(self, viewer, example_document, legacy_document):
        release_slow = asyncio.Event()
        slow_started = asyncio.Event()

        async def fetch(name: str):
            if name == "slow":
                slow_started.set()
                await release_slow.wait()
                return example_document
            return legacy_document

        viewer.fetch = fetch
        slow = asyncio.create_task(viewer.load("slow"))
        await slow_started.wait()

        assert await viewer.load("fast") is True
        release_slow.set()
        assert await slow is False

        assert viewer.current_name == "fast"
        assert "node-1" in viewer.graph.nodes
        assert "n1" not in viewer.graph.nodes

    @pytest.mark.asyncio
    async def test_stale_failure_is_silent(self, viewer, mock_status_callback, legacy_document):
        release_slow = asyncio.Event()
        slow_started = asyncio.Event()

        async def fetch(name: str):
            if name == "slow":
                slow_started.set()
                await release_slow.wait()
                raise TimeoutError("slow backend")
            return legacy_document

        viewer.fetch = fetch
        slow = asyncio.create_task(viewer.load("slow"))
        await slow_started.wait()
        await viewer.load("fast")
        release_slow.set()
        await slow

        assert "loaded successfully" in last_status(mock_status_callback)


class TestViewportPolicy:
    @pytest.mark.asyncio
    async def test_refresh_keeps_viewport(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        viewer.viewport.set_zoom(2)
        viewer.viewport.pan(100, 50)
        before = viewer.viewport.state

        assert await viewer.refresh() is True
        assert viewer.viewport.state == before

    @pytest.mark.asyncio
    async def test_switching_topology_resets_viewport(self, viewer, legacy_document, example_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document, "example": example_document})
        await viewer.load("Network-L1")
        viewer.viewport.set_zoom(3)

        await viewer.load("example")

        assert viewer.viewport.zoom_factor == 1.0
        assert (viewer.viewport.pan_dx, viewer.viewport.pan_dy) == (0.0, 0.0)

    @pytest.mark.asyncio
    async def test_refresh_without_topology(self, viewer):
        assert await viewer.refresh() is False

    @pytest.mark.asyncio
    async def test_clear(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        viewer.viewport.set_zoom(2)

        viewer.clear()

        assert viewer.graph.is_empty
        assert viewer.current_name is None
        assert viewer.scene.markers == []
        assert viewer.scene.strokes == []
        assert viewer.viewport.zoom_factor == 1.0
        assert viewer.node_page().total_count == 0

    def test_zoom_listener_receives_label(self, viewer):
        listener = MagicMock()
        viewer.on_zoom_changed(listener)
        viewer.viewport.zoom_in()
        listener.assert_called_once_with("120%")

    def test_center_resets(self, viewer):
        viewer.viewport.set_zoom(4)
        viewer.center()
        assert viewer.viewport.zoom_label == "100%"


class TestTopologyList:
    @pytest.mark.asyncio
    async def test_list_document(self, viewer):
        list_fetch = AsyncMock(return_value={"list": [{"name": "A"}, {"name": "B"}, {}]})
        assert await viewer.load_topology_list(list_fetch) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_plain_list(self, viewer):
        list_fetch = AsyncMock(return_value=["X", "Y"])
        assert await viewer.load_topology_list(list_fetch) == ["X", "Y"]

    @pytest.mark.asyncio
    async def test_fallback_on_error(self, viewer, mock_status_callback):
        list_fetch = AsyncMock(side_effect=ConnectionError("refused"))
        names = await viewer.load_topology_list(list_fetch)
        assert names == FALLBACK_TOPOLOGY_NAMES
        assert last_status(mock_status_callback) == "Error loading topology list: refused"


class TestSelectionAndSearch:
    @pytest.mark.asyncio
    async def test_select_node_from_list(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        events = []
        viewer.on_selection(events.append)

        details = viewer.select_node("node-2")

        assert details.node.display_name == "R2"
        assert [row.id for row in details.connected_links] == ["link-1", "link-2"]
        assert events == [SelectionEvent(KIND_NODE, "node-2")]

    @pytest.mark.asyncio
    async def test_select_link_details(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        events = []
        viewer.on_selection(events.append)

        details = viewer.select_link("link-2")

        assert details.title == "R2 → SW1"
        assert details.a_side_label == "R2 (London, UK)"
        assert [row.status_text for row in details.aggregated_links] == ["Down", "Up"]
        assert events == [SelectionEvent(KIND_LINK, "link-2")]

    @pytest.mark.asyncio
    async def test_highlight_survives_zoom_and_pan(self, viewer, fake_scheduler, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        viewer.select_node("node-2")

        viewer.viewport.zoom_in()
        viewer.viewport.pan(40, 10)

        opacities = {marker.node_id: marker.opacity for marker in viewer.scene.node_markers()}
        assert opacities == {"node-1": 0.3, "node-2": 1.0, "node-3": 0.3}

        fake_scheduler.advance(2.0)
        assert all(marker.opacity == 1.0 for marker in viewer.scene.node_markers())

        viewer.viewport.zoom_in()
        assert all(marker.opacity == 1.0 for marker in viewer.scene.node_markers())

    @pytest.mark.asyncio
    async def test_link_highlight_survives_redraw(self, viewer, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")
        viewer.select_link("link-2")

        viewer.viewport.zoom_out()

        assert viewer.scene.stroke_for("link-1").opacity == 0.2
        assert viewer.scene.stroke_for("link-2").opacity == 1.0

    def test_select_unknown_returns_none(self, viewer):
        assert viewer.select_node("ghost") is None
        assert viewer.select_link("ghost") is None

    @pytest.mark.asyncio
    async def test_search_is_debounced(self, viewer, fake_scheduler, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")

        viewer.search_nodes("lon")
        viewer.search_nodes("london")
        assert viewer.node_page().filter_text == ""

        fake_scheduler.advance(0.3)
        page = viewer.node_page()
        assert page.filter_text == "london"
        assert [item.id for item in page.items] == ["node-2"]

    @pytest.mark.asyncio
    async def test_link_search(self, viewer, fake_scheduler, legacy_document):
        viewer.fetch = documents_fetch({"Network-L1": legacy_document})
        await viewer.load("Network-L1")

        viewer.search_links("node-9")
        fake_scheduler.advance(0.3)
        assert [item.id for item in viewer.link_page().items] == ["link-4"]


class TestIndependence:
    @pytest.mark.asyncio
    async def test_viewers_do_not_share_state(self, fake_scheduler, legacy_document, example_document):
        first = TopologyViewer(ViewerConfig(), fetch=documents_fetch({"a": legacy_document}), scheduler=fake_scheduler)
        second = TopologyViewer(ViewerConfig(), fetch=documents_fetch({"b": example_document}), scheduler=fake_scheduler)

        await first.load("a")
        await second.load("b")
        first.viewport.set_zoom(2)

        assert "node-1" in first.graph.nodes and "node-1" not in second.graph.nodes
        assert second.viewport.zoom_factor == 1.0
