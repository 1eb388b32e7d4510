"""Topology viewer: one instance per map page, owning all mutable state."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from src.topo_map.config import ViewerConfig
from src.topo_map.explorer import (
    LinkListItem,
    ListExplorer,
    ListPage,
    NodeListItem,
    link_explorer,
    link_items,
    node_explorer,
    node_items,
)
from src.topo_map.graph import LinkDetails, NodeDetails, TopologyModel
from src.topo_map.interaction import InteractionController
from src.topo_map.loader import parse_topology
from src.topo_map.models import TopologyGraph, format_count
from src.topo_map.renderer import SceneRenderer
from src.topo_map.scene import KIND_LINK, KIND_NODE, HitTarget, SceneBuffer
from src.topo_map.timers import AsyncioScheduler, Debouncer, Scheduler
from src.topo_map.viewport import Viewport

logger = logging.getLogger(__name__)

# Shown when the topology list can't be fetched
FALLBACK_TOPOLOGY_NAMES = ["Network-L1", "Network-L2", "Network-L3"]

StatusCallback = Callable[[str], Awaitable[None]]
TopologyFetch = Callable[[str], Awaitable[Any]]
ListFetch = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class SelectionEvent:
    """Emitted when a node or link is selected on the map or in a list."""

    kind: str  # "node" or "link"
    id: str


async def _ignore_status(message: str) -> None:
    logger.debug(f"Status: {message}")


class TopologyViewer:
    """
    Owns the graph, viewport, scene and list state of one map view.

    The transport is injected as an async fetch(name) returning a parsed
    document; the viewer never talks to the network itself. Several
    viewers can coexist since nothing here is module-level state.
    """

    def __init__(
        self,
        config: Optional[ViewerConfig] = None,
        fetch: Optional[TopologyFetch] = None,
        scene: Optional[SceneBuffer] = None,
        scheduler: Optional[Scheduler] = None,
        status_callback: Optional[StatusCallback] = None,
        show_origin: bool = False,
    ) -> None:
        self.config = config or ViewerConfig()
        self.fetch = fetch
        self.scene = scene if scene is not None else SceneBuffer()
        self.scheduler = scheduler or AsyncioScheduler()
        self.status_callback = status_callback or _ignore_status

        self.model = TopologyModel(self.config.calibration)
        self.viewport = Viewport(self.config)
        self.renderer = SceneRenderer(self.config.calibration, show_origin=show_origin)
        self.interaction = InteractionController(
            self.viewport,
            self.scene,
            self.scheduler,
            highlight_timeout=self.config.highlight_timeout,
            drag_threshold=self.config.drag_threshold,
            on_select=self._on_scene_select,
        )
        self.nodes: ListExplorer[NodeListItem] = node_explorer(self.config.page_size)
        self.links: ListExplorer[LinkListItem] = link_explorer(self.config.page_size)

        self._node_search = Debouncer(self.scheduler, self.config.search_quiet_period, self.nodes.set_filter)
        self._link_search = Debouncer(self.scheduler, self.config.search_quiet_period, self.links.set_filter)

        self.topology_names: list[str] = []
        self.current_name: Optional[str] = None
        self.status_message = "Ready"
        self._load_generation = 0

        self._selection_listeners: list[Callable[[SelectionEvent], None]] = []
        self._zoom_listeners: list[Callable[[str], None]] = []
        self.viewport.add_listener(self._on_viewport_changed)

    # --- listeners -------------------------------------------------------

    def on_selection(self, listener: Callable[[SelectionEvent], None]) -> None:
        self._selection_listeners.append(listener)

    def on_zoom_changed(self, listener: Callable[[str], None]) -> None:
        """Listener receives the zoom readout, e.g. '144%'."""
        self._zoom_listeners.append(listener)

    def _emit_selection(self, event: SelectionEvent) -> None:
        logger.info(f"Selected {event.kind} {event.id}")
        for listener in self._selection_listeners:
            listener(event)

    def _on_scene_select(self, target: HitTarget) -> None:
        self._emit_selection(SelectionEvent(target.kind, target.id))

    def _on_viewport_changed(self, viewport: Viewport) -> None:
        self.render()
        for listener in self._zoom_listeners:
            listener(viewport.zoom_label)

    # --- state -----------------------------------------------------------

    @property
    def graph(self) -> TopologyGraph:
        return self.model.graph

    async def _set_status(self, message: str) -> None:
        self.status_message = message
        await self.status_callback(message)

    def render(self) -> None:
        """Redraw from the current graph and viewport."""
        self.renderer.render(self.model.graph, self.viewport, self.scene)
        self.interaction.reapply_highlight()

    def show_graph(self, graph: TopologyGraph, reset_viewport: bool = False) -> None:
        """Install a graph, reset the lists and redraw."""
        self.interaction.cancel_highlight()
        self.model.replace(graph)
        self.nodes.set_source(node_items(graph))
        self.links.set_source(link_items(graph))
        if reset_viewport:
            # reset() fires the viewport listener, which renders
            self.viewport.reset()
        else:
            self.render()

    def show_document(self, document: Any, name: Optional[str] = None) -> TopologyGraph:
        """Parse an already-fetched document and display it."""
        switching = name != self.current_name
        graph = parse_topology(document, self.config.calibration, name=name)
        self.current_name = name
        self.show_graph(graph, reset_viewport=switching)
        return graph

    def summary_text(self) -> str:
        counts = self.graph.summary()
        return f"{format_count(counts['nodes'])} nodes, {format_count(counts['links'])} links"

    # --- loading ---------------------------------------------------------

    async def load_topology_list(self, list_fetch: ListFetch) -> list[str]:
        """
        Fetch the available topology names.

        Accepts a {'list': [{'name': ...}, ...]} document or a plain list of
        names. Falls back to a fixed set of names on failure.
        """
        await self._set_status("Loading topology list...")
        try:
            document = await list_fetch()
            entries = document.get("list", []) if isinstance(document, dict) else (document or [])
            names = []
            for entry in entries:
                name = entry.get("name") if isinstance(entry, dict) else entry
                if name:
                    names.append(str(name))
            self.topology_names = names
            await self._set_status("Topology list loaded")
        except Exception as e:
            logger.exception("Failed to load topology list")
            self.topology_names = list(FALLBACK_TOPOLOGY_NAMES)
            await self._set_status(f"Error loading topology list: {e}")
        return self.topology_names

    async def load(self, name: str) -> bool:
        """
        Fetch and display a topology.

        If another load starts before this one finishes, this response is
        discarded. On failure the previous graph stays on screen.

        Returns:
            True if this load's graph was installed
        """
        if self.fetch is None:
            raise RuntimeError("TopologyViewer has no fetch function configured")

        self._load_generation += 1
        generation = self._load_generation
        await self._set_status(f"Loading topology: {name}...")

        try:
            document = await self.fetch(name)
        except Exception as e:
            if generation != self._load_generation:
                logger.debug(f"Ignoring failure of superseded load '{name}'")
                return False
            logger.exception(f"Failed to load topology '{name}'")
            await self._set_status(f"Error loading topology: {e}")
            return False

        if generation != self._load_generation:
            logger.info(f"Discarding stale response for '{name}'")
            return False

        self.show_document(document, name=name)
        await self._set_status(f'Topology "{name}" loaded successfully ({self.summary_text()})')
        return True

    async def refresh(self) -> bool:
        """Reload the current topology; the viewport is kept."""
        if self.current_name is None:
            return False
        return await self.load(self.current_name)

    def clear(self) -> None:
        """Drop the topology, reset viewport and lists."""
        self._load_generation += 1
        self.current_name = None
        self.show_graph(TopologyGraph(), reset_viewport=True)
        self.status_message = "Ready"

    def center(self) -> None:
        self.viewport.reset()

    # --- selection and lists ---------------------------------------------

    def select_node(self, node_id: str) -> Optional[NodeDetails]:
        """Select a node (e.g. from the list): highlight it and notify listeners."""
        details = self.model.node_details(node_id)
        if details is None:
            return None
        self.interaction.select(HitTarget(KIND_NODE, node_id))
        return details

    def select_link(self, link_id: str) -> Optional[LinkDetails]:
        details = self.model.link_details(link_id)
        if details is None:
            return None
        self.interaction.select(HitTarget(KIND_LINK, link_id))
        return details

    def search_nodes(self, text: str) -> None:
        """Debounced node filter for search-as-you-type."""
        self._node_search.trigger(text)

    def search_links(self, text: str) -> None:
        self._link_search.trigger(text)

    def node_page(self) -> ListPage[NodeListItem]:
        return self.nodes.page()

    def link_page(self) -> ListPage[LinkListItem]:
        return self.links.page()
