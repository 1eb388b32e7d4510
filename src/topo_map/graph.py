"""Topology graph model: owns the current graph and answers lookups."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from src.topo_map.config import MapCalibration
from src.topo_map.loader import parse_topology
from src.topo_map.models import EMPTY_GRAPH, Link, Node, TopologyGraph
from src.topo_map.projection import DEFAULT_CALIBRATION

logger = logging.getLogger(__name__)


@dataclass
class LinkRow:
    """Flattened link description for detail views and lists."""

    id: str
    a_side: str
    z_side: str
    direction_symbol: str
    direction_text: str
    status_text: str
    status_class: str


@dataclass
class NodeDetails:
    """Everything an external detail view needs to show a node."""

    node: Node
    connected_links: list[LinkRow] = field(default_factory=list)


@dataclass
class LinkDetails:
    """Everything an external detail view needs to show a link."""

    link: Link
    title: str
    a_side_label: str
    z_side_label: str
    aggregated_links: list[LinkRow] = field(default_factory=list)


class TopologyModel:
    """
    Holds the current TopologyGraph for one viewer.

    load() swaps the graph atomically; readers always see either the old
    or the new graph, never a mix. "No topology" is represented by the
    empty graph so callers need no special case.
    """

    def __init__(self, calibration: MapCalibration = DEFAULT_CALIBRATION) -> None:
        self.calibration = calibration
        self._graph: TopologyGraph = EMPTY_GRAPH

    @property
    def graph(self) -> TopologyGraph:
        return self._graph

    def load(self, document: Any, name: Optional[str] = None) -> TopologyGraph:
        """Parse a document and replace the current graph with it."""
        graph = parse_topology(document, self.calibration, name=name)
        self._graph = graph
        return graph

    def replace(self, graph: TopologyGraph) -> None:
        self._graph = graph

    def clear(self) -> None:
        self._graph = EMPTY_GRAPH

    def get(self, entity_id: str) -> Optional[Node | Link]:
        return self._graph.get(entity_id)

    def connected_links(self, node_id: str) -> list[Link]:
        return self._graph.connected_links(node_id)

    def link_row(self, link: Link) -> LinkRow:
        return LinkRow(
            id=link.id,
            a_side=self._graph.endpoint_name(link.a_side_node_id),
            z_side=self._graph.endpoint_name(link.z_side_node_id),
            direction_symbol=link.direction.symbol,
            direction_text=link.direction.text,
            status_text=link.status.text,
            status_class=link.status.css_class,
        )

    def node_details(self, node_id: str) -> Optional[NodeDetails]:
        node = self._graph.get_node(node_id)
        if node is None:
            return None
        rows = [self.link_row(link) for link in self.connected_links(node_id)]
        return NodeDetails(node=node, connected_links=rows)

    def link_details(self, link_id: str) -> Optional[LinkDetails]:
        link = self._graph.get_link(link_id)
        if link is None:
            return None
        return LinkDetails(
            link=link,
            title=self._graph.link_label(link),
            a_side_label=self._endpoint_label(link.a_side_node_id),
            z_side_label=self._endpoint_label(link.z_side_node_id),
            aggregated_links=[self.link_row(child) for child in link.aggregated_links],
        )

    def _endpoint_label(self, node_id: str) -> str:
        """Endpoint name with its location in parentheses when known."""
        label = self._graph.endpoint_name(node_id)
        node = self._graph.get_node(node_id)
        if node is not None and node.location_label:
            label += f" ({node.location_label})"
        return label
