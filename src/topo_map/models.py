"""Topology data model: coordinates, nodes, links and the graph container."""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoCoordinate:
    """Latitude/longitude in degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class PlanarPoint:
    """Point in base-map pixel space (y grows downwards)."""

    x: float
    y: float


# Accepted spellings for enum names, normalized to lowercase without separators
_DIRECTION_ALIASES = {
    "invalid": 0,
    "asidetozside": 1,
    "atoz": 1,
    "zsidetoaside": 2,
    "ztoa": 2,
    "bidirectional": 3,
    "both": 3,
}

_STATUS_ALIASES = {
    "invalid": 0,
    "unknown": 0,
    "up": 1,
    "down": 2,
    "partial": 3,
}


def _normalize_code(value: Any, aliases: dict[str, int]) -> Optional[int]:
    """Turn an int, numeric string or enum-name string into an integer code."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdecimal():
            try:
                return int(text)
            except ValueError:
                return None
        key = text.lower().replace("_", "").replace("-", "").replace(" ", "")
        # Proto-style names carry a type prefix, e.g. "LINK_STATUS_UP"
        for prefix in ("linkdirection", "linkstatus"):
            if key.startswith(prefix):
                key = key[len(prefix):]
        return aliases.get(key)
    return None


class LinkDirection(IntEnum):
    """Traffic direction of a link relative to its A/Z endpoints."""

    INVALID = 0
    ASIDE_TO_ZSIDE = 1
    ZSIDE_TO_ASIDE = 2
    BIDIRECTIONAL = 3

    @classmethod
    def from_code(cls, value: Any) -> "LinkDirection":
        """Normalize a wire value, falling back to INVALID for anything unknown."""
        code = _normalize_code(value, _DIRECTION_ALIASES)
        try:
            return cls(code)
        except ValueError:
            if value is not None:
                logger.debug(f"Unknown link direction {value!r}, using INVALID")
            return cls.INVALID

    @property
    def symbol(self) -> str:
        return _DIRECTION_SYMBOLS[self]

    @property
    def text(self) -> str:
        return _DIRECTION_TEXTS[self]


class LinkStatus(IntEnum):
    """Operational status of a link."""

    INVALID = 0
    UP = 1
    DOWN = 2
    PARTIAL = 3

    @classmethod
    def from_code(cls, value: Any) -> "LinkStatus":
        """Normalize a wire value, falling back to INVALID for anything unknown."""
        code = _normalize_code(value, _STATUS_ALIASES)
        try:
            return cls(code)
        except ValueError:
            if value is not None:
                logger.debug(f"Unknown link status {value!r}, using INVALID")
            return cls.INVALID

    @property
    def text(self) -> str:
        return _STATUS_TEXTS[self]

    @property
    def css_class(self) -> str:
        return _STATUS_CLASSES[self]


_DIRECTION_SYMBOLS = {
    LinkDirection.INVALID: "⊗",
    LinkDirection.ASIDE_TO_ZSIDE: "→",
    LinkDirection.ZSIDE_TO_ASIDE: "←",
    LinkDirection.BIDIRECTIONAL: "↔",
}

_DIRECTION_TEXTS = {
    LinkDirection.INVALID: "Invalid",
    LinkDirection.ASIDE_TO_ZSIDE: "A-Side to Z-Side",
    LinkDirection.ZSIDE_TO_ASIDE: "Z-Side to A-Side",
    LinkDirection.BIDIRECTIONAL: "Bidirectional",
}

_STATUS_TEXTS = {
    LinkStatus.INVALID: "Unknown",
    LinkStatus.UP: "Up",
    LinkStatus.DOWN: "Down",
    LinkStatus.PARTIAL: "Partial",
}

_STATUS_CLASSES = {
    LinkStatus.INVALID: "status-invalid",
    LinkStatus.UP: "status-up",
    LinkStatus.DOWN: "status-down",
    LinkStatus.PARTIAL: "status-partial",
}


@dataclass(frozen=True)
class Node:
    """A device placed on the map."""

    id: str
    display_name: str
    coordinate: Optional[GeoCoordinate]
    planar_position: Optional[PlanarPoint] = None  # None when the coordinate is unusable
    location_label: str = ""

    @property
    def is_renderable(self) -> bool:
        return self.planar_position is not None


@dataclass(frozen=True)
class Link:
    """A directional link between an A-side and a Z-side node."""

    id: str
    a_side_node_id: str
    z_side_node_id: str
    direction: LinkDirection = LinkDirection.INVALID
    status: LinkStatus = LinkStatus.INVALID
    aggregated_links: tuple["Link", ...] = ()


@dataclass(frozen=True)
class TopologyGraph:
    """
    Immutable snapshot of one loaded topology.

    A graph is replaced wholesale on every load; nothing mutates it in place.
    Node and link dicts keep document insertion order.
    """

    name: str = ""
    nodes: dict[str, Node] = field(default_factory=dict)
    links: dict[str, Link] = field(default_factory=dict)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def get_link(self, link_id: str) -> Optional[Link]:
        return self.links.get(link_id)

    def get(self, entity_id: str) -> Optional[Node | Link]:
        """Return the node or link with this id, or None if not found."""
        return self.nodes.get(entity_id) or self.links.get(entity_id)

    def connected_links(self, node_id: str) -> list[Link]:
        """All links touching node_id, in link insertion order."""
        return [
            link
            for link in self.links.values()
            if link.a_side_node_id == node_id or link.z_side_node_id == node_id
        ]

    def renderable_nodes(self) -> list[Node]:
        return [node for node in self.nodes.values() if node.is_renderable]

    def renderable_links(self) -> list[Link]:
        """Links whose two endpoints exist and have a planar position."""
        renderable: list[Link] = []
        for link in self.links.values():
            a_side = self.nodes.get(link.a_side_node_id)
            z_side = self.nodes.get(link.z_side_node_id)
            if a_side is None or z_side is None:
                continue
            if not (a_side.is_renderable and z_side.is_renderable):
                continue
            renderable.append(link)
        return renderable

    def endpoint_name(self, node_id: str) -> str:
        """Display name of an endpoint, falling back to the raw id."""
        node = self.nodes.get(node_id)
        if node is not None and node.display_name:
            return node.display_name
        return node_id

    def link_label(self, link: Link) -> str:
        """Human-readable 'A → Z' label using fallback names for dangling ends."""
        return (
            f"{self.endpoint_name(link.a_side_node_id)} "
            f"{link.direction.symbol} "
            f"{self.endpoint_name(link.z_side_node_id)}"
        )

    def summary(self) -> dict[str, int]:
        return {
            "nodes": len(self.nodes),
            "links": len(self.links),
            "rendered_nodes": len(self.renderable_nodes()),
            "rendered_links": len(self.renderable_links()),
        }

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.links


EMPTY_GRAPH = TopologyGraph()


def format_count(count: int) -> str:
    """Format a count with thousands separators (e.g. 1,234)."""
    return f"{count:,}"
