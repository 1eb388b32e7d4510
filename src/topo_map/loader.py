"""Load topology documents and normalize them into a TopologyGraph."""

import json
import logging
import os
from typing import Any, Iterable, Optional

from src.topo_map.config import MapCalibration
from src.topo_map.models import (
    GeoCoordinate,
    Link,
    LinkDirection,
    LinkStatus,
    Node,
    TopologyGraph,
)
from src.topo_map.projection import DEFAULT_CALIBRATION, project

logger = logging.getLogger(__name__)

# Field aliases, first match wins. Later entries are legacy dashboard names.
NODE_NAME_FIELDS = ("displayId", "displayName", "nodeId", "name")
NODE_LOCATION_FIELDS = ("locationLabel", "location")
NODE_ID_FIELDS = ("id", "globalL8id", "nodeId")
LINK_ID_FIELDS = ("id", "linkId")
LINK_A_SIDE_FIELDS = ("aSideNodeId", "aside", "aSide")
LINK_Z_SIDE_FIELDS = ("zSideNodeId", "zside", "zSide")
LINK_AGGREGATED_FIELDS = ("aggregatedLinks", "aggregated")


def _first(record: dict, names: Iterable[str], default: Any = None) -> Any:
    for name in names:
        value = record.get(name)
        if value is not None and value != "":
            return value
    return default


def _entries(collection: Any, id_fields: tuple[str, ...], kind: str) -> list[tuple[str, dict]]:
    """
    Turn a mapping (id -> record) or a list of records into (id, record) pairs.

    Anything else is treated as an empty collection.
    """
    if isinstance(collection, dict):
        items = list(collection.items())
    elif isinstance(collection, list):
        items = []
        for record in collection:
            if isinstance(record, dict):
                items.append((_first(record, id_fields), record))
    else:
        if collection is not None:
            logger.warning(f"Ignoring malformed {kind} collection of type {type(collection).__name__}")
        return []

    entries: list[tuple[str, dict]] = []
    for key, record in items:
        if not isinstance(record, dict):
            logger.warning(f"Skipping malformed {kind} entry {key!r}")
            continue
        if key is None or key == "":
            logger.warning(f"Skipping {kind} without id")
            continue
        entries.append((str(key), record))
    return entries


def _parse_coordinate(record: dict) -> Optional[GeoCoordinate]:
    """Read a nested 'coordinate' object or flat latitude/longitude fields."""
    source = record.get("coordinate") or record.get("coordinates")
    if not isinstance(source, dict):
        source = record

    latitude = source.get("latitude")
    longitude = source.get("longitude")
    if latitude is None or longitude is None:
        return None
    try:
        return GeoCoordinate(latitude=float(latitude), longitude=float(longitude))
    except (TypeError, ValueError, OverflowError):
        logger.debug(f"Unparseable coordinate ({latitude!r}, {longitude!r})")
        return None


def parse_node(node_id: str, record: dict, calibration: MapCalibration = DEFAULT_CALIBRATION) -> Node:
    """Build a Node, deriving its planar position from the projection."""
    coordinate = _parse_coordinate(record)
    position = project(coordinate, calibration)
    if position is None:
        logger.debug(f"Node {node_id} has no usable coordinate; it will not be drawn")

    return Node(
        id=node_id,
        display_name=str(_first(record, NODE_NAME_FIELDS, node_id)),
        coordinate=coordinate,
        planar_position=position,
        location_label=str(_first(record, NODE_LOCATION_FIELDS, "")),
    )


def parse_link(link_id: str, record: dict, nested: bool = False) -> Link:
    """
    Build a Link from a wire record.

    Aggregated links are flattened one level deep; aggregates of aggregates
    are ignored.
    """
    aggregated: tuple[Link, ...] = ()
    if not nested:
        raw_aggregated = _first(record, LINK_AGGREGATED_FIELDS)
        aggregated = tuple(
            parse_link(child_id, child, nested=True)
            for child_id, child in _entries(raw_aggregated, LINK_ID_FIELDS, "aggregated link")
        )

    return Link(
        id=link_id,
        a_side_node_id=str(_first(record, LINK_A_SIDE_FIELDS, "")),
        z_side_node_id=str(_first(record, LINK_Z_SIDE_FIELDS, "")),
        direction=LinkDirection.from_code(record.get("direction")),
        status=LinkStatus.from_code(record.get("status")),
        aggregated_links=aggregated,
    )


def parse_topology(
    document: Any,
    calibration: MapCalibration = DEFAULT_CALIBRATION,
    name: Optional[str] = None,
) -> TopologyGraph:
    """
    Normalize a parsed topology document into a TopologyGraph.

    Never raises on content problems: a missing or malformed document
    degrades to an empty graph, malformed entries are skipped.

    Args:
        document: Parsed JSON document (dict) or None
        calibration: Calibration used to derive node positions
        name: Topology name; defaults to the document's 'name' field

    Returns:
        A new TopologyGraph
    """
    if not isinstance(document, dict):
        if document is not None:
            logger.warning(f"Topology document is not an object ({type(document).__name__}); using empty graph")
        return TopologyGraph(name=name or "")

    nodes: dict[str, Node] = {}
    for node_id, record in _entries(document.get("nodes"), NODE_ID_FIELDS, "node"):
        if node_id in nodes:
            logger.warning(f"Duplicate node id {node_id}; keeping the first")
            continue
        nodes[node_id] = parse_node(node_id, record, calibration)

    links: dict[str, Link] = {}
    dangling = 0
    for link_id, record in _entries(document.get("links"), LINK_ID_FIELDS, "link"):
        if link_id in links:
            logger.warning(f"Duplicate link id {link_id}; keeping the first")
            continue
        link = parse_link(link_id, record)
        if link.a_side_node_id not in nodes or link.z_side_node_id not in nodes:
            dangling += 1
        links[link_id] = link

    graph = TopologyGraph(
        name=name if name is not None else str(document.get("name") or ""),
        nodes=nodes,
        links=links,
    )

    unplaced = len(nodes) - len(graph.renderable_nodes())
    logger.info(
        f"Parsed topology '{graph.name}': {len(nodes)} nodes, {len(links)} links "
        f"({unplaced} nodes without coordinates, {dangling} dangling links)"
    )
    return graph


def load_topology_file(
    path: str,
    calibration: MapCalibration = DEFAULT_CALIBRATION,
) -> TopologyGraph:
    """
    Load a topology document from a JSON file.

    Args:
        path: Path to the JSON document

    Returns:
        Parsed TopologyGraph, named after the document or the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Topology file not found: {path}")

    with open(path, "r", encoding="utf-8") as topology_file:
        try:
            document = json.load(topology_file)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse topology file: {e}") from e

    default_name = os.path.splitext(os.path.basename(path))[0]
    name = document.get("name") if isinstance(document, dict) else None
    return parse_topology(document, calibration, name=name or default_name)
