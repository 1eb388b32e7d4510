"""Topology Map - network topology drawn on a calibrated world map."""

from src.topo_map.config import MapCalibration, ViewerConfig, load_config
from src.topo_map.controller import SelectionEvent, TopologyViewer
from src.topo_map.loader import load_topology_file, parse_topology
from src.topo_map.models import (
    GeoCoordinate,
    Link,
    LinkDirection,
    LinkStatus,
    Node,
    PlanarPoint,
    TopologyGraph,
)
from src.topo_map.projection import project, project_lat_lon
from src.topo_map.viewer import create_figure

__all__ = [
    "MapCalibration",
    "ViewerConfig",
    "load_config",
    "SelectionEvent",
    "TopologyViewer",
    "load_topology_file",
    "parse_topology",
    "GeoCoordinate",
    "Link",
    "LinkDirection",
    "LinkStatus",
    "Node",
    "PlanarPoint",
    "TopologyGraph",
    "project",
    "project_lat_lon",
    "create_figure",
]
