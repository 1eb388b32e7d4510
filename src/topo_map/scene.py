"""
Headless scene primitives.

Rendering is split from the output backend: the renderer only talks to
the small Scene capability set (add_marker, add_stroke, clear, hit_test).
SceneBuffer keeps everything in memory, which is enough for tests and is
what the Plotly figure builder reads from.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from src.topo_map.models import PlanarPoint

logger = logging.getLogger(__name__)

MARKER_HIT_TOLERANCE = 2.0   # Extra pixels around a marker's radius
STROKE_HIT_TOLERANCE = 4.0   # Max distance from a stroke's segment

KIND_NODE = "node"
KIND_LINK = "link"


@dataclass
class SceneMarker:
    """A node marker in screen space."""

    node_id: str
    position: PlanarPoint
    label: str
    radius: float = 6.0
    color: str = ""
    css_class: str = "node"
    opacity: float = 1.0
    hover_text: str = ""
    is_reference: bool = False  # Origin dot etc., not a topology node


@dataclass
class SceneStroke:
    """A link line in screen space, with optional arrowheads."""

    link_id: str
    start: PlanarPoint  # A-side end
    end: PlanarPoint    # Z-side end
    color: str
    css_classes: tuple[str, ...] = ()
    arrow_at_start: bool = False
    arrow_at_end: bool = False
    width: float = 2.0
    opacity: float = 0.7
    hover_text: str = ""


@dataclass(frozen=True)
class HitTarget:
    """What a pointer position landed on."""

    kind: str  # KIND_NODE or KIND_LINK
    id: str


class Scene(Protocol):
    """Minimal drawing surface the renderer needs."""

    def add_marker(self, marker: SceneMarker) -> None: ...

    def add_stroke(self, stroke: SceneStroke) -> None: ...

    def clear(self) -> None: ...

    def hit_test(self, x: float, y: float) -> Optional[HitTarget]: ...


def distance_to_segment(point: PlanarPoint, start: PlanarPoint, end: PlanarPoint) -> float:
    """Euclidean distance from a point to the segment start-end."""
    p = np.array([point.x, point.y])
    a = np.array([start.x, start.y])
    b = np.array([end.x, end.y])
    ab = b - a
    length_sq = float(np.dot(ab, ab))
    if length_sq == 0.0:
        return float(np.linalg.norm(p - a))
    t = float(np.clip(np.dot(p - a, ab) / length_sq, 0.0, 1.0))
    return float(np.linalg.norm(p - (a + t * ab)))


@dataclass
class SceneBuffer:
    """In-memory Scene implementation with hit-testing."""

    markers: list[SceneMarker] = field(default_factory=list)
    strokes: list[SceneStroke] = field(default_factory=list)

    def add_marker(self, marker: SceneMarker) -> None:
        self.markers.append(marker)

    def add_stroke(self, stroke: SceneStroke) -> None:
        self.strokes.append(stroke)

    def clear(self) -> None:
        self.markers.clear()
        self.strokes.clear()

    def hit_test(self, x: float, y: float) -> Optional[HitTarget]:
        """
        Find the element under a screen position.

        Markers are drawn above strokes, so they win; within a layer the
        last-drawn element wins.
        """
        point = PlanarPoint(x, y)
        for marker in reversed(self.markers):
            if marker.is_reference:
                continue
            dx = marker.position.x - x
            dy = marker.position.y - y
            if (dx * dx + dy * dy) ** 0.5 <= marker.radius + MARKER_HIT_TOLERANCE:
                return HitTarget(KIND_NODE, marker.node_id)

        for stroke in reversed(self.strokes):
            if distance_to_segment(point, stroke.start, stroke.end) <= STROKE_HIT_TOLERANCE:
                return HitTarget(KIND_LINK, stroke.link_id)

        return None

    def node_markers(self) -> list[SceneMarker]:
        return [marker for marker in self.markers if not marker.is_reference]

    def marker_for(self, node_id: str) -> Optional[SceneMarker]:
        for marker in self.markers:
            if marker.node_id == node_id and not marker.is_reference:
                return marker
        return None

    def stroke_for(self, link_id: str) -> Optional[SceneStroke]:
        for stroke in self.strokes:
            if stroke.link_id == link_id:
                return stroke
        return None
