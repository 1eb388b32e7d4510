"""Draw a TopologyGraph into a Scene through the current viewport."""

import logging
from typing import Optional

from src.topo_map.config import MapCalibration
from src.topo_map.models import LinkDirection, LinkStatus, Node, TopologyGraph
from src.topo_map.projection import DEFAULT_CALIBRATION, project_lat_lon
from src.topo_map.scene import Scene, SceneBuffer, SceneMarker, SceneStroke
from src.topo_map.viewport import Viewport

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    LinkStatus.UP: "#00c853",       # green
    LinkStatus.DOWN: "#ff3d00",     # red
    LinkStatus.PARTIAL: "#ffc107",  # amber
    LinkStatus.INVALID: "#757575",  # gray
}

NODE_COLOR = "#1e88e5"
ORIGIN_COLOR = "red"

NODE_RADIUS = 6.0
NODE_RADIUS_SELECTED = 8.0
NODE_OPACITY = 1.0
NODE_OPACITY_DIMMED = 0.3

LINK_WIDTH = 2.0
LINK_WIDTH_SELECTED = 4.0
LINK_OPACITY = 0.7
LINK_OPACITY_SELECTED = 1.0
LINK_OPACITY_DIMMED = 0.2

# direction -> (arrow at A-side end, arrow at Z-side end)
ARROW_PLACEMENT = {
    LinkDirection.INVALID: (False, False),
    LinkDirection.ASIDE_TO_ZSIDE: (False, True),
    LinkDirection.ZSIDE_TO_ASIDE: (True, False),
    LinkDirection.BIDIRECTIONAL: (True, True),
}


def status_color(status: LinkStatus) -> str:
    return STATUS_COLORS.get(status, STATUS_COLORS[LinkStatus.INVALID])


def link_css_classes(direction: LinkDirection, status: LinkStatus) -> tuple[str, ...]:
    return ("link", f"direction-{int(direction)}", f"status-{int(status)}")


def _node_hover_text(node: Node) -> str:
    text = f"<b>{node.display_name}</b><br>ID: {node.id}<br>"
    text += f"Location: {node.location_label or 'N/A'}"
    if node.coordinate is not None:
        text += f"<br>Lat/Lon: ({node.coordinate.latitude:.4f}, {node.coordinate.longitude:.4f})"
    return text


class SceneRenderer:
    """
    Turns a graph plus viewport into scene markers and strokes.

    render() always clears first, so calling it twice with the same inputs
    gives the same scene.
    """

    def __init__(
        self,
        calibration: MapCalibration = DEFAULT_CALIBRATION,
        show_origin: bool = False,
    ) -> None:
        self.calibration = calibration
        self.show_origin = show_origin

    def render(self, graph: TopologyGraph, viewport: Viewport, scene: Scene) -> None:
        """
        Redraw the scene.

        Links are drawn before nodes so markers sit on top. Nodes without a
        position and links with an unresolved or unplaced endpoint are skipped.
        """
        scene.clear()

        screen_positions = {
            node.id: viewport.transform_point(node.planar_position)
            for node in graph.renderable_nodes()
        }

        drawn_links = 0
        for link in graph.links.values():
            start = screen_positions.get(link.a_side_node_id)
            end = screen_positions.get(link.z_side_node_id)
            if start is None or end is None:
                logger.debug(f"Skipping link {link.id}: endpoint not on the map")
                continue

            arrow_at_start, arrow_at_end = ARROW_PLACEMENT[link.direction]
            scene.add_stroke(
                SceneStroke(
                    link_id=link.id,
                    start=start,
                    end=end,
                    color=status_color(link.status),
                    css_classes=link_css_classes(link.direction, link.status),
                    arrow_at_start=arrow_at_start,
                    arrow_at_end=arrow_at_end,
                    width=LINK_WIDTH,
                    opacity=LINK_OPACITY,
                    hover_text=(
                        f"<b>{graph.link_label(link)}</b><br>ID: {link.id}<br>"
                        f"Direction: {link.direction.text}<br>Status: {link.status.text}"
                    ),
                )
            )
            drawn_links += 1

        for node_id, position in screen_positions.items():
            node = graph.nodes[node_id]
            scene.add_marker(
                SceneMarker(
                    node_id=node.id,
                    position=position,
                    label=node.display_name,
                    radius=NODE_RADIUS,
                    color=NODE_COLOR,
                    opacity=NODE_OPACITY,
                    hover_text=_node_hover_text(node),
                )
            )

        if self.show_origin:
            self._draw_origin(viewport, scene)

        logger.debug(f"Rendered {len(screen_positions)} nodes and {drawn_links} links")

    def _draw_origin(self, viewport: Viewport, scene: Scene) -> None:
        """Reference dot at latitude 0 / longitude 0 for calibration checks."""
        origin = project_lat_lon(0.0, 0.0, self.calibration)
        scene.add_marker(
            SceneMarker(
                node_id="",
                position=viewport.transform_point(origin),
                label="0/0",
                radius=8.0,
                color=ORIGIN_COLOR,
                css_class="origin",
                is_reference=True,
            )
        )


def highlight_node(scene: SceneBuffer, node_id: str) -> bool:
    """Dim every other node marker and enlarge the selected one."""
    clear_highlight(scene)
    found = False
    for marker in scene.node_markers():
        if marker.node_id == node_id:
            marker.opacity = NODE_OPACITY
            marker.radius = NODE_RADIUS_SELECTED
            found = True
        else:
            marker.opacity = NODE_OPACITY_DIMMED
    return found


def highlight_link(scene: SceneBuffer, link_id: str) -> bool:
    """Dim every other link stroke and thicken the selected one."""
    clear_highlight(scene)
    found = False
    for stroke in scene.strokes:
        if stroke.link_id == link_id:
            stroke.opacity = LINK_OPACITY_SELECTED
            stroke.width = LINK_WIDTH_SELECTED
            found = True
        else:
            stroke.opacity = LINK_OPACITY_DIMMED
    return found


def clear_highlight(scene: SceneBuffer) -> None:
    """Restore default opacity and size on all markers and strokes."""
    for marker in scene.node_markers():
        marker.opacity = NODE_OPACITY
        marker.radius = NODE_RADIUS
    for stroke in scene.strokes:
        stroke.opacity = LINK_OPACITY
        stroke.width = LINK_WIDTH


def arrow_color(stroke: SceneStroke) -> Optional[str]:
    """Arrowheads share the stroke's status color; None when there are none."""
    if not (stroke.arrow_at_start or stroke.arrow_at_end):
        return None
    return stroke.color
