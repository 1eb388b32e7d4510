"""Plotly-based output for a rendered topology scene."""

import logging
import math
from typing import Optional

import plotly.graph_objects as go

from src.topo_map.models import LinkStatus, PlanarPoint
from src.topo_map.renderer import STATUS_COLORS, arrow_color
from src.topo_map.scene import SceneBuffer, SceneMarker, SceneStroke
from src.topo_map.viewport import Viewport

logger = logging.getLogger(__name__)

ARROW_LENGTH = 18.0  # Pixels of shaft drawn under each arrowhead

# Legend group per link color, so the toggle menu can work per status
_STATUS_BY_COLOR = {color: status for status, color in STATUS_COLORS.items()}


def create_figure(
    scene: SceneBuffer,
    viewport: Viewport,
    title: str = "Network Topology",
    base_map_source: Optional[str] = None,
    show_labels: bool = True,
) -> go.Figure:
    """
    Create an interactive 2D Plotly figure from a rendered scene.

    The scene is already in screen space. The base map image goes through
    the same viewport transform so it stays aligned with the overlay.

    Args:
        scene: Scene filled by SceneRenderer.render()
        viewport: Viewport the scene was rendered with
        title: Figure title
        base_map_source: Path or URL of the base-map image, or None
        show_labels: Whether to print node names next to markers

    Returns:
        Plotly Figure object ready for display
    """
    fig = go.Figure()

    # Links first so nodes sit on top
    _add_links_to_figure(fig, scene.strokes)
    _add_arrowheads_to_figure(fig, scene.strokes)

    node_markers = scene.node_markers()
    if node_markers:
        _add_nodes_to_figure(fig, node_markers, show_labels=show_labels)

    reference_markers = [marker for marker in scene.markers if marker.is_reference]
    if reference_markers:
        _add_reference_markers_to_figure(fig, reference_markers)

    if base_map_source:
        _add_base_map(fig, viewport, base_map_source)

    width, height = viewport.container_width, viewport.container_height
    fig.update_layout(
        title=f"{title} ({viewport.zoom_label})",
        xaxis=dict(range=[0, width], visible=False, fixedrange=True),
        yaxis=dict(range=[height, 0], visible=False, fixedrange=True, scaleanchor="x"),
        plot_bgcolor="white",
        showlegend=True,
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="left",
            x=0.01,
            itemclick="toggle",
            itemdoubleclick="toggleothers",
        ),
        margin=dict(l=0, r=0, t=80, b=0),
        updatemenus=_create_toggle_buttons(fig),
        dragmode=False,
    )

    logger.debug(f"Figure built: {len(fig.data)} traces, {len(fig.layout.annotations)} arrowheads")
    return fig


def _legend_name(stroke: SceneStroke) -> str:
    status = _STATUS_BY_COLOR.get(stroke.color, LinkStatus.INVALID)
    return f"Links ({status.text})"


def _add_links_to_figure(fig: go.Figure, strokes: list[SceneStroke]) -> None:
    """One trace per link so each keeps its own style and hover text."""
    seen_groups: set[str] = set()
    for stroke in strokes:
        group = _legend_name(stroke)
        fig.add_trace(
            go.Scatter(
                x=[stroke.start.x, stroke.end.x],
                y=[stroke.start.y, stroke.end.y],
                mode="lines",
                line=dict(color=stroke.color, width=stroke.width),
                opacity=stroke.opacity,
                hovertext=[stroke.hover_text, stroke.hover_text],
                hoverinfo="text",
                customdata=[stroke.link_id, stroke.link_id],
                name=group,
                legendgroup=group,
                showlegend=group not in seen_groups,
            )
        )
        seen_groups.add(group)


def _arrow_tail(tip: PlanarPoint, toward: PlanarPoint) -> Optional[PlanarPoint]:
    """Point ARROW_LENGTH pixels from tip in the direction of toward."""
    dx = toward.x - tip.x
    dy = toward.y - tip.y
    length = math.hypot(dx, dy)
    if length == 0:
        return None
    shaft = min(ARROW_LENGTH, length)
    return PlanarPoint(tip.x + dx / length * shaft, tip.y + dy / length * shaft)


def _add_arrowheads_to_figure(fig: go.Figure, strokes: list[SceneStroke]) -> None:
    """Arrowheads are annotations pointing at the node they arrive at."""
    for stroke in strokes:
        color = arrow_color(stroke)
        if color is None:
            continue

        ends = []
        if stroke.arrow_at_start:
            ends.append((stroke.start, stroke.end))
        if stroke.arrow_at_end:
            ends.append((stroke.end, stroke.start))

        for tip, toward in ends:
            tail = _arrow_tail(tip, toward)
            if tail is None:
                continue
            fig.add_annotation(
                x=tip.x,
                y=tip.y,
                ax=tail.x,
                ay=tail.y,
                xref="x",
                yref="y",
                axref="x",
                ayref="y",
                text="",
                showarrow=True,
                arrowhead=2,
                arrowsize=1.2,
                arrowwidth=stroke.width,
                arrowcolor=color,
                standoff=6,
                opacity=stroke.opacity,
                name=f"arrow-{stroke.link_id}",
            )


def _add_nodes_to_figure(
    fig: go.Figure,
    markers: list[SceneMarker],
    show_labels: bool = True,
) -> None:
    """Add node markers with hover information."""
    mode = "markers+text" if show_labels else "markers"
    fig.add_trace(
        go.Scatter(
            x=[marker.position.x for marker in markers],
            y=[marker.position.y for marker in markers],
            mode=mode,
            marker=dict(
                size=[marker.radius * 2 for marker in markers],
                color=[marker.color for marker in markers],
                opacity=[marker.opacity for marker in markers],
                line=dict(color="white", width=1),
            ),
            text=[marker.label if show_labels else "" for marker in markers],
            textposition="top center",
            textfont=dict(size=12, color="black"),
            hovertext=[marker.hover_text for marker in markers],
            hoverinfo="text",
            customdata=[marker.node_id for marker in markers],
            name="Nodes",
            legendgroup="Nodes",
        )
    )


def _add_reference_markers_to_figure(fig: go.Figure, markers: list[SceneMarker]) -> None:
    fig.add_trace(
        go.Scatter(
            x=[marker.position.x for marker in markers],
            y=[marker.position.y for marker in markers],
            mode="markers+text",
            marker=dict(
                size=[marker.radius * 2 for marker in markers],
                color=[marker.color for marker in markers],
                line=dict(color="white", width=2),
            ),
            text=[marker.label for marker in markers],
            textposition="top center",
            textfont=dict(size=14, color="red"),
            hoverinfo="skip",
            name="Origin",
            legendgroup="Origin",
        )
    )


def _add_base_map(fig: go.Figure, viewport: Viewport, source: str) -> None:
    """Place the base-map image under the same transform as the overlay."""
    left, top, right, bottom = viewport.content_bounds()
    fig.add_layout_image(
        dict(
            source=source,
            xref="x",
            yref="y",
            x=left,
            y=top,
            sizex=right - left,
            sizey=bottom - top,
            xanchor="left",
            yanchor="top",
            sizing="stretch",
            layer="below",
        )
    )


def _create_toggle_buttons(fig: go.Figure) -> list[dict]:
    """
    Create a dropdown menu for visibility control.

    Traces sharing a legend group are toggled together. Uses explicit
    visibility arrays since Plotly doesn't support "toggle".
    """
    groups: list[str] = []
    for trace in fig.data:
        if trace.legendgroup not in groups:
            groups.append(trace.legendgroup)
    num_traces = len(fig.data)

    buttons = [
        dict(
            label="All Visible",
            method="restyle",
            args=[{"visible": [True] * num_traces}],
        ),
        dict(
            label="All Hidden",
            method="restyle",
            args=[{"visible": ["legendonly"] * num_traces}],
        ),
    ]

    # "Only X" options - show a single group
    for group in groups:
        visible = [True if trace.legendgroup == group else "legendonly" for trace in fig.data]
        buttons.append(
            dict(
                label=f"Only {group}",
                method="restyle",
                args=[{"visible": visible}],
            )
        )

    # "Hide X" options - hide a single group
    for group in groups:
        visible = ["legendonly" if trace.legendgroup == group else True for trace in fig.data]
        buttons.append(
            dict(
                label=f"Hide {group}",
                method="restyle",
                args=[{"visible": visible}],
            )
        )

    return [
        dict(
            type="dropdown",
            direction="down",
            buttons=buttons,
            pad={"r": 10, "t": 10},
            showactive=True,
            x=0.0,
            xanchor="left",
            y=1.15,
            yanchor="top",
        )
    ]


def show_figure(fig: go.Figure) -> None:
    """Display figure in browser."""
    fig.show()


def export_html(fig: go.Figure, output_path: str) -> None:
    """Export figure as standalone HTML file."""
    fig.write_html(output_path, include_plotlyjs=True, full_html=True)
