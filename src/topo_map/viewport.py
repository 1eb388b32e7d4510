"""
Viewport transform shared by the base map and the overlay.

The transform mirrors a CSS `transform-origin: center; transform:
scale(z) translate(dx, dy)` on the content: the pan offset is expressed
in unscaled content pixels and the scale happens around the content
center. Base image and overlay both go through transform_point() /
matrix so they can never drift apart.
"""

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np

from src.topo_map.config import ViewerConfig
from src.topo_map.models import PlanarPoint

logger = logging.getLogger(__name__)

CURSOR_GRAB = "grab"
CURSOR_GRABBING = "grabbing"
CURSOR_DEFAULT = "default"


@dataclass(frozen=True)
class ViewportState:
    """Snapshot of the zoom factor and pan offset."""

    zoom_factor: float = 1.0
    pan_dx: float = 0.0
    pan_dy: float = 0.0


class Viewport:
    """Zoom/pan state of one viewer, clamped after every mutation."""

    def __init__(self, config: ViewerConfig) -> None:
        self.min_zoom = config.min_zoom
        self.max_zoom = config.max_zoom
        self.zoom_step = config.zoom_step
        self.content_width = float(config.calibration.width)
        self.content_height = float(config.calibration.height)
        self.container_width, self.container_height = config.container_size

        self.zoom_factor = 1.0
        self.pan_dx = 0.0
        self.pan_dy = 0.0
        self.is_panning = False

        self._listeners: list[Callable[["Viewport"], None]] = []

    # --- state -----------------------------------------------------------

    @property
    def state(self) -> ViewportState:
        return ViewportState(self.zoom_factor, self.pan_dx, self.pan_dy)

    @property
    def zoom_percent(self) -> int:
        """Zoom readout, e.g. 120 for 1.2x."""
        return int(round(self.zoom_factor * 100))

    @property
    def zoom_label(self) -> str:
        return f"{self.zoom_percent}%"

    @property
    def cursor(self) -> str:
        """Pointer affordance: grab when zoomed in far enough to pan."""
        if self.is_panning:
            return CURSOR_GRABBING
        return CURSOR_GRAB if self.zoom_factor > 1 else CURSOR_DEFAULT

    @property
    def can_pan(self) -> bool:
        return self.zoom_factor > 1

    def add_listener(self, listener: Callable[["Viewport"], None]) -> None:
        """Register a callback fired after every viewport change."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener(self)

    # --- mutations -------------------------------------------------------

    def zoom_in(self) -> None:
        if self.zoom_factor >= self.max_zoom:
            return
        self.zoom_factor = min(self.zoom_factor * self.zoom_step, self.max_zoom)
        self._clamp_pan()
        logger.debug(f"Zoom in -> {self.zoom_label}")
        self._changed()

    def zoom_out(self) -> None:
        if self.zoom_factor <= self.min_zoom:
            return
        self.zoom_factor = max(self.zoom_factor / self.zoom_step, self.min_zoom)
        self._clamp_pan()
        logger.debug(f"Zoom out -> {self.zoom_label}")
        self._changed()

    def set_zoom(self, zoom_factor: float) -> None:
        self.zoom_factor = min(max(zoom_factor, self.min_zoom), self.max_zoom)
        self._clamp_pan()
        self._changed()

    def reset(self) -> None:
        """Back to 100% and no pan offset."""
        self.zoom_factor = 1.0
        self.pan_dx = 0.0
        self.pan_dy = 0.0
        self._changed()

    def pan(self, dx: float, dy: float) -> None:
        """
        Move the content by a screen-space delta.

        The delta is divided by the zoom factor so perceived pan speed does
        not depend on zoom, then the offset is clamped.
        """
        self.pan_dx += dx / self.zoom_factor
        self.pan_dy += dy / self.zoom_factor
        self._clamp_pan()
        self._changed()

    def set_container_size(self, width: float, height: float) -> None:
        self.container_width = float(width)
        self.container_height = float(height)
        self._clamp_pan()
        self._changed()

    def max_pan(self) -> tuple[float, float]:
        """Largest allowed |pan| per axis, in content pixels."""
        zoom = self.zoom_factor
        max_x = max(0.0, (self.content_width * zoom - self.container_width) / 2) / zoom
        max_y = max(0.0, (self.content_height * zoom - self.container_height) / 2) / zoom
        return max_x, max_y

    def _clamp_pan(self) -> None:
        max_x, max_y = self.max_pan()
        self.pan_dx = min(max(self.pan_dx, -max_x), max_x)
        self.pan_dy = min(max(self.pan_dy, -max_y), max_y)

    # --- transform -------------------------------------------------------

    @property
    def origin(self) -> tuple[float, float]:
        return (self.content_width / 2, self.content_height / 2)

    @property
    def matrix(self) -> np.ndarray:
        """3x3 homogeneous matrix: T(origin) . S(zoom) . T(pan) . T(-origin)."""
        ox, oy = self.origin
        zoom = self.zoom_factor
        return np.array([
            [zoom, 0.0, ox + zoom * (self.pan_dx - ox)],
            [0.0, zoom, oy + zoom * (self.pan_dy - oy)],
            [0.0, 0.0, 1.0],
        ])

    def transform_point(self, point: PlanarPoint) -> PlanarPoint:
        """Content pixels -> screen pixels."""
        x, y, _ = self.matrix @ np.array([point.x, point.y, 1.0])
        return PlanarPoint(float(x), float(y))

    def inverse_point(self, point: PlanarPoint) -> PlanarPoint:
        """Screen pixels -> content pixels."""
        x, y, _ = np.linalg.inv(self.matrix) @ np.array([point.x, point.y, 1.0])
        return PlanarPoint(float(x), float(y))

    def content_bounds(self) -> tuple[float, float, float, float]:
        """Screen-space (left, top, right, bottom) of the transformed content."""
        top_left = self.transform_point(PlanarPoint(0.0, 0.0))
        bottom_right = self.transform_point(PlanarPoint(self.content_width, self.content_height))
        return (top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    def css_transform(self) -> str:
        """The same transform as a CSS string, for HTML consumers."""
        return f"scale({self.zoom_factor}) translate({self.pan_dx}px, {self.pan_dy}px)"
