"""
Viewer configuration.

Calibration constants for the bundled base map plus the tunables of a
single viewer instance. Values come from dataclass defaults, optionally
overridden by TOPO_MAP_* environment variables (a .env file is honoured).

Usage:
    from src.topo_map.config import load_config
    config = load_config()
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Bundled asset: Simplemaps Robinson world map, viewBox 0 0 2000 857
ASSET_WIDTH = 2000
ASSET_HEIGHT = 857

DEFAULT_PAGE_SIZE = 50
DEFAULT_ZOOM_STEP = 1.2
DEFAULT_MIN_ZOOM = 0.5
DEFAULT_MAX_ZOOM = 5.0
DEFAULT_HIGHLIGHT_TIMEOUT = 2.0      # Seconds before dimmed elements are restored
DEFAULT_SEARCH_QUIET_PERIOD = 0.3    # Seconds of typing silence before filtering
DEFAULT_DRAG_THRESHOLD = 3.0         # Pixels of movement that turn a press into a drag

ENV_PREFIX = "TOPO_MAP_"


@dataclass(frozen=True)
class MapCalibration:
    """Pixel calibration of one base-map asset.

    These are empirical values read off the asset, not physical constants.
    A different base map needs a different calibration.
    """

    center_x: float = 986.0      # X of longitude 0
    equator_y: float = 497.0     # Y of the equator
    east_scale: float = 1020.0   # Pixels from center_x to 180E (plen=1)
    west_scale: float = 1000.0   # Pixels from center_x to 180W (plen=1)
    north_scale: float = 511.0   # Pixels from equator to the north pole (pdfe=1)
    south_scale: float = 528.0   # Pixels from equator to the south pole (pdfe=1)
    width: float = ASSET_WIDTH
    height: float = ASSET_HEIGHT


@dataclass(frozen=True)
class ViewerConfig:
    """Settings owned by one viewer instance."""

    calibration: MapCalibration = field(default_factory=MapCalibration)
    min_zoom: float = DEFAULT_MIN_ZOOM
    max_zoom: float = DEFAULT_MAX_ZOOM
    zoom_step: float = DEFAULT_ZOOM_STEP
    container_width: Optional[float] = None
    container_height: Optional[float] = None
    page_size: int = DEFAULT_PAGE_SIZE
    highlight_timeout: float = DEFAULT_HIGHLIGHT_TIMEOUT
    search_quiet_period: float = DEFAULT_SEARCH_QUIET_PERIOD
    drag_threshold: float = DEFAULT_DRAG_THRESHOLD
    base_map_source: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 < self.min_zoom <= 1 <= self.max_zoom:
            raise ValueError(
                f"Invalid zoom bounds: min_zoom={self.min_zoom}, max_zoom={self.max_zoom}"
            )
        if self.zoom_step <= 1:
            raise ValueError(f"zoom_step must be greater than 1, got {self.zoom_step}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {self.page_size}")

    @property
    def container_size(self) -> tuple[float, float]:
        """Container size, defaulting to the asset size (overlay synced to the image)."""
        width = self.container_width if self.container_width is not None else self.calibration.width
        height = self.container_height if self.container_height is not None else self.calibration.height
        return (float(width), float(height))


# Environment variable suffix -> (target, field name, parser)
_ENV_FIELDS = {
    "CENTER_X": ("calibration", "center_x", float),
    "EQUATOR_Y": ("calibration", "equator_y", float),
    "EAST_SCALE": ("calibration", "east_scale", float),
    "WEST_SCALE": ("calibration", "west_scale", float),
    "NORTH_SCALE": ("calibration", "north_scale", float),
    "SOUTH_SCALE": ("calibration", "south_scale", float),
    "MAP_WIDTH": ("calibration", "width", float),
    "MAP_HEIGHT": ("calibration", "height", float),
    "MIN_ZOOM": ("viewer", "min_zoom", float),
    "MAX_ZOOM": ("viewer", "max_zoom", float),
    "ZOOM_STEP": ("viewer", "zoom_step", float),
    "CONTAINER_WIDTH": ("viewer", "container_width", float),
    "CONTAINER_HEIGHT": ("viewer", "container_height", float),
    "PAGE_SIZE": ("viewer", "page_size", int),
    "HIGHLIGHT_TIMEOUT": ("viewer", "highlight_timeout", float),
    "SEARCH_QUIET_PERIOD": ("viewer", "search_quiet_period", float),
    "DRAG_THRESHOLD": ("viewer", "drag_threshold", float),
    "BASE_MAP": ("viewer", "base_map_source", str),
}


def load_config(env_file: Optional[str] = None) -> ViewerConfig:
    """
    Build a ViewerConfig from defaults and TOPO_MAP_* environment variables.

    Args:
        env_file: Optional path to a .env file. When omitted, python-dotenv
            searches for a .env file from the working directory upwards.
            Variables already present in the environment win.

    Returns:
        A validated ViewerConfig

    Raises:
        ValueError: If a variable cannot be parsed or the resulting
            settings are inconsistent
    """
    load_dotenv(env_file)

    calibration_values: dict = {}
    viewer_values: dict = {}

    for suffix, (target, name, parse) in _ENV_FIELDS.items():
        raw = os.getenv(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        try:
            value = parse(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}") from e

        if target == "calibration":
            calibration_values[name] = value
        else:
            viewer_values[name] = value
        logger.debug(f"Config override {ENV_PREFIX}{suffix}={raw}")

    calibration = replace(MapCalibration(), **calibration_values)
    return ViewerConfig(calibration=calibration, **viewer_values)
