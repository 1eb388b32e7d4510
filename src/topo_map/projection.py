"""
Latitude/longitude to base-map pixel projection.

The base map is a Robinson projection. Instead of the analytic formula we
interpolate the standard Robinson table (PLEN = parallel length,
PDFE = parallel distance from equator) in 5 degree steps and scale the
result with per-asset calibration constants. Hemispheres use separate
scales because the asset is not perfectly symmetric.
"""

import logging
import math
from typing import Optional

import numpy as np

from src.topo_map.config import MapCalibration
from src.topo_map.models import GeoCoordinate, PlanarPoint

logger = logging.getLogger(__name__)

# Robinson table rows for latitude 0..90 in 5 degree steps
ROBINSON_LATITUDES = np.arange(0.0, 95.0, 5.0)
ROBINSON_PLEN = np.array([
    1.0000, 0.9986, 0.9954, 0.9900, 0.9822, 0.9730, 0.9600, 0.9427, 0.9216, 0.8962,
    0.8679, 0.8350, 0.7986, 0.7597, 0.7186, 0.6732, 0.6213, 0.5722, 0.5322,
])
ROBINSON_PDFE = np.array([
    0.0000, 0.0620, 0.1240, 0.1860, 0.2480, 0.3100, 0.3720, 0.4340, 0.4958, 0.5571,
    0.6176, 0.6769, 0.7346, 0.7903, 0.8435, 0.8936, 0.9394, 0.9761, 1.0000,
])

DEFAULT_CALIBRATION = MapCalibration()


def robinson_factors(latitude: float) -> tuple[float, float]:
    """
    Interpolate (plen, pdfe) for a latitude.

    Only the absolute latitude matters; values beyond 90 degrees clamp to
    the polar row.

    Args:
        latitude: Latitude in degrees

    Returns:
        Tuple of (length scale, displacement factor)
    """
    abs_lat = min(abs(latitude), 90.0)
    plen = float(np.interp(abs_lat, ROBINSON_LATITUDES, ROBINSON_PLEN))
    pdfe = float(np.interp(abs_lat, ROBINSON_LATITUDES, ROBINSON_PDFE))
    return plen, pdfe


def _is_usable(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def project_lat_lon(
    latitude: Optional[float],
    longitude: Optional[float],
    calibration: MapCalibration = DEFAULT_CALIBRATION,
) -> Optional[PlanarPoint]:
    """
    Project a latitude/longitude pair onto the calibrated base map.

    Args:
        latitude: Latitude in degrees (None/NaN allowed)
        longitude: Longitude in degrees (None/NaN allowed)
        calibration: Pixel calibration of the base-map asset

    Returns:
        PlanarPoint in asset pixels, or None if either input is missing or
        not a finite number. Callers must skip None, never substitute a point.
    """
    if not (_is_usable(latitude) and _is_usable(longitude)):
        return None

    lat = float(latitude)
    lon = float(longitude)
    plen, pdfe = robinson_factors(lat)

    x_scale = calibration.east_scale if lon >= 0 else calibration.west_scale
    x = calibration.center_x + (lon / 180.0) * x_scale * plen

    if lat >= 0:
        y = calibration.equator_y - pdfe * calibration.north_scale
    else:
        y = calibration.equator_y + pdfe * calibration.south_scale

    return PlanarPoint(x=x, y=y)


def project(
    coordinate: Optional[GeoCoordinate],
    calibration: MapCalibration = DEFAULT_CALIBRATION,
) -> Optional[PlanarPoint]:
    """Project a GeoCoordinate; None in, None out."""
    if coordinate is None:
        return None
    return project_lat_lon(coordinate.latitude, coordinate.longitude, calibration)
