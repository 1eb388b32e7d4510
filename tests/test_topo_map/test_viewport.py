"""Tests for the viewport transform (zoom, clamped pan)."""

import numpy as np
import pytest

from src.topo_map.config import ViewerConfig
from src.topo_map.models import PlanarPoint
from src.topo_map.viewport import Viewport


@pytest.fixture
def viewport() -> Viewport:
    return Viewport(ViewerConfig())


class TestZoom:
    """Tests for zoom_in / zoom_out / reset."""

    def test_initial_state(self, viewport):
        assert viewport.zoom_factor == 1.0
        assert (viewport.pan_dx, viewport.pan_dy) == (0.0, 0.0)
        assert viewport.zoom_label == "100%"
        assert viewport.cursor == "default"

    def test_zoom_in_multiplies_by_step(self, viewport):
        viewport.zoom_in()
        assert viewport.zoom_factor == pytest.approx(1.2)
        assert viewport.zoom_label == "120%"
        assert viewport.cursor == "grab"

    def test_zoom_in_then_out_restores(self, viewport):
        viewport.zoom_in()
        viewport.zoom_out()
        assert viewport.zoom_factor == pytest.approx(1.0)

    def test_zoom_stays_within_bounds(self, viewport):
        for _ in range(50):
            viewport.zoom_in()
        assert viewport.zoom_factor == pytest.approx(5.0)
        for _ in range(50):
            viewport.zoom_out()
        assert viewport.zoom_factor == pytest.approx(0.5)

    def test_set_zoom_clamps(self, viewport):
        viewport.set_zoom(100)
        assert viewport.zoom_factor == 5.0
        viewport.set_zoom(0.01)
        assert viewport.zoom_factor == 0.5

    def test_reset(self, viewport):
        viewport.set_zoom(3)
        viewport.pan(100, 100)
        viewport.reset()
        assert viewport.state.zoom_factor == 1.0
        assert (viewport.state.pan_dx, viewport.state.pan_dy) == (0.0, 0.0)

    def test_listener_receives_changes(self, viewport):
        seen = []
        viewport.add_listener(lambda vp: seen.append(vp.zoom_label))
        viewport.zoom_in()
        viewport.zoom_out()
        assert seen == ["120%", "100%"]

    def test_zoom_at_limit_does_not_notify(self, viewport):
        viewport.set_zoom(5)
        seen = []
        viewport.add_listener(lambda vp: seen.append(vp.zoom_factor))
        viewport.zoom_in()
        assert seen == []


class TestPan:
    """Tests for pan clamping."""

    def test_pan_is_noop_at_unit_zoom(self, viewport):
        """Content and container have the same size, so there is no overflow."""
        viewport.pan(250, -80)
        assert (viewport.pan_dx, viewport.pan_dy) == (0.0, 0.0)

    def test_pan_scaled_by_zoom(self, viewport):
        viewport.set_zoom(2)
        viewport.pan(100, 50)
        assert viewport.pan_dx == pytest.approx(50)
        assert viewport.pan_dy == pytest.approx(25)

    def test_max_pan(self, viewport):
        viewport.set_zoom(2)
        max_x, max_y = viewport.max_pan()
        assert max_x == pytest.approx((2000 * 2 - 2000) / 2 / 2)
        assert max_y == pytest.approx((857 * 2 - 857) / 2 / 2)

    def test_huge_pan_is_clamped(self, viewport):
        viewport.set_zoom(2)
        viewport.pan(1e9, -1e9)
        max_x, max_y = viewport.max_pan()
        assert viewport.pan_dx == pytest.approx(max_x)
        assert viewport.pan_dy == pytest.approx(-max_y)

    @pytest.mark.parametrize("zoom", [1.2, 2.0, 3.5, 5.0])
    @pytest.mark.parametrize("dx, dy", [(1e9, 1e9), (-1e9, -1e9), (1e9, -1e9)])
    def test_content_never_crosses_center_line(self, viewport, zoom, dx, dy):
        viewport.set_zoom(zoom)
        viewport.pan(dx, dy)
        left, top, right, bottom = viewport.content_bounds()
        center_x = viewport.container_width / 2
        center_y = viewport.container_height / 2
        assert left <= center_x <= right
        assert top <= center_y <= bottom

    def test_zoom_out_reclamps_pan(self, viewport):
        viewport.set_zoom(3)
        viewport.pan(1e6, 1e6)
        viewport.set_zoom(1)
        assert (viewport.pan_dx, viewport.pan_dy) == (0.0, 0.0)

    def test_smaller_container_allows_pan_at_unit_zoom(self):
        viewport = Viewport(ViewerConfig(container_width=1000, container_height=400))
        viewport.pan(1e6, 0)
        assert viewport.pan_dx == pytest.approx(500)


class TestTransform:
    """Tests for the composed scale . translate transform."""

    def test_identity_at_reset(self, viewport):
        assert np.allclose(viewport.matrix, np.eye(3))
        assert viewport.transform_point(PlanarPoint(10, 20)) == PlanarPoint(10, 20)

    def test_scales_around_content_center(self, viewport):
        viewport.set_zoom(2)
        center = PlanarPoint(1000, 428.5)
        assert viewport.transform_point(center).x == pytest.approx(1000)
        assert viewport.transform_point(center).y == pytest.approx(428.5)
        corner = viewport.transform_point(PlanarPoint(0, 0))
        assert corner.x == pytest.approx(-1000)
        assert corner.y == pytest.approx(-428.5)

    def test_pan_applies_before_scale(self, viewport):
        viewport.set_zoom(2)
        viewport.pan(100, 0)  # 50 content pixels
        point = viewport.transform_point(PlanarPoint(1000, 428.5))
        assert point.x == pytest.approx(1000 + 2 * 50)

    def test_inverse_round_trip(self, viewport):
        viewport.set_zoom(2.4)
        viewport.pan(-300, 120)
        screen = viewport.transform_point(PlanarPoint(321, 654))
        back = viewport.inverse_point(screen)
        assert back.x == pytest.approx(321)
        assert back.y == pytest.approx(654)

    def test_css_transform(self, viewport):
        assert viewport.css_transform() == "scale(1.0) translate(0.0px, 0.0px)"


class TestIndependentInstances:
    def test_viewports_do_not_share_state(self):
        first = Viewport(ViewerConfig())
        second = Viewport(ViewerConfig())
        first.zoom_in()
        assert second.zoom_factor == 1.0
