"""Pointer/wheel interaction state machine for the map viewport."""

import logging
from enum import Enum
from typing import Callable, Optional

from src.topo_map.renderer import clear_highlight, highlight_link, highlight_node
from src.topo_map.scene import KIND_LINK, KIND_NODE, HitTarget, SceneBuffer
from src.topo_map.timers import OneShotTimer, Scheduler
from src.topo_map.viewport import Viewport

logger = logging.getLogger(__name__)


class InteractionState(Enum):
    IDLE = "idle"
    PANNING = "panning"


class InteractionController:
    """
    Translates raw pointer and wheel events into viewport changes and
    selections.

    A press while zoomed in starts panning. If the pointer then travels at
    least drag_threshold pixels the gesture counts as a drag, and the click
    that ends it is swallowed so releasing over a marker does not also
    select it.
    """

    def __init__(
        self,
        viewport: Viewport,
        scene: SceneBuffer,
        scheduler: Scheduler,
        highlight_timeout: float = 2.0,
        drag_threshold: float = 3.0,
        on_select: Optional[Callable[[HitTarget], None]] = None,
    ) -> None:
        self.viewport = viewport
        self.scene = scene
        self.drag_threshold = drag_threshold
        self.on_select = on_select

        self.state = InteractionState.IDLE
        self._last_x = 0.0
        self._last_y = 0.0
        self._start_pan = (0.0, 0.0)
        self._travelled = 0.0
        self._dragged = False  # Sticky until the next press or consumed click

        self._highlight_timer = OneShotTimer(scheduler, highlight_timeout)
        self.selected: Optional[HitTarget] = None

    @property
    def is_panning(self) -> bool:
        return self.state is InteractionState.PANNING

    @property
    def cursor(self) -> str:
        return self.viewport.cursor

    def wheel(self, delta_y: float) -> bool:
        """Wheel up zooms in, wheel down zooms out. Ignored while panning."""
        if self.is_panning:
            return False
        if delta_y < 0:
            self.viewport.zoom_in()
        else:
            self.viewport.zoom_out()
        return True

    def pointer_down(self, x: float, y: float) -> bool:
        """Start a pan gesture when zoomed in. Returns True if panning began."""
        self._dragged = False
        self._travelled = 0.0
        if not self.viewport.can_pan:
            return False

        self.state = InteractionState.PANNING
        self.viewport.is_panning = True
        self._last_x = x
        self._last_y = y
        self._start_pan = (self.viewport.pan_dx, self.viewport.pan_dy)
        logger.debug(f"Pan started at ({x:.0f}, {y:.0f})")
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if not self.is_panning:
            return

        dx = x - self._last_x
        dy = y - self._last_y
        self._last_x = x
        self._last_y = y

        self._travelled += (dx * dx + dy * dy) ** 0.5
        if self._travelled >= self.drag_threshold:
            self._dragged = True

        if dx or dy:
            self.viewport.pan(dx, dy)

    def pointer_up(self) -> None:
        if not self.is_panning:
            return
        self.state = InteractionState.IDLE
        self.viewport.is_panning = False
        logger.debug(
            f"Pan ended: ({self._start_pan[0]:.1f}, {self._start_pan[1]:.1f}) -> "
            f"({self.viewport.pan_dx:.1f}, {self.viewport.pan_dy:.1f})"
        )

    def pointer_leave(self) -> None:
        self.pointer_up()

    def click(self, x: float, y: float) -> Optional[HitTarget]:
        """
        Resolve a click at a screen position.

        Returns the selected target, or None when nothing was hit or the
        click ended a drag.
        """
        if self.is_panning or self._dragged:
            self._dragged = False
            logger.debug("Click suppressed after drag")
            return None

        target = self.scene.hit_test(x, y)
        if target is None:
            return None
        self.select(target)
        return target

    def select(self, target: HitTarget) -> None:
        """Highlight a target, schedule the restore and notify the listener."""
        self._apply_highlight(target)
        self.selected = target
        self._highlight_timer.start(self._restore_highlight)

        if self.on_select is not None:
            self.on_select(target)

    def _apply_highlight(self, target: HitTarget) -> None:
        if target.kind == KIND_NODE:
            highlight_node(self.scene, target.id)
        elif target.kind == KIND_LINK:
            highlight_link(self.scene, target.id)

    def reapply_highlight(self) -> None:
        """Dim again after a redraw while the restore timer is still pending."""
        if self.selected is not None:
            self._apply_highlight(self.selected)

    def _restore_highlight(self) -> None:
        clear_highlight(self.scene)
        self.selected = None

    def cancel_highlight(self) -> None:
        self._highlight_timer.cancel()
        self._restore_highlight()
