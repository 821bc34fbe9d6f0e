"""Input state machine that turns pointer, wheel and touch input into view changes.

The controller knows nothing about pygame. The viewer feeds it plain
numbers; every mutation ends with a call to ``request_render``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging

from .view import ViewState


logger = logging.getLogger(__name__)


class InputMode(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PINCHING = "pinching"


@dataclass
class PointerState:
    """Last known pointer position and active touches."""
    last_pos: Optional[Tuple[float, float]] = None
    touches: Dict[int, Tuple[float, float]] = field(default_factory=dict)
    pinch_distance: Optional[float] = None


def touch_distance(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    """Manhattan distance between two touch points."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class ViewController:
    """Translate discrete input events into :class:`ViewState` mutations."""

    def __init__(self, view: ViewState, request_render: Optional[Callable[[], None]] = None):
        self.view = view
        self.mode = InputMode.IDLE
        self.pointer = PointerState()
        self._request_render = request_render or (lambda: None)

    def _changed(self):
        self._request_render()

    # =========================================================================
    # View Operations
    # =========================================================================

    def pan(self, dx: float, dy: float):
        self.view.pan(dx, dy)
        self._changed()

    def zoom(self, direction: float):
        self.view.zoom(direction)
        logger.debug("zoom %+g -> range %.3e", direction, self.view.range)
        self._changed()

    def reset_view(self):
        self.view.reset()
        logger.debug("view reset")
        self._changed()

    def set_max_iterations(self, n: int):
        self.view.set_max_iterations(n)
        logger.debug("max_iterations = %d", self.view.max_iterations)
        self._changed()

    def set_escape_radius(self, r: float):
        self.view.set_escape_radius(r)
        logger.debug("escape_radius = %g", self.view.escape_radius)
        self._changed()

    def resize(self, width: int, height: int):
        if self.view.resize(width, height):
            self._changed()

    # =========================================================================
    # Mouse
    # =========================================================================

    def pointer_down(self, x: float, y: float):
        self.mode = InputMode.DRAGGING
        self.pointer.last_pos = (x, y)

    def pointer_move(self, x: float, y: float):
        if self.mode is not InputMode.DRAGGING or self.pointer.last_pos is None:
            return
        last_x, last_y = self.pointer.last_pos
        self.pointer.last_pos = (x, y)
        self.pan(x - last_x, y - last_y)

    def pointer_up(self):
        self.mode = InputMode.IDLE
        self.pointer.last_pos = None

    def wheel(self, delta_y: float):
        """Scroll up (negative delta) zooms in."""
        if delta_y < 0:
            self.zoom(1)
        elif delta_y > 0:
            self.zoom(-1)

    # =========================================================================
    # Touch
    # =========================================================================

    def touch_down(self, finger_id: int, x: float, y: float):
        touches = self.pointer.touches
        touches[finger_id] = (x, y)
        if len(touches) == 1:
            self.pointer_down(x, y)
        elif len(touches) == 2:
            self.mode = InputMode.PINCHING
            a, b = touches.values()
            self.pointer.pinch_distance = touch_distance(a, b)

    def touch_move(self, finger_id: int, x: float, y: float):
        touches = self.pointer.touches
        if finger_id not in touches:
            return
        touches[finger_id] = (x, y)

        if self.mode is InputMode.DRAGGING:
            self.pointer_move(x, y)
        elif self.mode is InputMode.PINCHING and len(touches) == 2:
            a, b = touches.values()
            dist = touch_distance(a, b)
            previous = self.pointer.pinch_distance
            self.pointer.pinch_distance = dist
            if previous is not None and dist != previous:
                # fingers apart zooms in
                self.zoom(1 if dist > previous else -1)

    def touch_up(self, finger_id: int):
        touches = self.pointer.touches
        touches.pop(finger_id, None)
        self.pointer.pinch_distance = None
        if not touches:
            self.pointer_up()
        elif len(touches) == 1:
            (x, y), = touches.values()
            self.pointer_down(x, y)
