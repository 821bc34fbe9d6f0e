"""View state: the mapping from screen pixels to the complex plane."""

from dataclasses import dataclass, field
from typing import Optional, Tuple
import logging
import math

import numpy as np

from .config import ViewDefaults, ViewLimits


logger = logging.getLogger(__name__)


def _require_finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return value


def _clamp(value: float, lo: Optional[float], hi: Optional[float]) -> float:
    if lo is not None and value < lo:
        return lo
    if hi is not None and value > hi:
        return hi
    return value


# =============================================================================
# Snapshot
# =============================================================================

@dataclass(frozen=True)
class ViewSnapshot:
    """Immutable copy of a view, read by every tile of one frame."""
    center_re: float
    center_im: float
    range: float
    aspect_ratio: float
    max_iterations: int
    escape_radius: float

    def to_complex(self, u: float, v: float) -> Tuple[float, float]:
        """Map normalised screen coordinates (origin bottom-left) to the plane."""
        c_re = self.center_re + (u - 0.5) * self.range * self.aspect_ratio
        c_im = self.center_im + (v - 0.5) * self.range
        return c_re, c_im

    def plane_grid(self, width: int, height: int, rows: Optional[slice] = None):
        """Complex coordinates of pixel centres as two ``(rows, width)`` arrays.

        Row 0 is the top of the screen.
        """
        if rows is None:
            rows = slice(0, height)
        ys = np.arange(height, dtype=np.float64)[rows]
        xs = np.arange(width, dtype=np.float64)
        u = (xs + 0.5) / width
        v = 1.0 - (ys + 0.5) / height
        c_re = self.center_re + (u - 0.5) * self.range * self.aspect_ratio
        c_im = self.center_im + (v - 0.5) * self.range
        return np.meshgrid(c_re, c_im)


# =============================================================================
# Mutable View
# =============================================================================

@dataclass
class ViewState:
    """Mutable view window plus the iteration parameters of the evaluator.

    One instance lives for the whole session; pan/zoom/slider input mutates
    it in place.
    """
    center_re: float = 0.0
    center_im: float = 0.0
    range: float = 8.0
    aspect_ratio: float = 1.0
    max_iterations: int = 40
    escape_radius: float = 2.0
    move_factor_x: float = 0.005
    move_factor_y: float = 0.005
    defaults: ViewDefaults = field(default_factory=ViewDefaults, repr=False)
    limits: ViewLimits = field(default_factory=ViewLimits, repr=False)

    def __post_init__(self):
        if not self.range > 0:
            raise ValueError(f"range must be positive, got {self.range!r}")
        if not self.aspect_ratio > 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio!r}")
        if int(self.max_iterations) < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations!r}")
        if not self.escape_radius > 0:
            raise ValueError(f"escape_radius must be positive, got {self.escape_radius!r}")
        _require_finite("center_re", self.center_re)
        _require_finite("center_im", self.center_im)

    @classmethod
    def from_defaults(cls, defaults: Optional[ViewDefaults] = None,
                      limits: Optional[ViewLimits] = None,
                      aspect_ratio: float = 1.0) -> "ViewState":
        defaults = defaults or ViewDefaults()
        return cls(
            center_re=defaults.center_re,
            center_im=defaults.center_im,
            range=defaults.range,
            aspect_ratio=aspect_ratio,
            max_iterations=defaults.max_iterations,
            escape_radius=defaults.escape_radius,
            move_factor_x=defaults.move_factor,
            move_factor_y=defaults.move_factor,
            defaults=defaults,
            limits=limits or ViewLimits(),
        )

    def snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            center_re=self.center_re,
            center_im=self.center_im,
            range=self.range,
            aspect_ratio=self.aspect_ratio,
            max_iterations=int(self.max_iterations),
            escape_radius=self.escape_radius,
        )

    # -------------------------------------------------------------------------
    # Coordinate mapping
    # -------------------------------------------------------------------------

    def to_complex(self, u: float, v: float) -> Tuple[float, float]:
        return self.snapshot().to_complex(u, v)

    def pixel_to_complex(self, x: float, y: float, width: int, height: int) -> Tuple[float, float]:
        """Map a pixel (row 0 at the top) to the complex coordinate of its centre."""
        u = (x + 0.5) / width
        v = 1.0 - (y + 0.5) / height
        return self.to_complex(u, v)

    def resize(self, width: int, height: int) -> bool:
        """Recompute the aspect ratio. Returns False for a degenerate size."""
        if width <= 0 or height <= 0:
            logger.debug("ignoring degenerate canvas size %dx%d", width, height)
            return False
        self.aspect_ratio = width / height
        return True

    # -------------------------------------------------------------------------
    # Transforms
    # -------------------------------------------------------------------------

    def pan(self, dx: float, dy: float):
        """Shift the centre by a screen-space pointer delta.

        The content follows the pointer: dragging right moves the centre
        toward negative real, dragging down (screen y grows downward) moves
        it toward positive imaginary.
        """
        self.center_re -= dx * self.move_factor_x
        self.center_im += dy * self.move_factor_y

        bounds = self.limits.center_bounds
        if bounds is not None:
            re_min, re_max, im_min, im_max = bounds
            self.center_re = _clamp(self.center_re, re_min, re_max)
            self.center_im = _clamp(self.center_im, im_min, im_max)

    def zoom(self, direction: float):
        """Zoom in for a positive direction, out for a negative one."""
        if direction == 0:
            return
        factor = self.limits.zoom_factor
        target = self.range / factor if direction > 0 else self.range * factor
        target = _clamp(target, self.limits.min_range, self.limits.max_range)

        ratio = target / self.range
        self.range = target
        self.move_factor_x *= ratio
        self.move_factor_y *= ratio

    def set_max_iterations(self, n: int):
        n = int(_require_finite("max_iterations", n))
        self.max_iterations = int(_clamp(n, self.limits.min_iterations, self.limits.max_iterations))

    def set_escape_radius(self, r: float):
        r = _require_finite("escape_radius", r)
        if r <= 0:
            # slider bottoms out at 0, radius stays strictly positive
            r = math.ulp(0.0)
        self.escape_radius = min(r, self.limits.max_escape_radius)

    def reset(self):
        """Restore every field to its default, keeping the current aspect ratio."""
        d = self.defaults
        self.center_re = d.center_re
        self.center_im = d.center_im
        self.range = d.range
        self.max_iterations = d.max_iterations
        self.escape_radius = d.escape_radius
        self.move_factor_x = d.move_factor
        self.move_factor_y = d.move_factor
