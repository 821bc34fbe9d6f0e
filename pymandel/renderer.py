"""Frame rendering: split the canvas into row tiles and evaluate them in parallel."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional
import logging
import time

import numpy as np
from PIL import Image

from .config import RenderConfig
from .escape import escape_time_grid, shade, to_rgb8
from .view import ViewSnapshot, ViewState


logger = logging.getLogger(__name__)


@dataclass
class FrameStats:
    """Timing of rendered frames."""
    frame_times: List[float] = field(default_factory=list)
    last_render_ms: float = 0.0

    def record(self, ms: float):
        self.last_render_ms = ms
        self.frame_times.append(ms)

    @property
    def frames(self) -> int:
        return len(self.frame_times)

    @property
    def average_ms(self) -> float:
        if not self.frame_times:
            return 0.0
        return sum(self.frame_times) / len(self.frame_times)


def tile_slices(height: int, tile_rows: int) -> List[slice]:
    """Row bands covering ``range(height)``."""
    tile_rows = max(1, tile_rows)
    return [slice(top, min(top + tile_rows, height)) for top in range(0, height, tile_rows)]


class FractalRenderer:
    """Renders full frames of a :class:`ViewState` on a thread pool."""

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self.stats = FrameStats()
        self._pool = ThreadPoolExecutor(
            max_workers=max(1, self.config.workers),
            thread_name_prefix="pymandel-tile",
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self._pool.shutdown(wait=True)

    def _render_tile(self, snap: ViewSnapshot, width: int, height: int, rows: slice) -> np.ndarray:
        c_re, c_im = snap.plane_grid(width, height, rows)
        return escape_time_grid(c_re, c_im, snap.max_iterations, snap.escape_radius)

    def render_iterations(self, view: ViewState, width: int, height: int) -> np.ndarray:
        """Iteration counts for every pixel as an ``(height, width)`` array."""
        return self._evaluate(view.snapshot(), width, height)

    def _evaluate(self, snap: ViewSnapshot, width: int, height: int) -> np.ndarray:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size: {width}x{height}")

        counts = np.empty((height, width), dtype=np.int32)

        slices = tile_slices(height, self.config.tile_rows)
        futures = [
            (rows, self._pool.submit(self._render_tile, snap, width, height, rows))
            for rows in slices
        ]
        for rows, future in futures:
            counts[rows] = future.result()
        return counts

    def render(self, view: ViewState, width: int, height: int) -> np.ndarray:
        """Render a frame and return an ``(height, width, 3)`` uint8 RGB array."""
        t0 = time.perf_counter()
        # tiles only ever see this frozen copy
        snap = view.snapshot()
        counts = self._evaluate(snap, width, height)
        rgb = to_rgb8(shade(counts, snap.max_iterations))
        ms = (time.perf_counter() - t0) * 1000
        self.stats.record(ms)
        logger.debug("rendered %dx%d imax=%d in %.1fms", width, height, snap.max_iterations, ms)
        return rgb


def save_png(rgb: np.ndarray, path: str):
    """Write an RGB frame to ``path``."""
    Image.fromarray(rgb.astype(np.uint8)).save(path)
    logger.info("saved %s", path)
