"""Escape-time evaluation and the fixed colour palette.

The scalar :func:`escape_time` is the reference definition. The grid
version evaluates the same iteration over numpy arrays, dropping escaped
points from the working set as it goes so late iterations only touch the
points that are still bounded.
"""

import math

import numpy as np


# Palette constants: level = i / imax * LEVEL_SCALE + LEVEL_OFFSET
LEVEL_SCALE = 0.8
LEVEL_OFFSET = 0.1
GREEN_RATIO = 0.6
BLUE_LEVEL = 0.1


def escape_time(c_re: float, c_im: float, max_iterations: int, escape_radius: float) -> int:
    """Return the iteration index at which z escapes, or ``max_iterations``.

    z starts at the origin and the modulus is tested after every update,
    so a point that escapes on the first update returns 0.
    """
    z_re = 0.0
    z_im = 0.0
    for i in range(max_iterations):
        z_re, z_im = z_re * z_re - z_im * z_im + c_re, 2.0 * z_re * z_im + c_im
        if math.sqrt(z_re * z_re + z_im * z_im) > escape_radius:
            return i
    return max_iterations


def escape_time_grid(c_re, c_im, max_iterations: int, escape_radius: float) -> np.ndarray:
    """Vectorised :func:`escape_time` over broadcastable arrays.

    Returns an ``int32`` array of iteration counts with the broadcast shape
    of the inputs.
    """
    c_re, c_im = np.broadcast_arrays(
        np.asarray(c_re, dtype=np.float64), np.asarray(c_im, dtype=np.float64)
    )
    shape = c_re.shape
    counts = np.full(c_re.size, max_iterations, dtype=np.int32)

    live = np.arange(c_re.size)
    cr = c_re.ravel().copy()
    ci = c_im.ravel().copy()
    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(max_iterations):
            if live.size == 0:
                break
            zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
            escaped = np.sqrt(zr * zr + zi * zi) > escape_radius
            if escaped.any():
                counts[live[escaped]] = i
                keep = ~escaped
                live = live[keep]
                zr, zi = zr[keep], zi[keep]
                cr, ci = cr[keep], ci[keep]

    return counts.reshape(shape)


# =============================================================================
# Palette
# =============================================================================

def shade(iterations, max_iterations: int) -> np.ndarray:
    """Map iteration counts to float RGB in [0, 1].

    Points that never escaped are shaded like ``i = 0``, so the set interior
    sits at the dim end of the ramp together with fast-escaping points.
    """
    its = np.asarray(iterations)
    its = np.where(its >= max_iterations, 0, its)
    level = its / float(max_iterations) * LEVEL_SCALE + LEVEL_OFFSET

    rgb = np.empty(its.shape + (3,), dtype=np.float64)
    rgb[..., 0] = level
    rgb[..., 1] = level * GREEN_RATIO
    rgb[..., 2] = BLUE_LEVEL
    return rgb


def to_rgb8(rgb: np.ndarray) -> np.ndarray:
    """Convert float RGB in [0, 1] to ``uint8``."""
    return np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
