"""Runtime configuration for the viewer, renderer and static server.

All environment parsing happens here. The rest of the package receives the
frozen dataclasses below and never reads ``os.environ`` directly. CLI flags
override the environment through :func:`dataclasses.replace`.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple
import os


ENV_PREFIX = "PYMANDEL_"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw, 10)
    except ValueError:
        return default


def _env_float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw if raw else default


# =============================================================================
# Config Dataclasses
# =============================================================================

@dataclass(frozen=True)
class ViewDefaults:
    """Values a view starts with and returns to on reset."""
    center_re: float = 0.0
    center_im: float = 0.0
    range: float = 8.0
    max_iterations: int = 40
    escape_radius: float = 2.0
    move_factor: float = 0.005


@dataclass(frozen=True)
class ViewLimits:
    """Clamps applied by pan/zoom and the parameter controls."""
    min_range: float = 1e-13
    max_range: Optional[float] = None
    center_bounds: Optional[Tuple[float, float, float, float]] = None  # re_min, re_max, im_min, im_max
    min_iterations: int = 1
    max_iterations: int = 1000
    max_escape_radius: float = 10.0
    zoom_factor: float = 1.1

    def __post_init__(self):
        if not self.zoom_factor > 1.0:
            raise ValueError(f"zoom_factor must be greater than 1, got {self.zoom_factor}")
        if not self.min_range > 0.0:
            raise ValueError(f"min_range must be positive, got {self.min_range}")
        if self.max_range is not None and not self.max_range >= self.min_range:
            raise ValueError(
                f"max_range {self.max_range} is smaller than min_range {self.min_range}"
            )
        if not 1 <= self.min_iterations <= self.max_iterations:
            raise ValueError(
                f"invalid iteration bounds [{self.min_iterations}, {self.max_iterations}]"
            )
        if not self.max_escape_radius > 0.0:
            raise ValueError(f"max_escape_radius must be positive, got {self.max_escape_radius}")


@dataclass(frozen=True)
class RenderConfig:
    """Tile renderer settings."""
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    tile_rows: int = 32


@dataclass(frozen=True)
class ServerConfig:
    """Static file server settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    directory: str = "public"


@dataclass(frozen=True)
class ViewerConfig:
    """Top-level configuration for an interactive session."""
    width: int = 1200
    height: int = 900
    defaults: ViewDefaults = field(default_factory=ViewDefaults)
    limits: ViewLimits = field(default_factory=ViewLimits)
    render: RenderConfig = field(default_factory=RenderConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "INFO"
    screenshot_path: str = "mandelbrot.png"

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas size must be positive, got {self.width}x{self.height}")


def load_config(env: Optional[Mapping[str, str]] = None) -> ViewerConfig:
    """Build a :class:`ViewerConfig` from ``PYMANDEL_*`` environment variables."""
    if env is None:
        env = os.environ

    base = ViewerConfig()
    defaults = ViewDefaults(
        max_iterations=_env_int(env, "MAX_ITERATIONS", base.defaults.max_iterations),
        escape_radius=_env_float(env, "ESCAPE_RADIUS", base.defaults.escape_radius),
        range=_env_float(env, "RANGE", base.defaults.range),
    )
    limits = ViewLimits(
        max_range=_env_float(env, "ZOOM_LIMIT", base.limits.max_range),
        zoom_factor=_env_float(env, "ZOOM_FACTOR", base.limits.zoom_factor),
    )
    render = RenderConfig(
        workers=max(1, _env_int(env, "WORKERS", base.render.workers)),
        tile_rows=max(1, _env_int(env, "TILE_ROWS", base.render.tile_rows)),
    )
    server = ServerConfig(
        host=_env_str(env, "HOST", base.server.host),
        port=_env_int(env, "PORT", base.server.port),
        directory=_env_str(env, "STATIC_DIR", base.server.directory),
    )
    return ViewerConfig(
        width=_env_int(env, "WIDTH", base.width),
        height=_env_int(env, "HEIGHT", base.height),
        defaults=defaults,
        limits=limits,
        render=render,
        server=server,
        log_level=_env_str(env, "LOG_LEVEL", base.log_level).upper(),
        screenshot_path=_env_str(env, "SCREENSHOT", base.screenshot_path),
    )
