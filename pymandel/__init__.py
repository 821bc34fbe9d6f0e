"""Interactive Mandelbrot viewer with a threaded tile renderer."""

from .config import ViewerConfig, load_config
from .controller import InputMode, ViewController
from .escape import escape_time, escape_time_grid, shade
from .renderer import FractalRenderer
from .view import ViewSnapshot, ViewState

__version__ = "0.1.0"

__all__ = [
    "FractalRenderer",
    "InputMode",
    "ViewController",
    "ViewSnapshot",
    "ViewState",
    "ViewerConfig",
    "escape_time",
    "escape_time_grid",
    "load_config",
    "shade",
]
