"""Interactive Mandelbrot viewer - pygame frontend over the tile renderer."""

from typing import Optional, Tuple
import logging

import numpy as np
import pygame

from .config import ViewerConfig
from .controller import ViewController
from .renderer import FractalRenderer, save_png
from .view import ViewState


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ITERATION_STEP = 10
ITERATION_STEP_LARGE = 100
ESCAPE_RADIUS_STEP = 0.1

FONT_SIZE = 24
PADDING = 10
HELP_OVERLAY_ALPHA = 200
FPS_CAP = 60


class SessionInitError(RuntimeError):
    """The display could not be created, so no rendering session exists."""


HELP_LINES = [
    "Keybindings:",
    "",
    "Navigation:",
    "  Drag           Pan",
    "  Scroll         Zoom",
    "  Pinch          Zoom (touch)",
    "  0              Reset view",
    "",
    "Parameters:",
    "  + / -          Max iterations (shift=10x)",
    "  [ / ]          Escape radius",
    "",
    "Display:",
    "  S / F          Toggle settings panel",
    "  P              Save screenshot",
    "  H / ?          This help",
    "  Q / ESC        Quit",
]


# =============================================================================
# Main Viewer Class
# =============================================================================

class FractalViewer:
    """Interactive Mandelbrot viewer with pygame UI and a threaded tile renderer."""

    def __init__(self, config: Optional[ViewerConfig] = None):
        self.config = config or ViewerConfig()
        self.width = self.config.width
        self.height = self.config.height

        self.view = ViewState.from_defaults(
            self.config.defaults, self.config.limits,
            aspect_ratio=self.width / self.height,
        )
        self.controller = ViewController(self.view, request_render=self._request_render)
        self.renderer = FractalRenderer(self.config.render)

        # UI state
        self.show_settings = True
        self.show_help = False
        self.needs_render = True
        self.running = True
        self.last_frame: Optional[np.ndarray] = None

        # Pygame objects (initialized in start())
        self.screen = None
        self.clock = None
        self.font = None

    def _request_render(self):
        self.needs_render = True

    def run(self):
        """Main entry point - initialize pygame and run the event loop."""
        self.start()
        try:
            while self.running:
                self._handle_events()
                self._render_if_needed()
                self.clock.tick(FPS_CAP)
        finally:
            self._print_stats()
            self.close()

    def start(self):
        """Create the window. Raises :class:`SessionInitError` on failure."""
        pygame.init()
        try:
            self.screen = pygame.display.set_mode(
                (self.width, self.height), pygame.RESIZABLE
            )
        except pygame.error as exc:
            pygame.quit()
            raise SessionInitError(f"Unable to create display: {exc}") from exc

        pygame.display.set_caption("Mandelbrot")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", FONT_SIZE)
        self.controller.resize(*self._canvas_size())
        logger.info("viewer started at %dx%d", *self._canvas_size())

    def close(self):
        self.renderer.close()
        pygame.quit()

    def _print_stats(self):
        stats = self.renderer.stats
        if stats.frames:
            logger.info("rendered %d frames, average frame time %.1fms",
                        stats.frames, stats.average_ms)

    def _canvas_size(self) -> Tuple[int, int]:
        if self.screen is not None:
            return self.screen.get_size()
        return self.width, self.height

    # =========================================================================
    # Event Handling
    # =========================================================================

    def _handle_events(self):
        """Process all pygame events."""
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event):
        handler = self._event_handlers.get(event.type)
        if handler:
            handler(self, event)

    @property
    def _event_handlers(self) -> dict:
        """Map event types to handler methods."""
        return {
            pygame.QUIT: lambda self, e: setattr(self, 'running', False),
            pygame.KEYDOWN: FractalViewer._on_keydown,
            pygame.VIDEORESIZE: FractalViewer._on_resize,
            pygame.WINDOWRESIZED: FractalViewer._on_resize,
            pygame.MOUSEBUTTONDOWN: FractalViewer._on_mouse_down,
            pygame.MOUSEBUTTONUP: FractalViewer._on_mouse_up,
            pygame.MOUSEMOTION: FractalViewer._on_mouse_motion,
            pygame.MOUSEWHEEL: FractalViewer._on_mouse_wheel,
            pygame.FINGERDOWN: FractalViewer._on_finger_down,
            pygame.FINGERMOTION: FractalViewer._on_finger_motion,
            pygame.FINGERUP: FractalViewer._on_finger_up,
        }

    def _on_resize(self, event):
        if self.screen is not None:
            self.screen = pygame.display.get_surface()
        size = getattr(event, "size", None) or self._canvas_size()
        self.controller.resize(*size)

    @property
    def _key_handlers(self) -> dict:
        """Map keys to handler methods."""
        return {
            pygame.K_ESCAPE: lambda s, e: setattr(s, 'running', False),
            pygame.K_q: lambda s, e: setattr(s, 'running', False),
            pygame.K_s: FractalViewer._toggle_settings,
            pygame.K_f: FractalViewer._toggle_settings,
            pygame.K_h: FractalViewer._toggle_help,
            pygame.K_QUESTION: FractalViewer._toggle_help,
            pygame.K_SLASH: FractalViewer._toggle_help,
            pygame.K_0: lambda s, e: s.controller.reset_view(),
            pygame.K_EQUALS: lambda s, e: s._step_iterations(e, +1),
            pygame.K_KP_PLUS: lambda s, e: s._step_iterations(e, +1),
            pygame.K_MINUS: lambda s, e: s._step_iterations(e, -1),
            pygame.K_KP_MINUS: lambda s, e: s._step_iterations(e, -1),
            pygame.K_RIGHTBRACKET: lambda s, e: s._step_escape_radius(+1),
            pygame.K_LEFTBRACKET: lambda s, e: s._step_escape_radius(-1),
            pygame.K_p: FractalViewer._save_screenshot,
        }

    def _on_keydown(self, event):
        handler = self._key_handlers.get(event.key)
        if handler:
            handler(self, event)

    def _toggle_settings(self, event):
        self.show_settings = not self.show_settings
        self.needs_render = True

    def _toggle_help(self, event):
        self.show_help = not self.show_help
        self.needs_render = True

    def _step_iterations(self, event, sign: int):
        step = ITERATION_STEP_LARGE if getattr(event, "mod", 0) & pygame.KMOD_SHIFT else ITERATION_STEP
        self.controller.set_max_iterations(self.view.max_iterations + sign * step)

    def _step_escape_radius(self, sign: int):
        radius = round(self.view.escape_radius + sign * ESCAPE_RADIUS_STEP, 6)
        self.controller.set_escape_radius(max(radius, ESCAPE_RADIUS_STEP))

    def _save_screenshot(self, event):
        if self.last_frame is None:
            logger.warning("no frame rendered yet, nothing to save")
            return
        save_png(self.last_frame, self.config.screenshot_path)

    # =========================================================================
    # Mouse Handling
    # =========================================================================

    def _on_mouse_down(self, event):
        # Left click only; touch input arrives as FINGER* events.
        if event.button != 1 or getattr(event, "touch", False):
            return
        self.controller.pointer_down(*event.pos)

    def _on_mouse_up(self, event):
        if event.button == 1 and not getattr(event, "touch", False):
            self.controller.pointer_up()

    def _on_mouse_motion(self, event):
        if getattr(event, "touch", False):
            return
        self.controller.pointer_move(*event.pos)

    def _on_mouse_wheel(self, event):
        # pygame reports scroll-up as positive y
        self.controller.wheel(-event.y)

    # =========================================================================
    # Touch Handling
    # =========================================================================

    def _finger_pos(self, event) -> Tuple[float, float]:
        width, height = self._canvas_size()
        return event.x * width, event.y * height

    def _on_finger_down(self, event):
        self.controller.touch_down(event.finger_id, *self._finger_pos(event))

    def _on_finger_motion(self, event):
        self.controller.touch_move(event.finger_id, *self._finger_pos(event))

    def _on_finger_up(self, event):
        self.controller.touch_up(event.finger_id)

    # =========================================================================
    # Rendering
    # =========================================================================

    def _render_if_needed(self):
        """Render frame if state has changed."""
        if not self.needs_render:
            return

        self.screen = pygame.display.get_surface()
        width, height = self.screen.get_size()
        # minimised window; keep needs_render set until it has an area again
        if not self.view.resize(width, height):
            return

        rgb_array = self.renderer.render(self.view, width, height)
        self.last_frame = rgb_array

        surface = pygame.surfarray.make_surface(rgb_array.swapaxes(0, 1))
        self.screen.blit(surface, (0, 0))

        if self.show_settings:
            self._draw_settings_overlay()
        if self.show_help:
            self._draw_help_overlay()

        pygame.display.flip()
        self.needs_render = False

    def settings_text(self) -> str:
        view = self.view
        return (
            f"{self.renderer.stats.last_render_ms:.1f}ms | "
            f"center: {view.center_re:+.6f} {view.center_im:+.6f}i | "
            f"range: {view.range:.2e} | imax: {view.max_iterations} | "
            f"radius: {view.escape_radius:.2f}"
        )

    def _draw_settings_overlay(self):
        self._draw_text(self.settings_text(), PADDING, PADDING // 2)

    def _draw_text(self, text: str, x: int, y: int, color=(255, 255, 255)):
        surf = self.font.render(text, True, color, (0, 0, 0))
        self.screen.blit(surf, (x, y))

    def _draw_help_overlay(self):
        """Draw help text overlay."""
        line_height = self.font.get_linesize()
        help_width = max(self.font.size(line)[0] for line in HELP_LINES) + PADDING * 2
        help_height = len(HELP_LINES) * line_height + PADDING * 2

        help_bg = pygame.Surface((help_width, help_height))
        help_bg.set_alpha(HELP_OVERLAY_ALPHA)
        help_bg.fill((0, 0, 0))
        help_y = line_height + PADDING
        self.screen.blit(help_bg, (PADDING, help_y))

        for i, line in enumerate(HELP_LINES):
            text_surface = self.font.render(line, True, (255, 255, 255))
            self.screen.blit(text_surface, (PADDING * 2, help_y + PADDING + i * line_height))
