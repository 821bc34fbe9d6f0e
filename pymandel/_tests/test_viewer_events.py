import pytest

pygame = pytest.importorskip("pygame")

from pymandel.config import RenderConfig, ViewerConfig
from pymandel.controller import InputMode
from pymandel.viewer import FractalViewer, SessionInitError


@pytest.fixture
def viewer():
    v = FractalViewer(ViewerConfig(width=400, height=400, render=RenderConfig(workers=1)))
    v.needs_render = False
    yield v
    v.renderer.close()


def _event(kind, **attrs):
    return pygame.event.Event(kind, **attrs)


def test_mouse_drag_pans(viewer):
    viewer.handle_event(_event(pygame.MOUSEBUTTONDOWN, button=1, pos=(100, 100)))
    viewer.handle_event(_event(pygame.MOUSEMOTION, pos=(110, 100), rel=(10, 0), buttons=(1, 0, 0)))

    assert viewer.view.center_re == pytest.approx(-0.05)
    assert viewer.needs_render

    viewer.handle_event(_event(pygame.MOUSEBUTTONUP, button=1, pos=(110, 100)))
    assert viewer.controller.mode is InputMode.IDLE


def test_right_button_does_not_drag(viewer):
    viewer.handle_event(_event(pygame.MOUSEBUTTONDOWN, button=3, pos=(100, 100)))
    viewer.handle_event(_event(pygame.MOUSEMOTION, pos=(150, 100), rel=(50, 0), buttons=(0, 0, 1)))
    assert viewer.view.center_re == 0.0
    assert not viewer.needs_render


def test_synthesised_touch_mouse_events_are_ignored(viewer):
    viewer.handle_event(_event(pygame.MOUSEBUTTONDOWN, button=1, pos=(100, 100), touch=True))
    assert viewer.controller.mode is InputMode.IDLE


def test_wheel_up_zooms_in(viewer):
    viewer.handle_event(_event(pygame.MOUSEWHEEL, x=0, y=1))
    assert viewer.view.range == pytest.approx(8.0 / 1.1)
    viewer.handle_event(_event(pygame.MOUSEWHEEL, x=0, y=-1))
    assert viewer.view.range == pytest.approx(8.0)


def test_iteration_keys(viewer):
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_EQUALS, mod=0))
    assert viewer.view.max_iterations == 50
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_EQUALS, mod=pygame.KMOD_LSHIFT))
    assert viewer.view.max_iterations == 150
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_MINUS, mod=pygame.KMOD_LSHIFT))
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_MINUS, mod=pygame.KMOD_LSHIFT))
    assert viewer.view.max_iterations == 1
    assert viewer.needs_render


def test_escape_radius_keys(viewer):
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_RIGHTBRACKET, mod=0))
    assert viewer.view.escape_radius == pytest.approx(2.1)
    for _ in range(40):
        viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_LEFTBRACKET, mod=0))
    assert viewer.view.escape_radius == pytest.approx(0.1)


def test_reset_key(viewer):
    viewer.controller.zoom(1)
    viewer.controller.pan(30, 30)
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_0, mod=0))
    assert viewer.view.range == 8.0
    assert (viewer.view.center_re, viewer.view.center_im) == (0.0, 0.0)


def test_overlay_toggles(viewer):
    assert viewer.show_settings
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_s, mod=0))
    assert not viewer.show_settings
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_h, mod=0))
    assert viewer.show_help


def test_quit(viewer):
    viewer.handle_event(_event(pygame.QUIT))
    assert not viewer.running


def test_resize_event_updates_aspect(viewer):
    viewer.handle_event(_event(pygame.VIDEORESIZE, size=(800, 400), w=800, h=400))
    assert viewer.view.aspect_ratio == 2.0
    assert viewer.needs_render


def test_finger_pinch(viewer):
    viewer.handle_event(_event(pygame.FINGERDOWN, touch_id=0, finger_id=1, x=0.25, y=0.5, dx=0, dy=0))
    viewer.handle_event(_event(pygame.FINGERDOWN, touch_id=0, finger_id=2, x=0.5, y=0.5, dx=0, dy=0))
    assert viewer.controller.mode is InputMode.PINCHING

    viewer.handle_event(_event(pygame.FINGERMOTION, touch_id=0, finger_id=2, x=0.75, y=0.5, dx=0.25, dy=0))
    assert viewer.view.range == pytest.approx(8.0 / 1.1)

    viewer.handle_event(_event(pygame.FINGERUP, touch_id=0, finger_id=2, x=0.75, y=0.5, dx=0, dy=0))
    viewer.handle_event(_event(pygame.FINGERUP, touch_id=0, finger_id=1, x=0.25, y=0.5, dx=0, dy=0))
    assert viewer.controller.mode is InputMode.IDLE


def test_finger_drag_scales_to_window(viewer):
    viewer.handle_event(_event(pygame.FINGERDOWN, touch_id=0, finger_id=1, x=0.5, y=0.5, dx=0, dy=0))
    viewer.handle_event(_event(pygame.FINGERMOTION, touch_id=0, finger_id=1, x=0.525, y=0.5, dx=0.025, dy=0))
    # 0.025 of a 400px window is 10px
    assert viewer.view.center_re == pytest.approx(-0.05)


def test_settings_text(viewer):
    text = viewer.settings_text()
    assert "imax: 40" in text
    assert "radius: 2.00" in text
    assert "range: 8.00e+00" in text


def test_screenshot_without_frame_is_noop(viewer, tmp_path):
    viewer.config = ViewerConfig(screenshot_path=str(tmp_path / "shot.png"))
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_p, mod=0))
    assert not (tmp_path / "shot.png").exists()


def test_screenshot_writes_last_frame(viewer, tmp_path):
    viewer.config = ViewerConfig(screenshot_path=str(tmp_path / "shot.png"))
    viewer.last_frame = viewer.renderer.render(viewer.view, 16, 16)
    viewer.handle_event(_event(pygame.KEYDOWN, key=pygame.K_p, mod=0))
    assert (tmp_path / "shot.png").exists()


def test_start_failure_raises_session_error(viewer, monkeypatch):
    def _fail(*args, **kwargs):
        raise pygame.error("No available video device")

    monkeypatch.setattr(pygame, "init", lambda: (0, 0))
    monkeypatch.setattr(pygame.display, "set_mode", _fail)
    with pytest.raises(SessionInitError, match="No available video device"):
        viewer.start()


class _ZeroAreaSurface:
    def get_size(self):
        return (0, 300)


def test_minimised_window_skips_render(viewer, monkeypatch):
    monkeypatch.setattr(pygame.display, "get_surface", lambda: _ZeroAreaSurface())
    viewer.needs_render = True

    viewer._render_if_needed()

    assert viewer.renderer.stats.frames == 0
    assert viewer.last_frame is None
    assert viewer.needs_render
    assert viewer.view.aspect_ratio == 1.0
