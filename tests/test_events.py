"""Tests for window event handling in the visualizer."""

import pytest

pygame = pytest.importorskip("pygame")

from forma_visualizer import config
from forma_visualizer.animator import PathAnimator
from forma_visualizer.renderer import EventAction, Renderer, apply_event
from forma_visualizer.state import VisualizerState


def key_down(key, mod=0):
    return pygame.event.Event(pygame.KEYDOWN, key=key, mod=mod)


def click(pos, button=1):
    return pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=pos, button=button)


@pytest.fixture
def state():
    state = VisualizerState()
    state.resize(600, 600)
    return state


class TestVisibilityShortcut:
    """Ctrl/Cmd + H toggles the visual; plain H does not."""

    def test_ctrl_h_toggles(self, state):
        assert apply_event(state, key_down(pygame.K_h, pygame.KMOD_LCTRL)) is EventAction.TOGGLE
        assert state.visible is False
        apply_event(state, key_down(pygame.K_h, pygame.KMOD_RCTRL))
        assert state.visible is True

    def test_cmd_h_toggles(self, state):
        assert apply_event(state, key_down(pygame.K_h, pygame.KMOD_LMETA)) is EventAction.TOGGLE
        assert state.visible is False

    def test_plain_h_ignored(self, state):
        assert apply_event(state, key_down(pygame.K_h)) is None
        assert state.visible

    def test_escape_quits(self, state):
        assert apply_event(state, key_down(pygame.K_ESCAPE)) is EventAction.QUIT

    def test_window_close_quits(self, state):
        assert apply_event(state, pygame.event.Event(pygame.QUIT)) is EventAction.QUIT


class TestResize:
    def test_resize_relayouts(self, state):
        event = pygame.event.Event(pygame.VIDEORESIZE, w=900, h=300, size=(900, 300))
        assert apply_event(state, event) is EventAction.RESIZE
        assert state.layout.width == 900
        assert state.layout.radius == pytest.approx(100)

    def test_zero_size_is_clamped(self, state):
        apply_event(state, pygame.event.Event(pygame.VIDEORESIZE, w=0, h=0, size=(0, 0)))
        assert state.layout.width == 1
        assert state.layout.height == 1


class TestBackdropClick:
    """Left clicks on a ring backdrop collapse and restore the rings."""

    def test_click_collapses_and_restores(self, state):
        assert apply_event(state, click(state.layout.ring_center(3))) is EventAction.COLLAPSE
        assert state.layout.radius == config.COLLAPSED_RADIUS

        assert apply_event(state, click(state.layout.ring_center(3))) is EventAction.COLLAPSE
        assert state.layout.radius == pytest.approx(200)

    def test_click_outside_ignored(self, state):
        assert apply_event(state, click((0, 5000))) is None
        assert not state.collapsed

    def test_right_click_ignored(self, state):
        assert apply_event(state, click(state.layout.ring_center(3), button=3)) is None
        assert not state.collapsed

    def test_hidden_rings_ignore_clicks(self, state):
        state.toggle_visibility()
        assert apply_event(state, click(state.layout.ring_center(3))) is None
        assert not state.collapsed


class TestRendererEvents:
    """Renderer.handle_events drains the queue through apply_event."""

    @pytest.fixture
    def renderer(self, state):
        renderer = Renderer(state, PathAnimator())
        renderer.toggles = []
        renderer.on_toggle = renderer.toggles.append
        return renderer

    def test_toggle_reports_new_visibility(self, renderer, monkeypatch):
        shortcut = key_down(pygame.K_h, pygame.KMOD_LCTRL)
        monkeypatch.setattr(pygame.event, "get", lambda: [shortcut, shortcut])
        assert renderer.handle_events()
        assert renderer.toggles == [False, True]

    def test_quit_stops_loop(self, renderer, monkeypatch):
        monkeypatch.setattr(pygame.event, "get", lambda: [pygame.event.Event(pygame.QUIT)])
        assert not renderer.handle_events()
