"""PyGame-based renderer for the visualizer."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

try:
    import pygame
    HAS_PYGAME = True
except ImportError:
    HAS_PYGAME = False
    pygame = None  # type: ignore

from audioforma import config as engine_config
from audioforma.dominant import Layout
from audioforma.notes import NOTE_NAMES, NoteKey, angle_of, hue_of

from . import config
from .animator import PathAnimator, hsl_color
from .state import VisualizerState

Point = tuple[float, float]


@dataclass
class Marker:
    """Glyph showing one note's amplitude on its ring.

    `points` is the outline in window coordinates. Line glyphs have two
    points; bar glyphs have a closed rounded-rectangle outline.
    """
    key: NoteKey
    kind: str  # "line" or "bar"
    points: list[Point]
    color: tuple[int, int, int]
    opacity: float


def rotate_about(point: Point, origin: Point, degrees: float) -> Point:
    """Rotate a point clockwise on screen (y down) around an origin."""
    angle = math.radians(degrees)
    dx = point[0] - origin[0]
    dy = point[1] - origin[1]
    return (
        origin[0] + dx * math.cos(angle) - dy * math.sin(angle),
        origin[1] + dx * math.sin(angle) + dy * math.cos(angle),
    )


def bar_scale(amplitude: float) -> float:
    """Map an amplitude to bar length units (unclamped linear scale)."""
    return amplitude * config.BAR_SCALE_RANGE / (engine_config.BUFFER_SIZE / 2)


def rounded_rect_points(
    x: float, y: float, width: float, height: float, radius: float, steps: int = 4
) -> list[Point]:
    """Outline of a rounded rectangle, clockwise from the top-left."""
    radius = max(0.0, min(radius, width / 2, height / 2))
    if radius == 0:
        return [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]

    corners = [
        (x + width - radius, y + radius, -90),
        (x + width - radius, y + height - radius, 0),
        (x + radius, y + height - radius, 90),
        (x + radius, y + radius, 180),
    ]
    points = []
    for cx, cy, start in corners:
        for i in range(steps + 1):
            angle = math.radians(start + 90 * i / steps)
            points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def ring_marker(key: NoteKey, amplitude: float, layout: Layout) -> Marker:
    """Build the glyph for one note on its ring.

    Octaves above PERCUSSION_OCTAVE draw a thin symmetric line (mostly
    transient energy up there); lower octaves draw a colored bar whose
    thickness shrinks as the octave rises.
    """
    cx, cy = layout.ring_center(key.octave)
    angle = math.radians(hue_of(key.pitch_class))
    x = math.cos(angle) * layout.radius
    y = math.sin(angle) * layout.radius
    rotation = angle_of(key.pitch_class)

    if key.octave > config.PERCUSSION_OCTAVE:
        half = min(amplitude, config.LINE_MAX_HALF_LENGTH)
        local = [(x - half, y), (x + half, y)]
        kind = "line"
        color = config.COLOR_PERCUSSION_LINE
        opacity = config.LINE_OPACITY
    else:
        scale = bar_scale(amplitude)
        width = max(min(scale * 2, config.BAR_MAX_WIDTH), 0)
        height = 2 * (10 - key.octave)
        corner = max(min(config.BAR_MAX_CORNER, scale / 2), 0)
        local = rounded_rect_points(
            x - min(scale, config.BAR_MAX_OFFSET), y, width, height, corner
        )
        kind = "bar"
        r, g, b = hsl_color(hue_of(key.pitch_class), config.MARKER_SATURATION, config.MARKER_LIGHTNESS)
        color = (int(round(r)), int(round(g)), int(round(b)))
        opacity = config.BAR_OPACITY

    points = [
        (px + cx, py + cy) for px, py in (rotate_about(p, (x, y), rotation) for p in local)
    ]
    return Marker(key=key, kind=kind, points=points, color=color, opacity=opacity)


def ring_markers(state: VisualizerState) -> list[Marker]:
    """Glyphs for every note on every ring, top ring first."""
    markers = []
    for octave in state.layout.octave_order:
        for pitch_class in range(len(NOTE_NAMES)):
            key = NoteKey(pitch_class, octave)
            markers.append(ring_marker(key, state.amplitude(key), state.layout))
    return markers


def backdrop_hit(layout: Layout, position: Point) -> bool:
    """Whether a click lands on any ring backdrop."""
    radius = layout.radius * config.BACKDROP_RADIUS_SCALE
    for octave in layout.octave_order:
        cx, cy = layout.ring_center(octave)
        if math.hypot(position[0] - cx, position[1] - cy) <= radius:
            return True
    return False


def _to_rgb(color) -> tuple[int, int, int]:
    return tuple(max(0, min(255, int(round(c)))) for c in color[:3])  # type: ignore


class EventAction(Enum):
    """What a window event did to the visualizer state."""
    QUIT = "quit"
    TOGGLE = "toggle"
    RESIZE = "resize"
    COLLAPSE = "collapse"


def apply_event(state: VisualizerState, event) -> Optional[EventAction]:
    """Apply one PyGame event to the state.

    Ctrl/Cmd + H flips visibility and a resize relayouts the rings. A left
    click on a visible backdrop collapses or restores them. ESC and window
    close ask to quit. Other events return None.
    """
    if event.type == pygame.QUIT:
        return EventAction.QUIT
    if event.type == pygame.KEYDOWN:
        if event.key == pygame.K_ESCAPE:
            return EventAction.QUIT
        if event.key == pygame.K_h and event.mod & (pygame.KMOD_CTRL | pygame.KMOD_META):
            state.toggle_visibility()
            return EventAction.TOGGLE
    elif event.type == pygame.VIDEORESIZE:
        state.resize(max(event.w, 1), max(event.h, 1))
        return EventAction.RESIZE
    elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
        if state.visible and backdrop_hit(state.layout, event.pos):
            state.toggle_collapse()
            return EventAction.COLLAPSE
    return None


class Renderer:
    """PyGame-based renderer for the AudioForma visualizer."""

    def __init__(self, state: VisualizerState, animator: PathAnimator):
        """Initialize the renderer.

        Args:
            state: Shared visualizer state
            animator: Trail animator whose rendered shape is drawn
        """
        if not HAS_PYGAME:
            raise ImportError(
                "pygame is required for visualization. "
                "Install with: pip install pygame"
            )

        self.state = state
        self.animator = animator
        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font: Optional[pygame.font.Font] = None
        self.running = False

        # Called with the new visibility after each toggle
        self.on_toggle: Optional[Callable[[bool], None]] = None

    def start(self) -> None:
        """Initialize PyGame and create window."""
        pygame.init()
        pygame.font.init()

        self.screen = pygame.display.set_mode(
            (config.WINDOW_WIDTH, config.WINDOW_HEIGHT), pygame.RESIZABLE
        )
        pygame.display.set_caption(config.WINDOW_TITLE)
        self.state.resize(config.WINDOW_WIDTH, config.WINDOW_HEIGHT)

        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 20)
        self.running = True

    def stop(self) -> None:
        """Shut down PyGame."""
        self.running = False
        pygame.quit()

    def handle_events(self) -> bool:
        """Process PyGame events. Returns False if should quit."""
        for event in pygame.event.get():
            action = apply_event(self.state, event)
            if action is EventAction.QUIT:
                return False
            elif action is EventAction.TOGGLE:
                if self.on_toggle:
                    self.on_toggle(self.state.visible)
            elif action is EventAction.RESIZE:
                self.screen = pygame.display.get_surface()
        return True

    def render(self) -> None:
        """Render one frame."""
        if not self.screen:
            return

        self.screen.fill(config.COLOR_BACKGROUND)

        if self.state.visible:
            self._draw_backdrops()
            self._draw_markers()
            self._draw_trail()

        self._draw_help()
        pygame.display.flip()

    def _draw_backdrops(self) -> None:
        """Draw one translucent disc behind each ring."""
        layout = self.state.layout
        radius = layout.radius * config.BACKDROP_RADIUS_SCALE
        alpha = int(255 * config.BACKDROP_OPACITY)
        size = int(radius * 2) + 2

        for octave in layout.octave_order:
            cx, cy = layout.ring_center(octave)
            disc = pygame.Surface((size, size), pygame.SRCALPHA)
            pygame.draw.circle(disc, (*config.COLOR_BACKDROP, alpha), (size // 2, size // 2), int(radius))
            self.screen.blit(disc, (cx - size // 2, cy - size // 2))

    def _draw_markers(self) -> None:
        """Draw the per-note amplitude glyphs on every ring."""
        for marker in ring_markers(self.state):
            alpha = int(255 * marker.opacity)
            if marker.kind == "line":
                self._draw_translucent(marker.points, marker.color, alpha, width=1, closed=False)
            else:
                self._draw_translucent(marker.points, marker.color, alpha)
                self._draw_translucent(marker.points, config.COLOR_MARKER_OUTLINE, alpha, width=1)

    def _draw_trail(self) -> None:
        """Draw the animated dominant-note trail."""
        points = [(float(x), float(y)) for x, y in self.animator.shape]
        fill_alpha = int(255 * config.TRAIL_FILL_OPACITY * config.TRAIL_OPACITY)
        stroke_alpha = int(255 * config.TRAIL_OPACITY)

        self._draw_translucent(points, _to_rgb(self.animator.fill_color), fill_alpha)
        self._draw_translucent(
            points, _to_rgb(self.animator.stroke_color), stroke_alpha,
            width=config.TRAIL_STROKE_WIDTH,
        )

    def _draw_help(self) -> None:
        """Draw the shortcut hint at the bottom centre."""
        if not self.font:
            return

        label = self.font.render(config.HELP_TEXT, True, config.COLOR_TEXT)
        panel = pygame.Surface(
            (label.get_width() + 24, label.get_height() + 16), pygame.SRCALPHA
        )
        panel.fill(config.COLOR_HELP_PANEL)
        panel.blit(label, (12, 8))

        width, height = self.screen.get_size()
        self.screen.blit(panel, ((width - panel.get_width()) // 2, height - 20 - panel.get_height()))

    def _draw_translucent(
        self,
        points: list[Point],
        color: tuple[int, int, int],
        alpha: int,
        width: int = 0,
        closed: bool = True,
    ) -> None:
        """Draw a polygon or polyline with alpha onto the screen.

        Draws into a surface sized to the shape's bounding box, so only
        that region is blended.
        """
        if len(points) < 2:
            return

        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        pad = width + 1
        left = math.floor(min(xs)) - pad
        top = math.floor(min(ys)) - pad
        size = (
            max(1, math.ceil(max(xs)) - left + pad),
            max(1, math.ceil(max(ys)) - top + pad),
        )

        layer = pygame.Surface(size, pygame.SRCALPHA)
        local = [(x - left, y - top) for x, y in points]
        rgba = (*color, alpha)

        if not closed:
            pygame.draw.lines(layer, rgba, False, local, max(width, 1))
        elif width == 0 and len(local) >= 3:
            pygame.draw.polygon(layer, rgba, local)
        else:
            pygame.draw.lines(layer, rgba, True, local, max(width, 1))

        self.screen.blit(layer, (left, top))
