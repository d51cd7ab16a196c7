"""Dominant-note trail animation.

Keeps a short rolling history of dominant-note positions and morphs the
rendered closed curve toward the curve through that history. Every
interpolation cycle starts from whatever is on screen at that moment, so
updates arriving faster than cycles complete never cause a jump.
"""

import colorsys
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from audioforma import config as engine_config
from audioforma.dominant import PathPoint, Selection

from . import config

Color = tuple[float, float, float]


class CurveStyle(Enum):
    """How the trail connects its points."""
    SMOOTH = 0  # Closed B-spline, sustained/tonal energy
    SHARP = 1   # Closed polyline, transient/percussive energy


class AnimatorState(Enum):
    """Render-side state of the animator."""
    IDLE = 0
    ANIMATING = 1
    STOPPED = 2


def hsl_color(hue: float, saturation: float, lightness: float) -> Color:
    """Convert HSL (hue in degrees, any range) to 0-255 RGB floats."""
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness, saturation)
    return r * 255.0, g * 255.0, b * 255.0


def trail_color(hue: float) -> Color:
    """Fill and stroke color of the trail for a note hue."""
    return hsl_color(hue, config.TRAIL_SATURATION, config.TRAIL_LIGHTNESS)


def curve_style_for(weight: float) -> CurveStyle:
    """Pick the curve style from the triggering note's weight.

    A weight of exactly 75% of the buffer size is still smooth.
    """
    threshold = engine_config.BUFFER_SIZE * engine_config.SHARP_CURVE_RATIO
    return CurveStyle.SHARP if weight > threshold else CurveStyle.SMOOTH


def ease_cubic_in_out(t: float) -> float:
    """Cubic ease-in-out on [0, 1]."""
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


def _segment_positions(count: int, samples: int) -> tuple[np.ndarray, np.ndarray]:
    """Segment index and fraction for evenly spaced samples around a loop."""
    u = np.arange(samples) * count / samples
    segment = np.floor(u).astype(int)
    return segment, (u - segment)[:, None]


def linear_closed(points: np.ndarray, samples: int) -> np.ndarray:
    """Sample the closed polyline through the points."""
    count = len(points)
    segment, t = _segment_positions(count, samples)
    start = points[segment % count]
    end = points[(segment + 1) % count]
    return start + (end - start) * t


def basis_closed(points: np.ndarray, samples: int) -> np.ndarray:
    """Sample the closed uniform cubic B-spline with the points as controls."""
    count = len(points)
    segment, t = _segment_positions(count, samples)
    p0 = points[(segment - 1) % count]
    p1 = points[segment % count]
    p2 = points[(segment + 1) % count]
    p3 = points[(segment + 2) % count]

    t2 = t * t
    t3 = t2 * t
    return (
        (1 - t) ** 3 * p0
        + (3 * t3 - 6 * t2 + 4) * p1
        + (-3 * t3 + 3 * t2 + 3 * t + 1) * p2
        + t3 * p3
    ) / 6


def placeholder_shape(samples: int = config.SHAPE_SAMPLES) -> np.ndarray:
    """Degenerate shape drawn while there are too few points for a curve."""
    return linear_closed(np.array(config.PLACEHOLDER_SEGMENT, dtype=float), samples)


def build_shape(
    points: Sequence[PathPoint],
    style: CurveStyle,
    samples: int = config.SHAPE_SAMPLES,
) -> np.ndarray:
    """Closed curve through the points as a fixed number of vertices.

    Every shape has the same vertex count so any two can be interpolated.
    """
    if len(points) < config.MIN_CURVE_POINTS:
        return placeholder_shape(samples)

    coords = np.array([(p.x, p.y) for p in points], dtype=float)
    if style is CurveStyle.SHARP:
        return linear_closed(coords, samples)
    return basis_closed(coords, samples)


def _lerp_color(start: Color, end: Color, t: float) -> Color:
    return tuple(s + (e - s) * t for s, e in zip(start, end))  # type: ignore


@dataclass
class Transition:
    """One interpolation cycle, from the rendered state to a target."""
    start_time: float
    source_shape: np.ndarray
    target_shape: np.ndarray
    source_fill: Color
    target_fill: Color
    source_stroke: Color
    target_stroke: Color


class PathAnimator:
    """Bounded trail history plus the interpolation that renders it.

    Driven by two calls from the main loop: push() whenever a frame
    produces a dominant note, and tick() once per display frame. A push
    only marks a cycle as pending; the cycle starts on the next tick,
    anchored at the shape and colors rendered at that moment.
    """

    def __init__(
        self,
        capacity: int = config.HISTORY_LENGTH,
        duration: float = config.ANIMATION_DURATION,
        samples: int = config.SHAPE_SAMPLES,
    ):
        """Initialize the animator.

        Args:
            capacity: Maximum number of trail points kept
            duration: Seconds per interpolation cycle
            samples: Vertices per rendered shape
        """
        self.duration = duration
        self.samples = samples
        self._history: deque[PathPoint] = deque(maxlen=capacity)

        # Rendered state
        self.shape = placeholder_shape(samples)
        self.fill_color: Color = tuple(map(float, config.DEFAULT_PATH_COLOR))  # type: ignore
        self.stroke_color: Color = self.fill_color
        self.curve_style = CurveStyle.SMOOTH

        # Target state
        self.target_color: Color = self.fill_color

        self._state = AnimatorState.IDLE
        self._pending = False
        self._transition: Optional[Transition] = None
        self.cycles_started = 0

    @property
    def state(self) -> AnimatorState:
        return self._state

    @property
    def history(self) -> list[PathPoint]:
        """Trail points, oldest first."""
        return list(self._history)

    @property
    def transition(self) -> Optional[Transition]:
        """The in-flight cycle, if any."""
        return self._transition

    @property
    def target_shape(self) -> np.ndarray:
        """Shape the trail is heading towards."""
        return build_shape(self._history, self.curve_style, self.samples)

    def push(self, selection: Selection) -> bool:
        """Add a dominant note to the trail.

        Args:
            selection: The frame's dominant note

        Returns:
            True if the point was stored and a new cycle requested,
            False if it repeats the last point (or the animator is stopped)
        """
        if self._state is AnimatorState.STOPPED:
            return False

        point = selection.point
        if self._history and self._history[-1].same_position(point):
            return False

        self._history.append(point)
        self.curve_style = curve_style_for(selection.weight)
        self.target_color = trail_color(point.hue)
        self._pending = True
        return True

    def tick(self, now: float) -> bool:
        """Advance the animation to time `now` (seconds).

        Returns:
            True if the rendered state changed
        """
        if self._state is AnimatorState.STOPPED:
            return False

        if self._pending:
            self._begin_cycle(now)

        transition = self._transition
        if transition is None:
            return False

        if self.duration > 0:
            progress = min(max((now - transition.start_time) / self.duration, 0.0), 1.0)
        else:
            progress = 1.0
        eased = ease_cubic_in_out(progress)

        self.shape = transition.source_shape + (
            transition.target_shape - transition.source_shape
        ) * eased
        self.fill_color = _lerp_color(transition.source_fill, transition.target_fill, eased)
        self.stroke_color = _lerp_color(transition.source_stroke, transition.target_stroke, eased)

        if progress >= 1.0:
            self._transition = None
            self._state = AnimatorState.IDLE
        return True

    def stop(self) -> None:
        """Stop animating. Later push() and tick() calls do nothing."""
        self._state = AnimatorState.STOPPED
        self._transition = None
        self._pending = False

    def _begin_cycle(self, now: float) -> None:
        """Start interpolating from the rendered state to the latest target."""
        self._transition = Transition(
            start_time=now,
            source_shape=self.shape.copy(),
            target_shape=self.target_shape,
            source_fill=self.fill_color,
            target_fill=self.target_color,
            source_stroke=self.stroke_color,
            target_stroke=self.target_color,
        )
        self._pending = False
        self._state = AnimatorState.ANIMATING
        self.cycles_started += 1
