"""Dominant note selection and ring geometry.

Picks the strongest note of a frame and places it on the radial layout:
the pitch class sets the direction, the weight sets the distance from the
ring centre and the octave sets which ring it belongs to.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from . import config
from .notes import NoteKey, hue_of
from .spectrum import AmplitudeMap


@dataclass(frozen=True)
class PathPoint:
    """A trail vertex and the hue of the note that produced it."""
    x: float
    y: float
    hue: float

    def same_position(self, other: "PathPoint") -> bool:
        return self.x == other.x and self.y == other.y


@dataclass(frozen=True)
class Selection:
    """The dominant note of one frame, placed on the layout."""
    key: NoteKey
    point: PathPoint
    weight: float


@dataclass
class Layout:
    """Current drawing geometry."""
    width: float
    height: float
    radius: float
    octave_order: list[int] = field(default_factory=lambda: list(config.OCTAVES))

    @classmethod
    def from_size(cls, width: float, height: float) -> "Layout":
        """Derive the ring radius from the drawing size."""
        return cls(width=width, height=height, radius=min(width, height) / 3)

    def ring_index(self, octave: int) -> int:
        """Position of an octave's ring in display order (0 = top)."""
        return self.octave_order.index(octave)

    def ring_center(self, octave: int) -> tuple[float, float]:
        """Centre of the ring drawn for an octave."""
        return self.width / 2, ring_offset(self.radius, self.ring_index(octave))


def ring_offset(radius: float, ring_index: int) -> float:
    """Vertical centre of the ring at a display index."""
    return radius + ring_index * config.RING_SPACING


def point_on_ring(key: NoteKey, weight: float, layout: Layout) -> PathPoint:
    """Place a weighted note on its ring.

    The distance from the ring centre grows with the weight and saturates
    at the full radius once the weight reaches BUFFER_SIZE.
    """
    degrees = hue_of(key.pitch_class)
    scaled_radius = layout.radius * min(weight / config.BUFFER_SIZE, 1)

    x_move = layout.width / 2
    y_move = ring_offset(layout.radius, layout.ring_index(key.octave))

    angle = math.radians(degrees)
    x = math.cos(angle) * scaled_radius + x_move
    y = math.sin(angle) * scaled_radius + y_move
    return PathPoint(x=x, y=y, hue=degrees)


def select(amplitudes: AmplitudeMap, layout: Layout) -> Optional[Selection]:
    """Pick the dominant note of a frame.

    Args:
        amplitudes: Per-note weights for the frame
        layout: Current drawing geometry

    Returns:
        Selection for the strongest key, or None if the map is empty
    """
    strongest = amplitudes.strongest()
    if strongest is None:
        return None

    key, weight = strongest
    return Selection(key=key, point=point_on_ring(key, weight, layout), weight=weight)
