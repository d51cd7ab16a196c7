"""Frequency to musical note classification.

This module implements the pitch side of AudioForma: it maps a frequency
to the nearest chromatic pitch class, the octave it falls in, and how far
(in cents) it deviates from the idealized note.
"""

import math
from dataclasses import dataclass

# Chromatic pitch classes, indexed 0-11 from C
NOTE_NAMES: list[str] = [
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
]

# Angular position of each pitch class on the ring (degrees, C at 0)
# Neighbouring positions are a major sixth apart rather than a semitone
NOTE_ANGLES: dict[str, int] = {
    "C": 0,
    "C#": 210,
    "D": 60,
    "D#": 270,
    "E": 120,
    "F": 330,
    "F#": 180,
    "G": 30,
    "G#": 240,
    "A": 90,
    "A#": 300,
    "B": 150,
}

# Reference frequency of each pitch class at octave 0 (Hz)
NOTE_FREQUENCIES: dict[str, float] = {
    "C": 16.35,
    "C#": 17.32,
    "D": 18.35,
    "D#": 19.45,
    "E": 20.6,
    "F": 21.83,
    "F#": 23.12,
    "G": 24.5,
    "G#": 25.96,
    "A": 27.5,
    "A#": 29.14,
    "B": 30.87,
}

# C0, the frequency all semitone distances are measured from
BASE_FREQUENCY = NOTE_FREQUENCIES["C"]

PITCH_CLASS_COUNT = len(NOTE_NAMES)


@dataclass(frozen=True)
class NoteKey:
    """A ring position: pitch class index (0-11) and octave."""
    pitch_class: int
    octave: int

    @property
    def name(self) -> str:
        """Pitch class name without the octave (e.g. 'A#')."""
        return NOTE_NAMES[self.pitch_class]

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class Classification:
    """Result of classifying a frequency."""
    pitch_class: int
    octave: int
    cents: int

    @property
    def key(self) -> NoteKey:
        return NoteKey(self.pitch_class, self.octave)

    @property
    def name(self) -> str:
        return NOTE_NAMES[self.pitch_class]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity."""
    return math.floor(value + 0.5)


def exact_frequency(pitch_class: int, octave: int) -> float:
    """Idealized frequency of a pitch class in a given octave.

    Args:
        pitch_class: Pitch class index (0 = C)
        octave: Octave number (0 = the reference octave)

    Returns:
        Frequency in Hz
    """
    return NOTE_FREQUENCIES[NOTE_NAMES[pitch_class]] * (2.0 ** octave)


def classify(frequency: float) -> Classification:
    """Classify a frequency as pitch class, octave and cents deviation.

    A frequency within half a semitone below the next C rounds up to
    pitch class 12; that is folded into C of the following octave.

    Args:
        frequency: Frequency in Hz

    Returns:
        Classification of the nearest note

    Examples:
        >>> classify(440.0)
        Classification(pitch_class=9, octave=4, cents=0)
    """
    if frequency <= 0:
        raise ValueError(f"Frequency must be positive, got {frequency}")

    semitones = 12 * math.log2(frequency / BASE_FREQUENCY)
    octave = math.floor(semitones / 12)
    note_index = round_half_up(semitones % 12)

    if note_index == PITCH_CLASS_COUNT:
        note_index = 0
        octave += 1

    exact = exact_frequency(note_index, octave)
    cents = round_half_up(1200 * math.log2(frequency / exact))

    return Classification(pitch_class=note_index, octave=octave, cents=cents)


def angle_of(pitch_class: int) -> int:
    """Ring angle of a pitch class in degrees."""
    return NOTE_ANGLES[NOTE_NAMES[pitch_class]]


def hue_of(pitch_class: int) -> int:
    """Hue (and drawing angle) of a pitch class.

    Rotated by -90 degrees so that C sits at the top of the ring.
    """
    return angle_of(pitch_class) - 90


def parse_note(name: str) -> NoteKey:
    """Parse a note name such as 'C#4' or 'A3' into a NoteKey."""
    letters = name.rstrip("0123456789")
    digits = name[len(letters):]
    if letters not in NOTE_NAMES or not digits:
        raise ValueError(f"Not a note name: {name!r}")
    return NoteKey(NOTE_NAMES.index(letters), int(digits))
