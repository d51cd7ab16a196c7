"""Power spectrum to per-note amplitude aggregation.

Every analysis frame is folded into a fixed table of 8 octaves by 12
pitch classes. Each spectrum bin contributes its magnitude weighted by
how close the bin frequency is to the idealized note frequency.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

import numpy as np

from . import config
from .notes import PITCH_CLASS_COUNT, NoteKey, classify

OCTAVE_COUNT = len(config.OCTAVES)


@dataclass
class SpectrumFrame:
    """One analysis frame as delivered by a capture source."""
    spectrum: np.ndarray
    sample_rate: float


class AmplitudeMap:
    """Accumulated weight per (pitch class, octave) for one frame.

    Backed by a fixed octave x pitch-class table. Keys that never
    received a contribution are absent, even though their table cell
    reads 0.0.
    """

    def __init__(self):
        self.weights = np.zeros((OCTAVE_COUNT, PITCH_CLASS_COUNT), dtype=float)
        self.present = np.zeros((OCTAVE_COUNT, PITCH_CLASS_COUNT), dtype=bool)

    @classmethod
    def from_dict(cls, weights: dict[NoteKey, float]) -> "AmplitudeMap":
        """Build a map from explicit key/weight pairs."""
        amplitudes = cls()
        for key, weight in weights.items():
            amplitudes.add(key, weight)
        return amplitudes

    @staticmethod
    def has_ring(key: NoteKey) -> bool:
        """Whether the key falls inside the displayable octave range."""
        return 0 <= key.octave < OCTAVE_COUNT and 0 <= key.pitch_class < PITCH_CLASS_COUNT

    def add(self, key: NoteKey, amount: float) -> None:
        """Accumulate a weighted amplitude into a key."""
        if not self.has_ring(key):
            raise KeyError(f"No ring for {key}")
        self.weights[key.octave, key.pitch_class] += amount
        self.present[key.octave, key.pitch_class] = True

    def get(self, key: NoteKey, default: float = 0.0) -> float:
        if key not in self:
            return default
        return float(self.weights[key.octave, key.pitch_class])

    def __getitem__(self, key: NoteKey) -> float:
        if key not in self:
            raise KeyError(key)
        return float(self.weights[key.octave, key.pitch_class])

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, NoteKey) or not self.has_ring(key):
            return False
        return bool(self.present[key.octave, key.pitch_class])

    def __len__(self) -> int:
        return int(self.present.sum())

    def __bool__(self) -> bool:
        return bool(self.present.any())

    def __iter__(self) -> Iterator[NoteKey]:
        for octave, pitch_class in zip(*np.nonzero(self.present)):
            yield NoteKey(int(pitch_class), int(octave))

    def items(self) -> list[tuple[NoteKey, float]]:
        """Present keys with their weights, in key order."""
        return [(key, self[key]) for key in self]

    def as_dict(self) -> dict[NoteKey, float]:
        return dict(self.items())

    def strongest(self) -> Optional[tuple[NoteKey, float]]:
        """The key with the highest weight, or None if the map is empty.

        Ties go to the first key in key order (lowest octave, then
        lowest pitch class).
        """
        if not self:
            return None
        masked = np.where(self.present, self.weights, -np.inf)
        octave, pitch_class = np.unravel_index(int(np.argmax(masked)), masked.shape)
        key = NoteKey(int(pitch_class), int(octave))
        return key, self[key]

    def __repr__(self) -> str:
        entries = ", ".join(f"{key}: {weight:.3f}" for key, weight in self.items())
        return f"AmplitudeMap({{{entries}}})"


def note_weight(cents: float) -> float:
    """Weight of a bin given its deviation from the note in cents.

    Falls linearly from 1.0 at 0 cents to 0.0 at 50 cents. Deviations
    beyond 50 cents give a negative weight; this is not clamped.
    """
    return 1 - abs(cents) / config.CENTS_FALLOFF


def aggregate(spectrum: Sequence[float], sample_rate: float) -> AmplitudeMap:
    """Fold a power spectrum into per-note weighted amplitudes.

    Args:
        spectrum: Magnitudes for bins 0..N-1 covering 0 to sample_rate / 2
        sample_rate: Sample rate of the analysed audio in Hz

    Returns:
        AmplitudeMap for this frame alone
    """
    if sample_rate <= 0:
        raise ValueError(f"Sample rate must be positive, got {sample_rate}")

    amplitudes = AmplitudeMap()
    if len(spectrum) == 0:
        return amplitudes

    bin_width = sample_rate / (2 * len(spectrum))

    for index, amplitude in enumerate(spectrum):
        frequency = index * bin_width

        if frequency < config.MIN_FREQUENCY or frequency > config.MAX_FREQUENCY:
            continue
        if amplitude <= config.NOISE_FLOOR:
            continue

        note = classify(frequency)
        key = note.key
        # B7 is the highest ring; anything above has nowhere to be drawn
        if not AmplitudeMap.has_ring(key):
            continue

        amplitudes.add(key, float(amplitude) * note_weight(note.cents))

    return amplitudes


def power_spectrum(samples: Sequence[float]) -> np.ndarray:
    """Compute the power spectrum of one analysis buffer.

    Applies a Hann window, takes the FFT and returns the squared
    magnitudes of the lower half (N / 2 bins).

    Args:
        samples: Time-domain samples, one analysis buffer long

    Returns:
        Array of N / 2 non-negative power values
    """
    buffer = np.asarray(samples, dtype=float)
    if buffer.size == 0:
        return np.zeros(0)

    windowed = buffer * np.hanning(buffer.size)
    magnitudes = np.abs(np.fft.fft(windowed))[: buffer.size // 2]
    return magnitudes ** 2
