"""Audio capture and power spectrum framing using sounddevice.

Opens an input stream, slices the incoming audio into analysis buffers
and hands power spectrum frames to the main loop through a bounded queue.
"""

import math
import queue
from enum import Enum
from typing import Optional, Sequence

import numpy as np

try:
    import sounddevice as sd
    HAS_SOUNDDEVICE = True
except (ImportError, OSError):
    # OSError: sounddevice installed but the PortAudio library is missing
    HAS_SOUNDDEVICE = False
    sd = None  # type: ignore

from . import config
from .spectrum import SpectrumFrame, power_spectrum


class AttachmentState(Enum):
    """Whether (and how) the analyser is attached to an audio source."""
    UNATTACHED = 0
    ATTACHED = 1               # Reading the requested input device
    ATTACHED_VIA_FALLBACK = 2  # Requested device busy, reading the output monitor


class AnalysisSource:
    """Delivers power spectrum frames from a live audio input.

    The PortAudio callback only assembles buffers and queues frames;
    consumers drain them on their own thread with poll().
    """

    def __init__(
        self,
        device_pattern: Optional[str] = config.INPUT_DEVICE_PATTERN,
        buffer_size: int = config.BUFFER_SIZE,
        sample_rate: float = config.SAMPLE_RATE,
        queue_size: int = config.FRAME_QUEUE_SIZE,
        verbose: bool = False,
    ):
        """Initialize the analysis source.

        Args:
            device_pattern: Substring to match in input device names, or None
                for the system default input
            buffer_size: Samples per analysis buffer
            sample_rate: Requested sample rate in Hz
            queue_size: Frames kept between polls (oldest dropped first)
            verbose: If True, print attachment and stream status messages
        """
        self.device_pattern = device_pattern
        self.buffer_size = buffer_size
        self.sample_rate = sample_rate
        self.verbose = verbose
        self.device_name: Optional[str] = None

        self._state = AttachmentState.UNATTACHED
        self._stream = None
        self._frames: queue.Queue = queue.Queue(maxsize=queue_size)
        self._pending = np.zeros(0, dtype=float)
        self.dropped_frames = 0

    @property
    def state(self) -> AttachmentState:
        return self._state

    @property
    def is_attached(self) -> bool:
        return self._state is not AttachmentState.UNATTACHED

    def attach(self) -> AttachmentState:
        """Open the input stream.

        Tries the requested device first. If it cannot be opened or started (usually
        because another program holds it), attaches to a monitor of the
        output instead. Calling attach() while attached does nothing.

        Returns:
            The resulting attachment state

        Raises:
            ImportError: If sounddevice is not available
            RuntimeError: If neither the device nor a monitor can be opened
        """
        if self.is_attached:
            return self._state

        if not HAS_SOUNDDEVICE:
            raise ImportError(
                "sounddevice is required for audio capture. "
                "Install with: pip install sounddevice"
            )

        device = self._find_input_device()
        next_state = AttachmentState.ATTACHED
        try:
            stream = self._start_stream(device)
        except sd.PortAudioError as e:
            if self.verbose:
                print(f"[Audio] Could not start device {device}: {e}")
            monitor = self._find_monitor_device(exclude=device)
            if monitor is None:
                raise RuntimeError(
                    "Could not open an audio input and no output monitor is available"
                ) from e
            if self.verbose:
                print(f"[Audio] Input busy, attaching to output monitor (device {monitor})")
            try:
                stream = self._start_stream(monitor)
            except sd.PortAudioError as monitor_error:
                raise RuntimeError(
                    f"Could not open output monitor (device {monitor})"
                ) from monitor_error
            device = monitor
            next_state = AttachmentState.ATTACHED_VIA_FALLBACK

        self._stream = stream
        self.sample_rate = float(stream.samplerate)
        self.device_name = self._device_label(device)
        self._state = next_state

        if self.verbose:
            print(f"[Audio] Listening on '{self.device_name}' at {self.sample_rate:.0f} Hz")
        return self._state

    def detach(self) -> None:
        """Stop the stream and release the device."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            if self.verbose:
                print("[Audio] Stream closed")
        self._state = AttachmentState.UNATTACHED
        self._pending = np.zeros(0, dtype=float)

    def feed(self, samples: Sequence[float]) -> int:
        """Append mono samples and queue a frame per complete buffer.

        Args:
            samples: Time-domain samples in arrival order

        Returns:
            Number of frames queued
        """
        self._pending = np.concatenate([self._pending, np.asarray(samples, dtype=float)])
        queued = 0
        while self._pending.size >= self.buffer_size:
            block = self._pending[: self.buffer_size]
            self._pending = self._pending[self.buffer_size:]
            self._enqueue(SpectrumFrame(power_spectrum(block), self.sample_rate))
            queued += 1
        return queued

    def poll(self) -> list[SpectrumFrame]:
        """Drain and return all frames queued since the last poll."""
        frames = []
        while True:
            try:
                frames.append(self._frames.get_nowait())
            except queue.Empty:
                return frames

    def _enqueue(self, frame: SpectrumFrame) -> None:
        if self._frames.full():
            try:
                self._frames.get_nowait()
                self.dropped_frames += 1
            except queue.Empty:
                pass
        self._frames.put_nowait(frame)

    def _callback(self, indata, frames, time_info, status) -> None:
        """PortAudio callback: downmix to mono and feed the framer."""
        if status and self.verbose:
            print(f"[Audio] Stream status: {status}")
        block = np.asarray(indata, dtype=float)
        if block.ndim > 1:
            block = block.mean(axis=1)
        self.feed(block)

    def _start_stream(self, device: Optional[int]):
        """Open and start an input stream.

        A stream that opens but fails to start is closed before the
        PortAudioError propagates.
        """
        stream = sd.InputStream(
            device=device,
            channels=1,
            samplerate=self.sample_rate,
            blocksize=self.buffer_size,
            dtype="float32",
            callback=self._callback,
        )
        try:
            stream.start()
        except sd.PortAudioError:
            stream.close()
            raise
        return stream

    def _find_input_device(self) -> Optional[int]:
        """Index of the first input device matching the pattern."""
        if not self.device_pattern:
            return None

        for index, info in enumerate(sd.query_devices()):
            if info["max_input_channels"] <= 0:
                continue
            if self.device_pattern.lower() in info["name"].lower():
                return index

        if self.verbose:
            print(f"Warning: No input matching '{self.device_pattern}', using default input.")
        return None

    def _find_monitor_device(self, exclude: Optional[int] = None) -> Optional[int]:
        """Index of an input that records what the system is playing."""
        for index, info in enumerate(sd.query_devices()):
            if index == exclude or info["max_input_channels"] <= 0:
                continue
            name = info["name"].lower()
            if any(pattern in name for pattern in config.MONITOR_DEVICE_PATTERNS):
                return index
        return None

    def _device_label(self, device: Optional[int]) -> str:
        if device is None:
            return "default input"
        return sd.query_devices(device)["name"]

    def __enter__(self) -> "AnalysisSource":
        self.attach()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.detach()


class MockAnalysisSource(AnalysisSource):
    """Synthetic source that plays a fixed sequence of sine tones.

    Each poll() synthesizes one analysis buffer, so frames arrive at the
    pace of the caller. Useful for testing and running without a device.
    """

    def __init__(
        self,
        frequencies: Sequence[float] = (261.63, 329.63, 392.0, 440.0),
        frames_per_note: int = 8,
        amplitude: float = 0.05,
        buffer_size: int = config.BUFFER_SIZE,
        sample_rate: float = config.SAMPLE_RATE,
        verbose: bool = False,
    ):
        super().__init__(
            buffer_size=buffer_size,
            sample_rate=sample_rate,
            verbose=verbose,
        )
        self.frequencies = list(frequencies)
        self.frames_per_note = frames_per_note
        self.amplitude = amplitude
        self._frame_count = 0
        self._sample_clock = 0

    def attach(self) -> AttachmentState:
        if not self.is_attached:
            self._state = AttachmentState.ATTACHED
            self.device_name = "mock tones"
            if self.verbose:
                print(f"[MockAudio] Playing {len(self.frequencies)} tones")
        return self._state

    def detach(self) -> None:
        if self.verbose and self.is_attached:
            print("[MockAudio] Stopped")
        self._state = AttachmentState.UNATTACHED
        self._pending = np.zeros(0, dtype=float)

    @property
    def current_frequency(self) -> float:
        note = (self._frame_count // self.frames_per_note) % len(self.frequencies)
        return self.frequencies[note]

    def synthesize(self) -> np.ndarray:
        """Produce the next buffer of the tone sequence."""
        t = (self._sample_clock + np.arange(self.buffer_size)) / self.sample_rate
        samples = self.amplitude * np.sin(2 * math.pi * self.current_frequency * t)
        self._sample_clock += self.buffer_size
        self._frame_count += 1
        return samples

    def poll(self) -> list[SpectrumFrame]:
        if self.is_attached and self.frequencies:
            self.feed(self.synthesize())
        return super().poll()
