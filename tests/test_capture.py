"""Tests for audio capture and the attachment state machine.

sounddevice is replaced by a fake so no audio hardware is needed.
"""

import types

import numpy as np
import pytest

from audioforma import capture
from audioforma.capture import AnalysisSource, AttachmentState, MockAnalysisSource
from audioforma.dominant import Layout, select
from audioforma.notes import parse_note
from audioforma.spectrum import aggregate

DEVICES = [
    {"name": "USB Mic", "max_input_channels": 1},
    {"name": "Monitor of Built-in Audio", "max_input_channels": 2},
    {"name": "Speakers", "max_input_channels": 0},
]


class FakePortAudioError(Exception):
    pass


class FakeStream:
    def __init__(self, device=None, channels=1, samplerate=44100, blocksize=2048,
                 dtype="float32", callback=None):
        self.device = device
        self.samplerate = samplerate
        self.callback = callback
        self.started = False
        self.closed = False
        self.fail_start = False

    def start(self):
        if self.fail_start:
            raise FakePortAudioError("Device unavailable [PaErrorCode -9985]")
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sd(monkeypatch):
    """Install a fake sounddevice.

    `busy` lists devices that refuse to open, `refuse_start` lists devices
    that open but fail to start.
    """
    fake = types.SimpleNamespace(busy=set(), refuse_start=set(), opened=[], devices=list(DEVICES))

    def input_stream(**kwargs):
        if kwargs.get("device") in fake.busy:
            raise FakePortAudioError("Device unavailable")
        stream = FakeStream(**kwargs)
        stream.fail_start = kwargs.get("device") in fake.refuse_start
        fake.opened.append(stream)
        return stream

    def query_devices(device=None):
        if device is None:
            return fake.devices
        return fake.devices[device]

    fake.PortAudioError = FakePortAudioError
    fake.InputStream = input_stream
    fake.query_devices = query_devices

    monkeypatch.setattr(capture, "sd", fake)
    monkeypatch.setattr(capture, "HAS_SOUNDDEVICE", True)
    return fake


class TestAttachment:
    """Tests for the Unattached / Attached / AttachedViaFallback machine."""

    def test_starts_unattached(self, fake_sd):
        assert AnalysisSource().state is AttachmentState.UNATTACHED

    def test_direct_attach(self, fake_sd):
        source = AnalysisSource()
        assert source.attach() is AttachmentState.ATTACHED
        assert source.device_name == "default input"
        assert fake_sd.opened[0].started

    def test_device_pattern(self, fake_sd):
        source = AnalysisSource(device_pattern="usb")
        source.attach()
        assert fake_sd.opened[0].device == 0
        assert source.device_name == "USB Mic"

    def test_unknown_pattern_uses_default(self, fake_sd):
        source = AnalysisSource(device_pattern="nothing like this")
        source.attach()
        assert fake_sd.opened[0].device is None

    def test_attach_is_guarded(self, fake_sd):
        """A second attach does not open another stream."""
        source = AnalysisSource()
        source.attach()
        assert source.attach() is AttachmentState.ATTACHED
        assert len(fake_sd.opened) == 1

    def test_busy_input_falls_back_to_monitor(self, fake_sd):
        fake_sd.busy.add(None)
        source = AnalysisSource()
        assert source.attach() is AttachmentState.ATTACHED_VIA_FALLBACK
        assert fake_sd.opened[0].device == 1
        assert source.device_name == "Monitor of Built-in Audio"

    def test_fallback_never_reuses_requested_device(self, fake_sd):
        fake_sd.devices = [{"name": "Loopback Mic", "max_input_channels": 1}]
        fake_sd.busy.add(0)
        source = AnalysisSource(device_pattern="loopback")
        with pytest.raises(RuntimeError):
            source.attach()
        assert source.state is AttachmentState.UNATTACHED

    def test_no_monitor_raises(self, fake_sd):
        fake_sd.devices = [DEVICES[0], DEVICES[2]]
        fake_sd.busy.add(None)
        source = AnalysisSource()
        with pytest.raises(RuntimeError):
            source.attach()
        assert source.state is AttachmentState.UNATTACHED

    def test_busy_monitor_raises(self, fake_sd):
        fake_sd.busy.update({None, 1})
        with pytest.raises(RuntimeError):
            AnalysisSource().attach()

    def test_start_failure_falls_back_to_monitor(self, fake_sd):
        """A device that opens but will not start is closed and skipped."""
        fake_sd.refuse_start.add(None)
        source = AnalysisSource()
        assert source.attach() is AttachmentState.ATTACHED_VIA_FALLBACK
        failed, monitor = fake_sd.opened
        assert failed.closed and not failed.started
        assert monitor.device == 1
        assert monitor.started

    def test_start_failure_everywhere_raises(self, fake_sd):
        fake_sd.refuse_start.update({None, 1})
        source = AnalysisSource()
        with pytest.raises(RuntimeError) as excinfo:
            source.attach()
        assert isinstance(excinfo.value.__cause__, FakePortAudioError)
        assert source.state is AttachmentState.UNATTACHED
        assert all(stream.closed for stream in fake_sd.opened)

    def test_start_failure_without_monitor_raises(self, fake_sd):
        fake_sd.devices = [DEVICES[0], DEVICES[2]]
        fake_sd.refuse_start.add(None)
        source = AnalysisSource()
        with pytest.raises(RuntimeError):
            source.attach()
        assert fake_sd.opened[0].closed

    def test_detach(self, fake_sd):
        source = AnalysisSource()
        source.attach()
        source.detach()
        assert source.state is AttachmentState.UNATTACHED
        assert fake_sd.opened[0].closed

    def test_reattach_after_detach(self, fake_sd):
        source = AnalysisSource()
        source.attach()
        source.detach()
        source.attach()
        assert len(fake_sd.opened) == 2

    def test_context_manager(self, fake_sd):
        with AnalysisSource() as source:
            assert source.is_attached
        assert not source.is_attached

    def test_missing_sounddevice(self, monkeypatch):
        monkeypatch.setattr(capture, "HAS_SOUNDDEVICE", False)
        with pytest.raises(ImportError):
            AnalysisSource().attach()


class TestFraming:
    """Tests for buffer assembly and the frame queue."""

    def test_complete_buffers_become_frames(self):
        source = AnalysisSource(buffer_size=2048)
        assert source.feed(np.zeros(2048 * 2 + 100)) == 2
        frames = source.poll()
        assert len(frames) == 2
        assert all(len(frame.spectrum) == 1024 for frame in frames)
        assert source.poll() == []

    def test_partial_buffer_waits(self):
        source = AnalysisSource(buffer_size=2048)
        assert source.feed(np.zeros(1500)) == 0
        assert source.feed(np.zeros(600)) == 1

    def test_frame_carries_sample_rate(self):
        source = AnalysisSource(buffer_size=256, sample_rate=48000)
        source.feed(np.zeros(256))
        assert source.poll()[0].sample_rate == 48000

    def test_full_queue_drops_oldest(self):
        source = AnalysisSource(buffer_size=64, queue_size=2)
        t = np.arange(64)
        for amplitude in (1.0, 2.0, 3.0):
            source.feed(amplitude * np.sin(t))
        frames = source.poll()
        assert len(frames) == 2
        assert source.dropped_frames == 1
        assert frames[0].spectrum.max() == pytest.approx(4 * frames[1].spectrum.max() / 9)

    def test_callback_downmixes(self):
        source = AnalysisSource(buffer_size=4)
        source._callback(np.array([[1.0, 3.0]] * 4), 4, None, None)
        assert len(source.poll()) == 1


class TestMockSource:
    """Tests for the synthetic tone source."""

    def test_one_frame_per_poll(self):
        source = MockAnalysisSource(frequencies=[440.0])
        source.attach()
        assert len(source.poll()) == 1
        assert len(source.poll()) == 1

    def test_nothing_before_attach(self):
        assert MockAnalysisSource().poll() == []

    def test_a440_is_dominant(self):
        source = MockAnalysisSource(frequencies=[440.0])
        source.attach()
        frame = source.poll()[0]
        selection = select(aggregate(frame.spectrum, frame.sample_rate), Layout.from_size(600, 600))
        assert selection.key == parse_note("A4")

    def test_sequence_advances(self):
        source = MockAnalysisSource(frequencies=[100.0, 200.0], frames_per_note=2)
        source.attach()
        heard = []
        for _ in range(5):
            heard.append(source.current_frequency)
            source.poll()
        assert heard == [100.0, 100.0, 200.0, 200.0, 100.0]

    def test_detach(self):
        source = MockAnalysisSource()
        source.attach()
        source.detach()
        assert source.state is AttachmentState.UNATTACHED
        assert source.poll() == []
