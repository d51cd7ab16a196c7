"""Main entry point for AudioForma.

Wires audio capture, note aggregation and dominant-note selection, and
provides a headless monitor that prints the note being tracked.
"""

import argparse
import signal
import sys
import time
from dataclasses import dataclass
from typing import Optional

from . import config
from .capture import AnalysisSource, MockAnalysisSource
from .dominant import Layout, Selection, select
from .notes import NoteKey
from .osc_sender import MockOscBroadcaster, OscBroadcaster
from .spectrum import AmplitudeMap, SpectrumFrame, aggregate


@dataclass
class FrameResult:
    """Outcome of analysing one spectrum frame."""
    amplitudes: AmplitudeMap
    selection: Optional[Selection]


class AudioForma:
    """Analysis engine: spectrum frames in, dominant notes out.

    Owns the capture source and the optional broadcaster. All processing
    happens on the caller's thread inside poll().
    """

    def __init__(
        self,
        source: AnalysisSource,
        layout: Optional[Layout] = None,
        broadcaster: Optional[OscBroadcaster] = None,
        verbose: bool = True,
    ):
        """Initialize the engine.

        Args:
            source: Where spectrum frames come from
            layout: Geometry used to place dominant notes
            broadcaster: If given, dominant note changes are sent over OSC
            verbose: If True, print status messages
        """
        self.source = source
        self.layout = layout or Layout.from_size(600, 600 / (16 / 9))
        self.broadcaster = broadcaster
        self.verbose = verbose
        self.running = False

        self.last_selection: Optional[Selection] = None
        self._last_broadcast_key: Optional[NoteKey] = None

    def start(self) -> None:
        """Attach to the audio source and open the broadcaster."""
        state = self.source.attach()
        if self.verbose:
            print(f"✓ Audio: {self.source.device_name} ({state.name.lower()})")

        if self.broadcaster is not None:
            self.broadcaster.open()
            if self.verbose:
                print(f"✓ OSC: Broadcasting to {self.broadcaster.host}:{self.broadcaster.port}")

        self.running = True

    def stop(self) -> None:
        """Release the audio source and close the broadcaster."""
        self.running = False
        self.source.detach()
        if self.broadcaster is not None:
            self.broadcaster.close()

    def process(self, frame: SpectrumFrame) -> FrameResult:
        """Aggregate one frame and pick its dominant note."""
        amplitudes = aggregate(frame.spectrum, frame.sample_rate)
        selection = select(amplitudes, self.layout)

        if selection is not None:
            self.last_selection = selection
            if selection.key != self._last_broadcast_key:
                self._last_broadcast_key = selection.key
                if self.broadcaster is not None:
                    self.broadcaster.send_note(selection)

        return FrameResult(amplitudes=amplitudes, selection=selection)

    def poll(self) -> list[FrameResult]:
        """Process every frame the source delivered since the last poll."""
        return [self.process(frame) for frame in self.source.poll()]


def build_source(args: argparse.Namespace) -> AnalysisSource:
    """Create the analysis source selected on the command line."""
    if args.mock:
        return MockAnalysisSource(verbose=args.verbose)
    return AnalysisSource(device_pattern=args.device, verbose=args.verbose)


def build_broadcaster(args: argparse.Namespace) -> Optional[OscBroadcaster]:
    """Create the OSC broadcaster selected on the command line."""
    if not args.broadcast:
        return None
    if args.mock_osc:
        return MockOscBroadcaster(port=args.port, verbose=args.verbose)
    return OscBroadcaster(port=args.port)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by the monitor and the visualizer."""
    parser.add_argument(
        "--device",
        default=config.INPUT_DEVICE_PATTERN,
        help="Substring of the input device name (default: system input)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a synthetic tone sequence instead of a real input",
    )
    parser.add_argument(
        "--broadcast",
        action="store_true",
        help="Broadcast the dominant note over OSC",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.OSC_PORT,
        help=f"OSC broadcast port (default: {config.OSC_PORT})",
    )
    parser.add_argument(
        "--mock-osc",
        action="store_true",
        help="Print OSC messages instead of sending them",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print capture and OSC details",
    )


def main() -> None:
    """Entry point for the headless AudioForma monitor."""
    parser = argparse.ArgumentParser(
        description="AudioForma - Track the dominant musical note of live audio"
    )
    add_common_arguments(parser)
    args = parser.parse_args()

    engine = AudioForma(
        build_source(args),
        broadcaster=build_broadcaster(args),
        verbose=True,
    )

    def signal_handler(sig, frame):
        engine.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        engine.start()
    except (RuntimeError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("\n🎵 AudioForma is listening! Press Ctrl+C to stop.\n")

    last_key: Optional[NoteKey] = None
    try:
        while engine.running:
            for result in engine.poll():
                selection = result.selection
                if selection is None or selection.key == last_key:
                    continue
                last_key = selection.key
                print(f"♪ {str(selection.key):<4} weight {selection.weight:10.1f}")
            time.sleep(config.POLL_INTERVAL)
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
        print("\n✓ AudioForma has stopped.")


if __name__ == "__main__":
    main()
