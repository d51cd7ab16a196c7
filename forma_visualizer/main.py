"""Main entry point for the AudioForma visualizer."""

import argparse
import signal
import sys
import time

from audioforma.main import AudioForma, add_common_arguments, build_broadcaster, build_source

from . import config
from .animator import PathAnimator
from .state import VisualizerState


def main() -> None:
    """Entry point for the AudioForma visualizer CLI."""
    parser = argparse.ArgumentParser(
        description="AudioForma Visualizer - Radial trail of the dominant note"
    )
    add_common_arguments(parser)
    parser.add_argument(
        "--hidden",
        action="store_true",
        help="Start with the visual hidden (toggle with Ctrl/Cmd + H)",
    )

    args = parser.parse_args()

    # Create shared state
    state = VisualizerState(visible=not args.hidden)
    animator = PathAnimator()

    # Create components
    broadcaster = build_broadcaster(args)
    engine = AudioForma(
        build_source(args),
        layout=state.layout,
        broadcaster=broadcaster,
        verbose=args.verbose,
    )

    from .renderer import Renderer
    renderer = Renderer(state, animator)
    if broadcaster is not None:
        renderer.on_toggle = broadcaster.send_visible

    # Handle signals
    def signal_handler(sig, frame):
        renderer.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    print("AudioForma Visualizer starting...")
    print(f"  {config.HELP_TEXT}")
    print("  Click a ring to collapse it, ESC to quit")

    try:
        engine.start()
    except (RuntimeError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        renderer.start()

        # Main loop
        while renderer.running:
            renderer.clock.tick(config.FPS)

            if not renderer.handle_events():
                break

            engine.layout = state.layout
            for result in engine.poll():
                state.update_amplitudes(result.amplitudes)
                if result.selection is not None:
                    animator.push(result.selection)

            animator.tick(time.monotonic())
            renderer.render()

    except KeyboardInterrupt:
        pass
    finally:
        animator.stop()
        engine.stop()
        renderer.stop()
        print("Visualizer stopped.")


if __name__ == "__main__":
    main()
