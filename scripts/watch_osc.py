#!/usr/bin/env python3
"""Print the dominant-note messages broadcast by AudioForma.

Run AudioForma with --broadcast, then run this script to check that the
messages arrive.
"""

import sys

from audioforma import config

try:
    from pythonosc import dispatcher
    from pythonosc import osc_server
except ImportError:
    print("ERROR: python-osc not installed. Run: pip install python-osc")
    sys.exit(1)


def print_note(address: str, *args) -> None:
    if len(args) >= 4:
        name, octave, weight, hue = args[:4]
        print(f"♪ {name}{octave:<3} weight {weight:10.1f}  hue {hue:6.1f}")


def print_visible(address: str, *args) -> None:
    if args:
        print(f"visible: {bool(args[0])}")


def main() -> None:
    port = int(sys.argv[1]) if len(sys.argv) > 1 else config.OSC_PORT

    disp = dispatcher.Dispatcher()
    disp.map(config.OSC_NOTE, print_note)
    disp.map(config.OSC_VISIBLE, print_visible)

    server = osc_server.BlockingOSCUDPServer(("0.0.0.0", port), disp)
    print(f"Listening for AudioForma on UDP {port} (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
