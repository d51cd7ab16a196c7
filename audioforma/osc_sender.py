"""OSC broadcast of the dominant note.

Lets other programs (lighting, synths, a second display) follow the note
AudioForma is tracking.

Messages:
- /forma/note name octave weight hue   - a new dominant note
- /forma/visible flag                  - visualization shown (1) or hidden (0)
"""

from typing import Optional

try:
    from pythonosc import udp_client
    HAS_OSC = True
except ImportError:
    HAS_OSC = False
    udp_client = None  # type: ignore

from . import config
from .dominant import Selection


class OscBroadcaster:
    """Sends dominant-note updates over OSC using python-osc."""

    def __init__(
        self,
        host: str = config.OSC_HOST,
        port: int = config.OSC_PORT,
    ):
        """Initialize the broadcaster.

        Args:
            host: Target host address
            port: Target UDP port
        """
        if not HAS_OSC:
            raise ImportError(
                "python-osc is required for OSC communication. "
                "Install with: pip install python-osc"
            )

        self.host = host
        self.port = port
        self._client: Optional[udp_client.SimpleUDPClient] = None

    def open(self) -> None:
        """Open the OSC connection."""
        self._client = udp_client.SimpleUDPClient(self.host, self.port)

    def close(self) -> None:
        """Close the OSC connection."""
        self._client = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def send_note(self, selection: Selection) -> None:
        """Broadcast a new dominant note."""
        self.send_raw(
            config.OSC_NOTE,
            selection.key.name,
            int(selection.key.octave),
            float(selection.weight),
            float(selection.point.hue),
        )

    def send_visible(self, visible: bool) -> None:
        """Broadcast the visibility flag."""
        self.send_raw(config.OSC_VISIBLE, 1 if visible else 0)

    def send_raw(self, address: str, *args) -> None:
        if self._client is None:
            return
        self._client.send_message(address, list(args))

    def __enter__(self) -> "OscBroadcaster":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MockOscBroadcaster(OscBroadcaster):
    """Records messages instead of sending them."""

    def __init__(self, *args, verbose: bool = False, **kwargs):
        # Skip the python-osc check, nothing goes on the wire
        self.host = kwargs.get("host", config.OSC_HOST)
        self.port = kwargs.get("port", config.OSC_PORT)
        self.verbose = verbose
        self._client = None
        self._open = False
        self._log: list[dict] = []

    def open(self) -> None:
        self._open = True
        if self.verbose:
            print(f"[MockOSC] Opened connection to {self.host}:{self.port}")

    def close(self) -> None:
        self._open = False
        if self.verbose:
            print("[MockOSC] Connection closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def send_raw(self, address: str, *args) -> None:
        if not self._open:
            return
        self._log.append({"address": address, "args": list(args)})
        if self.verbose:
            print(f"[MockOSC] {address} {list(args)}")

    def get_log(self) -> list[dict]:
        """Messages sent so far."""
        return self._log.copy()

    def clear_log(self) -> None:
        self._log.clear()
