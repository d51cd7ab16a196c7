"""State manager for the visualizer.

Holds everything the renderer reads that is not part of the trail
animation: geometry, visibility and the latest per-note readout.
"""

from dataclasses import dataclass, field

from audioforma.dominant import Layout
from audioforma.notes import NoteKey
from audioforma.spectrum import AmplitudeMap

from . import config


@dataclass
class VisualizerState:
    """Complete visualizer state outside the trail animation.

    Updated from the main loop only: analysis results, resize events,
    the toggle shortcut and backdrop clicks.
    """

    layout: Layout = field(
        default_factory=lambda: Layout.from_size(config.WINDOW_WIDTH, config.WINDOW_HEIGHT)
    )

    # Whether the whole visualization is drawn
    visible: bool = True

    # Rings shrunk to a dot by clicking a backdrop
    collapsed: bool = False

    # Readout of the most recent analysis frame
    amplitudes: AmplitudeMap = field(default_factory=AmplitudeMap)

    def resize(self, width: float, height: float) -> None:
        """Recompute the layout for a new drawing size."""
        self.layout = Layout.from_size(width, height)
        self.collapsed = False

    def toggle_visibility(self) -> bool:
        """Flip visibility. Returns the new value."""
        self.visible = not self.visible
        return self.visible

    def toggle_collapse(self) -> None:
        """Shrink the rings to a dot, or restore them from the window size."""
        if self.collapsed:
            self.resize(self.layout.width, self.layout.height)
        else:
            self.layout.radius = config.COLLAPSED_RADIUS
            self.collapsed = True

    def update_amplitudes(self, amplitudes: AmplitudeMap) -> None:
        """Replace the readout with a new frame's map."""
        self.amplitudes = amplitudes

    def amplitude(self, key: NoteKey) -> float:
        """Readout for one ring marker (0.0 if the note was silent)."""
        return self.amplitudes.get(key, 0.0)
