"""Configuration for the AudioForma visualizer."""

# Window settings (16:9, resizable)
WINDOW_WIDTH = 600
WINDOW_HEIGHT = int(600 / (16 / 9))
WINDOW_TITLE = "AudioForma"
FPS = 60

# Toggle shortcut: Ctrl/Cmd + H
HELP_TEXT = "Press Cmd/Ctrl + H to toggle visual"

# Colors (RGB)
COLOR_BACKGROUND = (12, 12, 16)
COLOR_BACKDROP = (0, 0, 0)
COLOR_MARKER_OUTLINE = (255, 255, 255)
COLOR_PERCUSSION_LINE = (0, 0, 0)
COLOR_TEXT = (255, 255, 255)
COLOR_HELP_PANEL = (0, 0, 0, 178)
DEFAULT_PATH_COLOR = (255, 82, 0)  # #ff5200

# Ring backdrops
BACKDROP_RADIUS_SCALE = 1.2
BACKDROP_OPACITY = 0.1
COLLAPSED_RADIUS = 2

# Ring markers
PERCUSSION_OCTAVE = 6       # Octaves above this draw a line glyph
LINE_MAX_HALF_LENGTH = 100
LINE_OPACITY = 0.4
BAR_SCALE_RANGE = 200       # Marker scale at half the buffer size
BAR_MAX_OFFSET = 50
BAR_MAX_WIDTH = 100
BAR_MAX_CORNER = 4
BAR_OPACITY = 0.9
MARKER_SATURATION = 0.7
MARKER_LIGHTNESS = 0.5

# Dominant-note trail
HISTORY_LENGTH = 20
MIN_CURVE_POINTS = 3
SHAPE_SAMPLES = 240         # Vertices per rendered shape
PLACEHOLDER_SEGMENT = ((10.0, 10.0), (20.0, 20.0))
TRAIL_SATURATION = 0.7
TRAIL_LIGHTNESS = 0.5
TRAIL_FILL_OPACITY = 0.5
TRAIL_STROKE_WIDTH = 2
TRAIL_OPACITY = 0.9

# Animation settings
ANIMATION_DURATION = 0.1    # Seconds per interpolation cycle
