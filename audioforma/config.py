"""Configuration constants for AudioForma."""

# =============================================================================
# Analysis Settings
# =============================================================================

# Samples per analysis window. The power spectrum has BUFFER_SIZE / 2 bins.
# Also the reference scale for dominant-note weights.
BUFFER_SIZE = 2048

# Requested capture sample rate (Hz). The device may override it.
SAMPLE_RATE = 44100

# Musical range considered by the aggregator (Hz)
MIN_FREQUENCY = 20.0
MAX_FREQUENCY = 20000.0

# Bins at or below this magnitude are treated as noise
NOISE_FLOOR = 0.01

# Cents deviation at which a bin's weight falls to zero (quarter tone)
CENTS_FALLOFF = 50.0

# =============================================================================
# Ring Layout
# =============================================================================

# Octaves with a ring, in display order (index 0 is the top ring)
OCTAVES = sorted(range(8), reverse=True)

# Vertical distance between consecutive ring centres (px)
RING_SPACING = 24

# Weight above this fraction of BUFFER_SIZE draws a sharp-cornered trail
SHARP_CURVE_RATIO = 0.75

# =============================================================================
# Audio Capture
# =============================================================================

# Substring to match in the input device name, or None for the default input
INPUT_DEVICE_PATTERN = None

# Substrings identifying a loopback/monitor of the output (fallback attach)
MONITOR_DEVICE_PATTERNS = ("monitor", "loopback", "stereo mix")

# Maximum analysis frames buffered between main-loop polls
FRAME_QUEUE_SIZE = 8

# =============================================================================
# OSC Broadcast
# =============================================================================

OSC_HOST = "127.0.0.1"
OSC_PORT = 9002

OSC_NOTE = "/forma/note"
OSC_VISIBLE = "/forma/visible"

# =============================================================================
# Performance
# =============================================================================

# Headless monitor polling interval (seconds)
POLL_INTERVAL = 0.01
