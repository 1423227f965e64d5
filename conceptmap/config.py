"""Configuration constants for the concept network engine."""

# ASCII unit separator; normalize() strips it so it never appears in a concept
EDGE_KEY_SEPARATOR = "\x1f"

MAX_SESSION_CODE_LENGTH = 64
DEFAULT_SESSION_CODE = "demo-room"
DEFAULT_SESSION_NAME = "Demo Session"
DEMO_PARTICIPANT = "demo-seed"

DEMO_SAMPLES = [
    ("pain", "distrust"),
    ("conflict", "violence"),
    ("distrust", "conflict"),
    ("distrust", "tension"),
    ("empathy", "understanding"),
    ("trust", "cooperation"),
    ("cooperation", "resolution"),
    ("violence", "trauma"),
]

SESSION_CODE_ADJECTIVES = [
    "bright", "calm", "clever", "fresh", "kind",
    "lively", "mighty", "swift", "bold", "brave",
]
SESSION_CODE_NOUNS = [
    "river", "forest", "sun", "orbit", "horizon",
    "globe", "bridge", "ocean", "spark", "canvas",
]

# Participant cookie lifetime
PARTICIPANT_COOKIE = "session_id"
PARTICIPANT_COOKIE_MAX_AGE = 60 * 60 * 24

# Layout defaults, as fractions of the smaller viewport side
BASE_RADIUS_FRACTION = 0.22
RING_STEP_FRACTION = 0.18
LAYER_HEIGHT = 160.0
NODE_SPACING = 160.0
DEFAULT_VIEWPORT = (640, 480)

# Edge widths scale linearly up to this weight, then saturate
MIN_EDGE_WIDTH = 1
MAX_EDGE_WIDTH = 12
MAX_WIDTH_WEIGHT = 10

NODE_BASE_SIZE = 18
NODE_SIZE_RANGE = 16
NODE_SIZE_CAP = 12

# Handed unchanged to the external force-directed simulation in free mode
FREE_MODE_PHYSICS = {
    "enabled": True,
    "solver": "forceAtlas2Based",
    "springConstant": 0.02,
    "springLength": 140,
    "damping": 0.38,
    "stabilization": {"enabled": True, "iterations": 220},
}
