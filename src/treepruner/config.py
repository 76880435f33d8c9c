"""
Configuration & Constants
=========================
This module serves as the central registry for global constants.

Why is this file needed?
------------------------
1. Reproducibility: The generation limits below are part of the contract of a
   saved tree. Changing any of them changes the tree that a given seed
   produces, so they live in one place instead of being scattered around.
2. Tuning: Visual and physics constants (colours, gravity, frame rate) can be
   adjusted without touching the algorithms.

Exports:
    DEFAULT_SEED (int): Seed used when no valid state is available.
    MAX_LEVEL (int): Deepest branch level that is still generated.
    GRAVITY (float): Downward acceleration applied to falling debris.
"""
# --- Tree generation (changing these breaks saved states) ---
DEFAULT_SEED: int = 12345
SEGMENTS_PER_BRANCH: int = 3
LEAF_MIN_LEVEL: int = 3
MAX_LEVEL: int = 5
MIN_CHILDREN: int = 2
CHILD_COUNT_SPREAD: int = 3  # children = floor(next() * spread) + MIN_CHILDREN
ROTATION_SPREAD: float = 0.8  # angles drawn in (-0.4*pi, 0.4*pi)

# --- Random seed button ---
RANDOM_SEED_MAX: int = 100000

# --- State string ---
STATE_MARKER: str = "_p"
STATE_QUERY_KEY: str = "state"
STATE_LINK_PREFIX: str = "treepruner://tree?"

# --- Debris physics ---
GRAVITY: float = 9.8
DEBRIS_FLOOR_Y: float = -10.0
DEBRIS_MAX_DT: float = 0.1

# --- Frame loop ---
FRAME_INTERVAL_MS: int = 16

# --- Colours ---
SKY_COLOR: str = "#87CEEB"
GROUND_COLOR: str = "#228B22"
BARK_COLOR: str = "#8B4513"
FOLIAGE_COLOR: str = "#006400"
TEMPLATE_COLOR: str = "#CCCCCC"
SKELETON_JOINT_COLOR: str = "#4488FF"
SKELETON_LEAF_COLOR: str = "#00FF00"
HIGHLIGHT_COLOR: str = "#FFFF00"

# --- Branch model preview ---
PREVIEW_BACKGROUND_COLOR: str = "#333333"
PREVIEW_GRID_COLOR: str = "#888888"
PREVIEW_AXIS_COLORS: tuple[str, str, str] = ("#FF0000", "#00FF00", "#0000FF")
PREVIEW_GRID_SIZE: float = 2.0
PREVIEW_GRID_DIVISIONS: int = 10

# --- Settings ---
SETTINGS_STATE_KEY: str = "tree/state"
