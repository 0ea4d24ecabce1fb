"""Configuration constants, paths, and environment overrides."""

import os
import pathlib

from dotenv import load_dotenv

# ── Terrain ─────────────────────────────────────────────────────────────
TERRAIN_WIDTH = 400.0      # world units along X
TERRAIN_DEPTH = 800.0      # world units along Z
RESOLUTION = 128           # grid samples per axis
HEIGHT_SCALE = 30.0        # maximum terrain height
NOISE_SCALE = 0.01         # noise-space step per grid cell
HEIGHT_LEVELS = 128        # byte levels used to quantize heights (None = continuous)
GRASS_TEXTURE_TILE = 20.0  # world units covered by one grass texture repeat

# ── Road ────────────────────────────────────────────────────────────────
ROAD_WIDTH = 12.0
ROAD_SEGMENTS = 100            # planned centreline segments
ROAD_TEXTURE_REPEAT = 10       # texture repeats along the whole road
ROAD_RADIAL_SEGMENTS = 8       # tube cross-section segments
ROAD_CLEARANCE = 0.1           # centreline height above terrain
ROAD_SURFACE_LIFT = 0.5        # extra Y offset applied to the finished mesh
WIGGLE_AMPLITUDE = 5.0
WIGGLE_FREQUENCY = 0.05

# ── Vegetation ──────────────────────────────────────────────────────────
TREE_COUNT = 500
TREE_SCALE = 5.0
SCATTER_MARGIN = 0.9           # fraction of the terrain extents sampled
ROAD_BAND_FACTOR = 1.5         # band half-width in road widths

# ── Vehicle ─────────────────────────────────────────────────────────────
MAX_SPEED = 0.5
ACCELERATION = 0.02
DECELERATION = 0.01
STEERING_SPEED = 0.05
SPEED_EPSILON = 0.01           # steering is ignored below this speed
FRAME_RATE_SCALE = 60.0        # displacement multiplier per second
VEHICLE_RIDE_HEIGHT = 1.5
VEHICLE_START = (0.0, 5.0, 0.0)
VEHICLE_EXTENTS = (3.0, 1.5, 6.0)

# ── Chase camera ────────────────────────────────────────────────────────
CAMERA_OFFSET = (0.0, 10.0, 25.0)
CAMERA_LERP = 0.05
CAMERA_LOOK_HEIGHT = 1.0
CAMERA_START = (0.0, 50.0, 100.0)

# ── Asset file names (relative to ASSET_DIR) ────────────────────────────
ASSET_PATHS = {
    'grass_texture': 'grass.jpg',
    'road_texture': 'road.jpg',
    'tree_model': 'tree.glb',
}

# Load environment variables
load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
ASSET_DIR = pathlib.Path(os.environ.get("TERRAINDRIVE_ASSET_DIR", BASE_DIR / "assets"))
OUTPUT_DIR = pathlib.Path(os.environ.get("TERRAINDRIVE_OUTPUT_DIR", BASE_DIR / "output"))

# Seed shared by the noise source and the scatter RNG
DEFAULT_SEED = int(os.environ.get("TERRAINDRIVE_SEED", "42"))
