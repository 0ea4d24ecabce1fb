"""Data classes and path management."""

import pathlib
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import trimesh
from trimesh import transformations

from .constants import (
    OUTPUT_DIR,
    TERRAIN_WIDTH, TERRAIN_DEPTH, RESOLUTION, HEIGHT_SCALE, NOISE_SCALE,
    HEIGHT_LEVELS,
    ROAD_WIDTH, ROAD_SEGMENTS, ROAD_TEXTURE_REPEAT, ROAD_RADIAL_SEGMENTS,
    ROAD_CLEARANCE, ROAD_SURFACE_LIFT, WIGGLE_AMPLITUDE, WIGGLE_FREQUENCY,
    TREE_COUNT, TREE_SCALE, SCATTER_MARGIN, ROAD_BAND_FACTOR,
    MAX_SPEED, ACCELERATION, DECELERATION, STEERING_SPEED, SPEED_EPSILON,
    FRAME_RATE_SCALE, VEHICLE_RIDE_HEIGHT,
)


class PathManager:
    """Manage paths relative to the project directory."""

    @staticmethod
    def get_output_path(filename: str) -> pathlib.Path:
        """Get the output file path."""
        return OUTPUT_DIR / filename


# ── Configuration ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class TerrainConfig:
    """Spatial mapping shared by every component that touches the terrain."""
    world_width: float = TERRAIN_WIDTH
    world_depth: float = TERRAIN_DEPTH
    width: int = RESOLUTION
    depth: int = RESOLUTION
    height_scale: float = HEIGHT_SCALE
    noise_scale: float = NOISE_SCALE
    height_levels: Optional[int] = HEIGHT_LEVELS

    @property
    def half_width(self) -> float:
        return self.world_width / 2

    @property
    def half_depth(self) -> float:
        return self.world_depth / 2

    @property
    def cell_width(self) -> float:
        return self.world_width / (self.width - 1)

    @property
    def cell_depth(self) -> float:
        return self.world_depth / (self.depth - 1)


@dataclass(frozen=True)
class RoadConfig:
    road_width: float = ROAD_WIDTH
    segment_count: int = ROAD_SEGMENTS
    radial_segments: int = ROAD_RADIAL_SEGMENTS
    texture_repeat: float = ROAD_TEXTURE_REPEAT
    clearance: float = ROAD_CLEARANCE
    surface_lift: float = ROAD_SURFACE_LIFT
    wiggle_amplitude: float = WIGGLE_AMPLITUDE
    wiggle_frequency: float = WIGGLE_FREQUENCY
    divisions: Optional[int] = None   # defaults to 2 * segment_count

    @property
    def radius(self) -> float:
        return self.road_width / 2

    @property
    def tubular_segments(self) -> int:
        if self.divisions is not None:
            return self.divisions
        return self.segment_count * 2


@dataclass(frozen=True)
class ScatterConfig:
    count: int = TREE_COUNT
    scale_range: tuple = (TREE_SCALE, TREE_SCALE)
    margin: float = SCATTER_MARGIN
    band_factor: float = ROAD_BAND_FACTOR
    corridor: bool = False   # exclude by distance to the curved plan instead of the band


@dataclass(frozen=True)
class VehicleConfig:
    max_speed: float = MAX_SPEED
    acceleration: float = ACCELERATION
    deceleration: float = DECELERATION
    steering_speed: float = STEERING_SPEED
    speed_epsilon: float = SPEED_EPSILON
    frame_rate_scale: float = FRAME_RATE_SCALE
    ride_height: float = VEHICLE_RIDE_HEIGHT


# ── Generated data ──────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class HeightGrid:
    """Terrain heights sampled on a regular grid.

    ``heights`` has shape (depth, width): row ``j`` runs along X at
    ``z = -world_depth/2 + j * cell_depth``.  The array is read-only.
    """
    heights: np.ndarray
    config: TerrainConfig

    def __post_init__(self):
        self.heights.setflags(write=False)

    @property
    def width(self) -> int:
        return self.heights.shape[1]

    @property
    def depth(self) -> int:
        return self.heights.shape[0]

    @property
    def size(self) -> int:
        return self.heights.size

    def height(self, x, z):
        """Bilinear terrain height at world (x, z), clamped to the grid."""
        from .terrain import sample_height_at
        return sample_height_at(x, z, self)

    def height_batch(self, xs, zs):
        """Vectorized ``height`` for arrays of world coordinates."""
        from .terrain import sample_height_batch
        return sample_height_batch(xs, zs, self)


@dataclass(frozen=True, eq=False)
class TerrainMesh:
    vertices: np.ndarray   # (W*D, 3)
    faces: np.ndarray      # (2*(W-1)*(D-1), 3)
    normals: np.ndarray    # (W*D, 3)
    uv: np.ndarray         # (W*D, 2)

    def to_trimesh(self, material=None) -> trimesh.Trimesh:
        """Wrap as a trimesh without merging or reordering vertices."""
        return _as_trimesh(self, material)


@dataclass(frozen=True, eq=False)
class RoadMesh:
    vertices: np.ndarray   # ((tubular+1)*(radial+1), 3)
    faces: np.ndarray
    normals: np.ndarray
    uv: np.ndarray
    tubular_segments: int
    radial_segments: int

    def to_trimesh(self, material=None) -> trimesh.Trimesh:
        """Wrap as a trimesh without merging or reordering vertices."""
        return _as_trimesh(self, material)


def _as_trimesh(data, material):
    mesh = trimesh.Trimesh(
        vertices=data.vertices, faces=data.faces,
        vertex_normals=data.normals, process=False)
    mesh.visual = trimesh.visual.TextureVisuals(uv=data.uv, material=material)
    return mesh


@dataclass(frozen=True)
class ScatterInstance:
    """One placed copy of a decorative model."""
    position: tuple
    scale: float
    yaw: float
    model: object = field(default=None, compare=False, repr=False)

    @property
    def matrix(self) -> np.ndarray:
        """4x4 transform: translate @ rotate about +Y @ uniform scale."""
        return transformations.concatenate_matrices(
            transformations.translation_matrix(self.position),
            transformations.rotation_matrix(self.yaw, [0, 1, 0]),
            transformations.scale_matrix(self.scale),
        )
