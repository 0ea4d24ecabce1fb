"""Procedural heightfield generation, terrain mesh, and height sampling.

Provides functions for:
1. Sampling a seeded noise field onto a regular world-space grid
2. Building the renderable terrain mesh (one vertex per grid sample)
3. Bilinear interpolation of terrain height at arbitrary points
4. A grayscale preview image of the heightfield
"""

import logging
import math

import numpy as np
from PIL import Image

from .geometry import grid_faces, compute_vertex_normals
from .models import HeightGrid, TerrainConfig, TerrainMesh

logger = logging.getLogger(__name__)

# Third noise coordinate; only a 2D slice of the 3D field is used
NOISE_SLICE_Z = 0.0


# ── Heightfield ─────────────────────────────────────────────────────────

def build_heightfield(config: TerrainConfig, noise_fn) -> HeightGrid:
    """Sample *noise_fn* on a (depth, width) grid and scale to heights.

    Parameters
    ----------
    config : TerrainConfig
        Grid resolution, world extents, noise and height scale.
    noise_fn : callable
        ``noise_fn(x, y, z) -> [-1, 1]``, already seeded.  When it also
        provides ``sample_grid(xs, ys, z)`` the slice is sampled in one
        vectorized call.

    Returns
    -------
    HeightGrid — heights in ``[0, config.height_scale]``.
    """
    xs = np.arange(config.width) * config.noise_scale
    ys = np.arange(config.depth) * config.noise_scale

    if hasattr(noise_fn, 'sample_grid'):
        raw = np.asarray(noise_fn.sample_grid(xs, ys, NOISE_SLICE_Z), dtype=np.float64)
    else:
        raw = np.array([[noise_fn(x, y, NOISE_SLICE_Z) for x in xs] for y in ys],
                       dtype=np.float64)

    # [-1, 1] → [0, 1]
    normalised = np.clip(raw * 0.5 + 0.5, 0.0, 1.0)

    if config.height_levels:
        levels = np.floor(normalised * config.height_levels)
        heights = levels * (config.height_scale / config.height_levels)
    else:
        heights = normalised * config.height_scale

    grid = HeightGrid(heights=heights, config=config)
    logger.info(f"Terrain grid: {grid.width}x{grid.depth}, "
                f"range={heights.min():.1f}..{heights.max():.1f}")
    return grid


def build_terrain_mesh(grid: HeightGrid) -> TerrainMesh:
    """Build the terrain surface mesh from a height grid.

    Each grid sample maps 1:1 to a vertex (Y-up), so the mesh and the
    height query always agree.  Normals are recomputed from the final
    vertex heights.
    """
    cfg = grid.config
    nx, ny = grid.width, grid.depth

    xs = -cfg.half_width + np.arange(nx) * (cfg.world_width / (nx - 1))
    zs = -cfg.half_depth + np.arange(ny) * (cfg.world_depth / (ny - 1))
    xx, zz = np.meshgrid(xs, zs)               # both (ny, nx)

    verts = np.empty((ny * nx, 3), dtype=np.float64)
    verts[:, 0] = xx.ravel()
    verts[:, 1] = grid.heights.ravel()
    verts[:, 2] = zz.ravel()

    iu, iv = np.meshgrid(np.arange(nx) / (nx - 1), np.arange(ny) / (ny - 1))
    uv = np.column_stack([iu.ravel(), 1.0 - iv.ravel()])

    faces = grid_faces(nx, ny)
    normals = compute_vertex_normals(verts, faces)

    logger.info(f"Terrain mesh: {len(verts)} verts, {len(faces)} faces")
    return TerrainMesh(vertices=verts, faces=faces, normals=normals, uv=uv)


def build_terrain(config: TerrainConfig, noise_fn):
    """Heightfield builder entry point: returns ``(HeightGrid, TerrainMesh)``."""
    grid = build_heightfield(config, noise_fn)
    return grid, build_terrain_mesh(grid)


# ── Height query ────────────────────────────────────────────────────────

def sample_height_at(x, z, grid: HeightGrid):
    """Bilinear interpolation of terrain height at a world point.

    Points outside the terrain are clamped onto its boundary first, so
    the result is defined for every real input.
    """
    cfg = grid.config
    nx, ny = grid.width, grid.depth
    dx = cfg.world_width / (nx - 1)
    dz = cfg.world_depth / (ny - 1)

    local_x = min(max(x + cfg.half_width, 0.0), cfg.world_width)
    local_z = min(max(z + cfg.half_depth, 0.0), cfg.world_depth)

    ix_f = local_x / dx
    iz_f = local_z / dz

    # Clamp
    ix = max(0, min(int(math.floor(ix_f)), nx - 2))
    iz = max(0, min(int(math.floor(iz_f)), ny - 2))
    fx = max(0.0, min(ix_f - ix, 1.0))
    fz = max(0.0, min(iz_f - iz, 1.0))

    heights = grid.heights
    h00 = heights[iz, ix]
    h10 = heights[iz, ix + 1]
    h01 = heights[iz + 1, ix]
    h11 = heights[iz + 1, ix + 1]

    return float(h00 * (1 - fx) * (1 - fz) +
                 h10 * fx * (1 - fz) +
                 h01 * (1 - fx) * fz +
                 h11 * fx * fz)


def sample_height_batch(xs, zs, grid: HeightGrid):
    """Vectorized bilinear interpolation for arrays of world points.

    xs, zs: 1-D numpy arrays of coordinates.
    Returns 1-D numpy array of heights (same length).
    """
    cfg = grid.config
    nx, ny = grid.width, grid.depth
    xs = np.asarray(xs, dtype=np.float64)
    zs = np.asarray(zs, dtype=np.float64)

    ix_f = np.clip(xs + cfg.half_width, 0.0, cfg.world_width) / (cfg.world_width / (nx - 1))
    iz_f = np.clip(zs + cfg.half_depth, 0.0, cfg.world_depth) / (cfg.world_depth / (ny - 1))

    ix = np.clip(np.floor(ix_f).astype(np.intp), 0, nx - 2)
    iz = np.clip(np.floor(iz_f).astype(np.intp), 0, ny - 2)
    fx = np.clip(ix_f - ix, 0.0, 1.0)
    fz = np.clip(iz_f - iz, 0.0, 1.0)

    heights = grid.heights
    h00 = heights[iz, ix]
    h10 = heights[iz, ix + 1]
    h01 = heights[iz + 1, ix]
    h11 = heights[iz + 1, ix + 1]

    return (h00 * (1 - fx) * (1 - fz) +
            h10 * fx * (1 - fz) +
            h01 * (1 - fx) * fz +
            h11 * fx * fz)


# ── Preview ─────────────────────────────────────────────────────────────

def render_height_texture(grid: HeightGrid) -> Image.Image:
    """Grayscale preview of the heightfield, one pixel per grid sample.

    Pixel values are height levels (0..height_levels, or 0..255 for a
    continuous grid) averaged over each sample's 2x2 neighbourhood; the
    last row and column reuse their edge neighbours.
    """
    cfg = grid.config
    span = cfg.height_levels or 255
    levels = grid.heights / cfg.height_scale * span

    padded = np.pad(levels, ((0, 1), (0, 1)), mode='edge')
    smoothed = (padded[:-1, :-1] + padded[:-1, 1:] +
                padded[1:, :-1] + padded[1:, 1:]) / 4.0

    pixels = np.clip(np.rint(smoothed), 0, 255).astype(np.uint8)
    return Image.fromarray(pixels)
