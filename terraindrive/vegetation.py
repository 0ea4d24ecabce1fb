"""Decorative object scattering (trees) over the terrain.

Positions are drawn uniformly inside a margin of the terrain extents by
rejection sampling against an exclusion predicate, then dropped onto
the terrain with the height query.  A procedural low-poly tree is
provided for when no tree model asset is loaded.
"""

import logging
import math
import random

import numpy as np
import trimesh
import shapely
from shapely.geometry import LineString

from .models import ScatterInstance

logger = logging.getLogger(__name__)

# Tree colours (RGBA 0-255)
TRUNK_COLOR = [115, 77, 38, 255]     # brown
CANOPY_COLOR = [51, 128, 51, 255]    # deciduous dark green


# ── Exclusion zones ─────────────────────────────────────────────────────

def road_band_exclusion(road_width, terrain_depth, band_factor=1.5):
    """Axis-aligned band around the planned road corridor.

    Rejects ``|x| < road_width * band_factor and |z| < terrain_depth / 2``.
    This is a rectangle around the straight-line plan, not a distance to
    the curved road, so trees can still land near the wiggle's peaks.
    """
    half_band = road_width * band_factor
    half_depth = terrain_depth * 0.5

    def _excluded(x, z):
        return abs(x) < half_band and abs(z) < half_depth
    return _excluded


def curve_corridor_exclusion(path_points, half_width):
    """Reject points within *half_width* of the road centreline in plan.

    *path_points* is an (N, 3) centreline; only X and Z are used.
    """
    pts = np.asarray(path_points, dtype=np.float64)
    corridor = LineString(pts[:, [0, 2]]).buffer(half_width)
    shapely.prepare(corridor)

    def _excluded(x, z):
        return bool(shapely.contains_xy(corridor, x, z))
    return _excluded


# ── Placement ───────────────────────────────────────────────────────────

def place_instances(count, exclusion, height_fn, bounds,
                    scale_range=(1.0, 1.0), model=None, rng=None,
                    margin=0.9):
    """Scatter *count* instances over the terrain.

    Parameters
    ----------
    count : int
        Number of instances to return.
    exclusion : callable
        ``exclusion(x, z) -> bool``; True rejects the sample.
    height_fn : callable
        ``height_fn(x, z) -> float`` terrain height query.
    bounds : (float, float)
        Full terrain extents (width along X, depth along Z), centred on
        the origin.
    scale_range : (float, float)
        Uniform scale is drawn from this closed range.
    model : object
        Opaque model handle attached to every instance.
    rng : random.Random
        RNG for reproducibility; a fresh unseeded one when omitted.
    margin : float
        Fraction of *bounds* that is sampled.

    Rejection sampling retries without limit: if *exclusion* covers the
    whole sampled area this never returns.
    """
    if rng is None:
        rng = random.Random()
    width, depth = bounds
    lo, hi = scale_range

    instances = []
    rejected = 0
    for _ in range(count):
        while True:
            x = (rng.random() - 0.5) * width * margin
            z = (rng.random() - 0.5) * depth * margin
            if not exclusion(x, z):
                break
            rejected += 1

        y = height_fn(x, z)
        scale = lo if lo == hi else rng.uniform(lo, hi)
        yaw = rng.random() * math.pi * 2
        instances.append(ScatterInstance(
            position=(x, y, z), scale=scale, yaw=yaw, model=model))

    total = count + rejected
    if total and rejected / total > 0.5:
        logger.warning(f"Scatter rejected {rejected}/{total} samples; "
                       f"exclusion zone covers most of the sampled area")
    else:
        logger.debug(f"Scatter rejected {rejected}/{total} samples")
    logger.info(f"Placed {len(instances)} instances")
    return instances


# ── Procedural tree ─────────────────────────────────────────────────────

def create_tree_mesh(n_trunk=6, n_lon=8, n_lat=3):
    """Low-poly deciduous tree at the origin: hexagonal trunk + oblate canopy.

    About 1.8 units tall at scale 1, standing on Y = 0 with the trunk
    sunk slightly below so it never floats on slopes.  Returns a single
    ``trimesh.Trimesh`` with per-face trunk/canopy colours.
    """
    trunk_r = 0.16
    trunk_h = 0.8
    canopy_rx = 1.4   # horizontal radius
    canopy_ry = 1.0   # vertical radius (oblate)
    trunk_bottom = -0.4

    # ── Trunk (hexagonal prism) ──
    angles = [2 * math.pi * i / n_trunk for i in range(n_trunk)]
    trunk_verts = [[trunk_r * math.cos(a), trunk_bottom, trunk_r * math.sin(a)]
                   for a in angles]
    trunk_verts += [[trunk_r * math.cos(a), trunk_h, trunk_r * math.sin(a)]
                    for a in angles]
    trunk_faces = []
    for i in range(n_trunk):
        j = (i + 1) % n_trunk
        trunk_faces.append([i, j + n_trunk, j])
        trunk_faces.append([i, i + n_trunk, j + n_trunk])
    for i in range(1, n_trunk - 1):
        trunk_faces.append([0, i, i + 1])
        trunk_faces.append([n_trunk, n_trunk + i + 1, n_trunk + i])

    # ── Canopy (oblate hemisphere) ──
    canopy_verts = []
    for i in range(n_lat + 1):
        phi = (math.pi / 2) * i / (n_lat + 1)
        for j in range(n_lon):
            theta = 2 * math.pi * j / n_lon
            canopy_verts.append([
                canopy_rx * math.cos(phi) * math.cos(theta),
                trunk_h + canopy_ry * math.sin(phi),
                canopy_rx * math.cos(phi) * math.sin(theta),
            ])
    pole_idx = len(canopy_verts)
    canopy_verts.append([0.0, trunk_h + canopy_ry, 0.0])

    canopy_faces = []
    for i in range(n_lat):
        for j in range(n_lon):
            j_next = (j + 1) % n_lon
            r0 = n_lon * i + j
            r1 = n_lon * i + j_next
            r2 = n_lon * (i + 1) + j
            r3 = n_lon * (i + 1) + j_next
            canopy_faces.append([r0, r3, r1])
            canopy_faces.append([r0, r2, r3])
    last_ring = n_lon * n_lat
    for j in range(n_lon):
        canopy_faces.append([last_ring + j, pole_idx, last_ring + (j + 1) % n_lon])
    # Flat underside
    for i in range(1, n_lon - 1):
        canopy_faces.append([0, i, i + 1])

    trunk = trimesh.Trimesh(vertices=trunk_verts, faces=trunk_faces,
                            face_colors=TRUNK_COLOR, process=False)
    canopy = trimesh.Trimesh(vertices=canopy_verts, faces=canopy_faces,
                             face_colors=CANOPY_COLOR, process=False)
    return trimesh.util.concatenate([trunk, canopy])
