"""Road centreline planning, terrain conforming, and tube surface generation.

The road is built in two passes.  The plan pass lays out a flat, gently
wiggling centreline along the terrain's depth axis; the conform pass
re-samples every planned point's height from the terrain.  Each pass
produces its own spline and tube mesh; the texture coordinates computed
for the planned mesh carry over unchanged to the conformed one because
both meshes share the same topology.
"""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np

from .geometry import compute_vertex_normals, frenet_frames
from .models import RoadConfig, RoadMesh

logger = logging.getLogger(__name__)

# Knot spacing below which a segment is treated as degenerate
_MIN_KNOT_SPACING = 1e-4


# ── Spline ──────────────────────────────────────────────────────────────

class CatmullRomCurve:
    """Open centripetal Catmull-Rom spline through 3D control points.

    The curve passes through every control point.  ``t`` parameterises
    control-point spacing (point ``i`` sits at ``t = i / (n - 1)``);
    the ``*_at(u)`` variants take a normalised arc-length parameter.
    End tangents come from reflecting the second and second-to-last
    points through the endpoints.
    """

    ARC_LENGTH_DIVISIONS = 200

    def __init__(self, points, alpha=0.5):
        points = np.array(points, dtype=np.float64)
        points.setflags(write=False)
        self.points = points
        self.alpha = alpha
        self._coeffs = self._segment_coefficients()
        self._lengths_cache = {}

    def _segment_coefficients(self):
        """Cubic coefficients (c0, c1, c2, c3) for every segment."""
        pts = self.points
        n = len(pts)
        coeffs = np.empty((n - 1, 4, 3), dtype=np.float64)
        for i in range(n - 1):
            p1 = pts[i]
            p2 = pts[i + 1]
            p0 = pts[i - 1] if i > 0 else 2 * p1 - p2
            p3 = pts[i + 2] if i + 2 < n else 2 * p2 - p1

            dt0 = float(np.linalg.norm(p1 - p0)) ** self.alpha
            dt1 = float(np.linalg.norm(p2 - p1)) ** self.alpha
            dt2 = float(np.linalg.norm(p3 - p2)) ** self.alpha

            # Safety check for repeated points
            if dt1 < _MIN_KNOT_SPACING:
                dt1 = 1.0
            if dt0 < _MIN_KNOT_SPACING:
                dt0 = dt1
            if dt2 < _MIN_KNOT_SPACING:
                dt2 = dt1

            t1 = (p1 - p0) / dt0 - (p2 - p0) / (dt0 + dt1) + (p2 - p1) / dt1
            t2 = (p2 - p1) / dt1 - (p3 - p1) / (dt1 + dt2) + (p3 - p2) / dt2
            t1 = t1 * dt1
            t2 = t2 * dt1

            coeffs[i, 0] = p1
            coeffs[i, 1] = t1
            coeffs[i, 2] = -3 * p1 + 3 * p2 - 2 * t1 - t2
            coeffs[i, 3] = 2 * p1 - 2 * p2 + t1 + t2
        return coeffs

    def _locate(self, t):
        """Segment index and local weight for each curve parameter."""
        t = np.clip(np.atleast_1d(np.asarray(t, dtype=np.float64)), 0.0, 1.0)
        p = (len(self.points) - 1) * t
        idx = np.clip(np.floor(p).astype(np.intp), 0, len(self.points) - 2)
        return idx, (p - idx)[:, None]

    def get_point(self, t):
        """Point(s) on the curve at parameter *t* (scalar or array)."""
        idx, w = self._locate(t)
        c = self._coeffs[idx]
        out = c[:, 0] + w * (c[:, 1] + w * (c[:, 2] + w * c[:, 3]))
        return out[0] if np.ndim(t) == 0 else out

    def get_tangent(self, t):
        """Unit tangent(s) at parameter *t*."""
        idx, w = self._locate(t)
        c = self._coeffs[idx]
        out = c[:, 1] + w * (2 * c[:, 2] + w * 3 * c[:, 3])
        out = out / np.linalg.norm(out, axis=1, keepdims=True)
        return out[0] if np.ndim(t) == 0 else out

    def get_lengths(self, divisions=ARC_LENGTH_DIVISIONS):
        """Cumulative chord lengths at ``divisions + 1`` evenly spaced t."""
        if divisions not in self._lengths_cache:
            pts = self.get_point(np.linspace(0.0, 1.0, divisions + 1))
            seg = np.linalg.norm(np.diff(pts, axis=0), axis=1)
            self._lengths_cache[divisions] = np.concatenate([[0.0], np.cumsum(seg)])
        return self._lengths_cache[divisions]

    def get_length(self):
        return float(self.get_lengths()[-1])

    def u_to_t(self, u):
        """Map normalised arc length *u* to curve parameter t."""
        lengths = self.get_lengths()
        ts = np.linspace(0.0, 1.0, len(lengths))
        target = np.clip(np.asarray(u, dtype=np.float64), 0.0, 1.0) * lengths[-1]
        return np.interp(target, lengths, ts)

    def get_point_at(self, u):
        return self.get_point(self.u_to_t(u))

    def get_tangent_at(self, u):
        return self.get_tangent(self.u_to_t(u))

    def get_spaced_points(self, divisions):
        """``divisions + 1`` points equally spaced by arc length."""
        return self.get_point_at(np.linspace(0.0, 1.0, divisions + 1))


# ── Centreline ──────────────────────────────────────────────────────────

def sine_wiggle(amplitude, frequency):
    """Cross-axis offset ``sin(z * frequency) * amplitude``."""
    def _wiggle(z):
        return math.sin(z * frequency) * amplitude
    return _wiggle


def plan_path(segment_count, planned_length, wiggle_fn, start_z=None):
    """Flat centreline: ``segment_count + 1`` points evenly spaced along Z.

    Starts at ``-planned_length / 2`` unless *start_z* is given; X is
    offset by ``wiggle_fn(z)`` and Y is 0.
    """
    if start_z is None:
        start_z = -planned_length / 2
    step = planned_length / segment_count

    points = np.zeros((segment_count + 1, 3), dtype=np.float64)
    for i in range(segment_count + 1):
        z = start_z + i * step
        points[i] = (wiggle_fn(z), 0.0, z)
    return points


def conform_path(points, height_fn, clearance):
    """Copy of *points* with Y replaced by terrain height plus *clearance*."""
    conformed = np.array(points, dtype=np.float64)
    for p in conformed:
        p[1] = height_fn(p[0], p[2]) + clearance
    return conformed


# ── Tube surface ────────────────────────────────────────────────────────

def _tube_faces(tubular_segments, radial_segments):
    ring = radial_segments + 1
    j, i = np.meshgrid(np.arange(1, tubular_segments + 1),
                       np.arange(1, radial_segments + 1), indexing='ij')
    j = j.ravel()
    i = i.ravel()
    a = ring * (j - 1) + (i - 1)
    b = ring * j + (i - 1)
    c = ring * j + i
    d = ring * (j - 1) + i

    faces = np.empty((len(a) * 2, 3), dtype=np.int64)
    faces[0::2] = np.column_stack([a, b, d])
    faces[1::2] = np.column_stack([b, c, d])
    return faces


def build_tube_mesh(curve, tubular_segments, radius, radial_segments,
                    uv=None, lift=0.0) -> RoadMesh:
    """Sweep a circular cross-section of *radius* along *curve*.

    Rings sit at ``tubular_segments + 1`` arc-length-even stations; each
    ring has ``radial_segments + 1`` vertices (the seam is duplicated so
    texture coordinates can wrap).  The tube is open-ended.

    *uv* replaces the default (station, angle) texture coordinates when
    given; *lift* is added to every vertex's Y after sweeping.
    """
    u = np.linspace(0.0, 1.0, tubular_segments + 1)
    centers = curve.get_point_at(u)
    tangents = curve.get_tangent_at(u)
    normals, binormals = frenet_frames(tangents)

    angle = np.arange(radial_segments + 1) / radial_segments * 2 * math.pi
    sin = np.sin(angle)[None, :, None]
    cos = -np.cos(angle)[None, :, None]
    dirs = cos * normals[:, None, :] + sin * binormals[:, None, :]
    dirs /= np.linalg.norm(dirs, axis=2, keepdims=True)

    verts = (centers[:, None, :] + radius * dirs).reshape(-1, 3)
    verts[:, 1] += lift

    faces = _tube_faces(tubular_segments, radial_segments)

    if uv is None:
        su, sv = np.meshgrid(u, np.arange(radial_segments + 1) / radial_segments,
                             indexing='ij')
        uv = np.column_stack([su.ravel(), sv.ravel()])
    else:
        uv = np.array(uv, dtype=np.float64)

    return RoadMesh(
        vertices=verts,
        faces=faces,
        normals=compute_vertex_normals(verts, faces),
        uv=uv,
        tubular_segments=tubular_segments,
        radial_segments=radial_segments,
    )


def assign_road_uvs(mesh: RoadMesh, curve, radius, texture_repeat):
    """Road texture coordinates for a tube swept along *curve*.

    U is the vertex's horizontal offset across the road, normalised by
    *radius* into [0, 1].  V is the ring's arc-length position over the
    total length, times *texture_repeat*, so the texture repeats a fixed
    number of times regardless of road length.
    """
    rings = mesh.tubular_segments + 1
    per_ring = mesh.radial_segments + 1
    u = np.linspace(0.0, 1.0, rings)
    centers = curve.get_point_at(u)
    tangents = curve.get_tangent_at(u)

    # Horizontal right-hand side of the direction of travel
    side = np.column_stack([tangents[:, 2], np.zeros(rings), -tangents[:, 0]])
    side_len = np.linalg.norm(side, axis=1)
    vertical = side_len < 1e-9
    side[vertical] = (1.0, 0.0, 0.0)
    side_len[vertical] = 1.0
    side /= side_len[:, None]

    offsets = mesh.vertices.reshape(rings, per_ring, 3) - centers[:, None, :]
    lateral = np.einsum('rkc,rc->rk', offsets, side)

    tex_u = np.clip((lateral / radius + 1.0) / 2.0, 0.0, 1.0)
    tex_v = np.broadcast_to(u[:, None] * texture_repeat, (rings, per_ring))
    return np.column_stack([tex_u.ravel(), tex_v.ravel()])


# ── Generator ───────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class RoadBuild:
    planned_points: np.ndarray
    planned_curve: CatmullRomCurve
    planned_mesh: RoadMesh
    points: np.ndarray          # terrain-conformed centreline
    curve: CatmullRomCurve
    mesh: RoadMesh

    @property
    def length(self) -> float:
        return self.curve.get_length()


def generate_road(config: RoadConfig, planned_length, height_fn,
                  wiggle_fn=None) -> RoadBuild:
    """Plan, conform, and mesh the road.

    Parameters
    ----------
    config : RoadConfig
        Segment count, width, cross-section, texture repeat, clearance.
    planned_length : float
        Centreline extent along Z, centred on the origin.
    height_fn : callable
        ``height_fn(x, z) -> float`` terrain height query.
    wiggle_fn : callable, optional
        ``wiggle_fn(z) -> x`` offset; defaults to the configured sinusoid.

    Returns
    -------
    RoadBuild — both passes' curves and meshes.
    """
    if wiggle_fn is None:
        wiggle_fn = sine_wiggle(config.wiggle_amplitude, config.wiggle_frequency)
    tubular = config.tubular_segments

    # ── Pass 1: flat plan ──
    planned = plan_path(config.segment_count, planned_length, wiggle_fn)
    planned_curve = CatmullRomCurve(planned)
    planned_mesh = build_tube_mesh(planned_curve, tubular, config.radius,
                                   config.radial_segments, lift=config.surface_lift)
    uv = assign_road_uvs(planned_mesh, planned_curve, config.radius,
                         config.texture_repeat)
    planned_mesh = replace(planned_mesh, uv=uv)
    logger.debug(f"Planned road: {len(planned)} points, "
                 f"length={planned_curve.get_length():.1f}")

    # ── Pass 2: conform to terrain, rebuild the mesh, keep the UVs ──
    conformed = conform_path(planned, height_fn, config.clearance)
    curve = CatmullRomCurve(conformed)
    mesh = build_tube_mesh(curve, tubular, config.radius,
                           config.radial_segments, uv=planned_mesh.uv,
                           lift=config.surface_lift)

    logger.info(f"Road mesh: {len(mesh.vertices)} verts, {len(mesh.faces)} faces, "
                f"length={curve.get_length():.1f}")
    return RoadBuild(
        planned_points=planned,
        planned_curve=planned_curve,
        planned_mesh=planned_mesh,
        points=conformed,
        curve=curve,
        mesh=mesh,
    )
