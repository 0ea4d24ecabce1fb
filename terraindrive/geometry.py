"""Mesh helpers: grid triangulation, vertex normals, and curve frames."""

import logging

import numpy as np
from trimesh import transformations

logger = logging.getLogger(__name__)

_EPSILON = 1e-12


# ── Grid triangulation ──────────────────────────────────────────────────

def grid_faces(nx, ny):
    """Face indices for an (ny, nx) vertex grid, two triangles per cell.

    Vertex ``(iy, ix)`` has index ``iy * nx + ix``.  Rows advance along +Z,
    so the winding below gives +Y facing normals.
    """
    n_cx, n_cy = nx - 1, ny - 1
    iy_g, ix_g = np.meshgrid(
        np.arange(n_cy), np.arange(n_cx), indexing='ij')
    iy_f = iy_g.ravel()
    ix_f = ix_g.ravel()

    v00 = iy_f * nx + ix_f                  # (iy,   ix)
    v10 = iy_f * nx + (ix_f + 1)            # (iy,   ix+1)
    v01 = (iy_f + 1) * nx + ix_f            # (iy+1, ix)
    v11 = (iy_f + 1) * nx + (ix_f + 1)      # (iy+1, ix+1)

    # Wound for +Y normals: v00→v01→v10  and  v01→v11→v10
    tri1 = np.column_stack([v00, v01, v10])
    tri2 = np.column_stack([v01, v11, v10])

    # Interleave so each cell's pair is adjacent
    faces = np.empty((len(tri1) * 2, 3), dtype=np.int64)
    faces[0::2] = tri1
    faces[1::2] = tri2
    return faces


# ── Normals ─────────────────────────────────────────────────────────────

def compute_vertex_normals(vertices, faces):
    """Per-vertex normals from the sum of adjacent (area-weighted) face normals.

    Vertices not referenced by any face get a zero normal.
    """
    vertices = np.asarray(vertices, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64)

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)

    normals = np.zeros_like(vertices)
    for k in range(3):
        np.add.at(normals, faces[:, k], face_normals)

    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > _EPSILON
    normals[nonzero] /= lengths[nonzero, None]
    return normals


# ── Curve frames ────────────────────────────────────────────────────────

def frenet_frames(tangents):
    """Parallel-transported (normals, binormals) along unit *tangents*.

    The first normal is seeded from the world axis least aligned with the
    first tangent; each following frame rotates the previous one by the
    angle between consecutive tangents, which avoids the flips of true
    Frenet frames on straight stretches.
    """
    tangents = np.asarray(tangents, dtype=np.float64)
    n = len(tangents)
    normals = np.zeros((n, 3))
    binormals = np.zeros((n, 3))

    t0 = tangents[0]
    axis = np.zeros(3)
    # Ties go to the later axis
    axis[2 - int(np.argmin(np.abs(t0)[::-1]))] = 1.0
    vec = np.cross(t0, axis)
    vec /= np.linalg.norm(vec)
    normals[0] = np.cross(t0, vec)
    binormals[0] = np.cross(t0, normals[0])

    for i in range(1, n):
        normal = normals[i - 1]
        vec = np.cross(tangents[i - 1], tangents[i])
        length = np.linalg.norm(vec)
        if length > np.finfo(np.float64).eps:
            vec /= length
            theta = np.arccos(np.clip(np.dot(tangents[i - 1], tangents[i]), -1.0, 1.0))
            rot = transformations.rotation_matrix(theta, vec)[:3, :3]
            normal = rot @ normal
        normals[i] = normal
        binormals[i] = np.cross(tangents[i], normal)

    return normals, binormals
