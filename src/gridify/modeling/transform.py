from __future__ import annotations

from typing import Literal, Sequence

import numpy as np

from gridify.errors import DegenerateGeometryError
from gridify.mesh import Mesh, bounding_box
from gridify.repair import compute_vertex_normals

Axis = Literal["x", "y", "z"]
_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def translate(mesh: Mesh, offset: Sequence[float]) -> Mesh:
    """Return a translated copy of the mesh."""
    vec = np.asarray(offset, dtype=float).reshape(3)
    return mesh.with_vertices(mesh.vertices + vec)


def normalize_to_origin(mesh: Mesh) -> Mesh:
    """Return a copy whose bounding-box minimum sits at the origin."""
    bbox = bounding_box(mesh)
    return translate(mesh, -bbox.minimum)


def _rotation_z(angle_deg: float) -> np.ndarray:
    quarter, remainder = divmod(float(angle_deg), 90.0)
    if remainder == 0.0:
        # exact integer matrix for quarter turns
        c, s = [(1, 0), (0, 1), (-1, 0), (0, -1)][int(quarter) % 4]
    else:
        rad = np.deg2rad(angle_deg)
        c, s = np.cos(rad), np.sin(rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]], dtype=float)


def rotate_z(mesh: Mesh, angle_deg: float) -> Mesh:
    """Rotate counter-clockwise about Z, then normalize to origin."""
    rot = _rotation_z(angle_deg)
    rotated = mesh.with_vertices(mesh.vertices @ rot.T)
    if rotated.normals is not None:
        rotated.normals = rotated.normals @ rot.T
    return normalize_to_origin(rotated)


def mirror(mesh: Mesh, axis: Axis) -> Mesh:
    """Negate one coordinate, reverse winding to keep faces outward, then normalize."""
    if axis not in _AXIS_INDEX:
        raise ValueError(f"Unknown mirror axis '{axis}'. Expected one of x, y, z.")
    vertices = mesh.vertices.copy()
    vertices[:, _AXIS_INDEX[axis]] *= -1.0
    flipped = mesh.with_vertices(vertices)
    flipped.faces = mesh.faces[:, ::-1].copy()
    return normalize_to_origin(compute_vertex_normals(flipped))


def scale(mesh: Mesh, factors: Sequence[float]) -> Mesh:
    """Non-uniform scale about the origin."""
    vec = np.asarray(factors, dtype=float).reshape(3)
    if np.any(vec == 0):
        raise ValueError("Scale factors must be non-zero.")
    return mesh.with_vertices(mesh.vertices * vec)


def stretch(
    mesh: Mesh,
    x: float | None = None,
    y: float | None = None,
    z: float | None = None,
) -> Mesh:
    """Scale each given axis so the mesh extent along it equals the target, then normalize."""
    size = bounding_box(mesh).size
    factors = np.ones(3, dtype=float)
    for index, target in enumerate((x, y, z)):
        if target is None:
            continue
        if size[index] <= 0:
            raise DegenerateGeometryError(f"Cannot stretch a flat mesh along axis {'xyz'[index]}.")
        factors[index] = float(target) / size[index]
    return normalize_to_origin(scale(mesh, factors))
