from __future__ import annotations

import logging

import numpy as np

from gridify.errors import DegenerateGeometryError, MeshValidationError
from gridify.mesh import Mesh, analyze_mesh, bounding_box

logger = logging.getLogger(__name__)


def validate_mesh(mesh: Mesh, context: str) -> Mesh:
    """Check a pipeline checkpoint and return the mesh unchanged.

    Raises ``DegenerateGeometryError`` when the mesh has no vertices and
    ``MeshValidationError`` when positions contain NaN or the bounding sphere
    is not finite.
    """

    if mesh.n_vertices == 0:
        raise DegenerateGeometryError(f"{context}: mesh has no vertices.")

    nan_mask = np.isnan(mesh.vertices)
    if nan_mask.any():
        index = int(np.flatnonzero(nan_mask.ravel())[0])
        raise MeshValidationError(f"{context}: found NaN in position buffer at index {index}.")

    bbox = bounding_box(mesh)
    center, radius = bbox.bounding_sphere(mesh.vertices)
    if not np.all(np.isfinite(center)) or not np.isfinite(radius):
        raise MeshValidationError(f"{context}: invalid bounding sphere.")

    if logger.isEnabledFor(logging.DEBUG):
        analysis = analyze_mesh(mesh)
        logger.debug(
            "%s: validated (vertices=%d, triangles=%d, non-manifold=%s)",
            context,
            analysis.n_vertices,
            analysis.n_faces,
            not analysis.is_watertight,
        )
    return mesh
