"""Merge-and-repair passes over indexed triangle buffers."""

from __future__ import annotations

import logging

import numpy as np

from gridify.mesh import Mesh, MeshAnalysis, analyze_mesh, edge_face_counts, face_areas, face_normals
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances

logger = logging.getLogger(__name__)


def _take_vertices(mesh: Mesh, keep: np.ndarray, faces: np.ndarray) -> Mesh:
    return Mesh(
        vertices=mesh.vertices[keep],
        faces=faces,
        normals=None if mesh.normals is None else mesh.normals[keep],
        uvs=None if mesh.uvs is None else mesh.uvs[keep],
        metadata=dict(mesh.metadata),
    )


def weld_vertices(mesh: Mesh, tolerance: float = DEFAULT_TOLERANCES.merge_tolerance) -> Mesh:
    """Merge vertices that fall into the same ``tolerance`` sized grid cell."""

    if tolerance <= 0:
        raise ValueError("tolerance must be positive.")
    if mesh.n_vertices == 0:
        return mesh.copy()

    keys = np.round(mesh.vertices / tolerance).astype(np.int64)
    _, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    inverse = np.asarray(inverse).reshape(-1)
    faces = inverse[mesh.faces] if mesh.n_faces else mesh.faces
    return _take_vertices(mesh, first, faces)


def remove_degenerate_triangles(
    mesh: Mesh,
    min_area: float = DEFAULT_TOLERANCES.min_triangle_area,
) -> Mesh:
    """Drop faces below ``min_area`` and compact the vertex buffer to what is still referenced."""

    keep_faces = face_areas(mesh) >= min_area
    faces = mesh.faces[keep_faces]
    used, remapped = np.unique(faces.ravel(), return_inverse=True)
    faces = np.asarray(remapped).reshape(-1, 3)
    return _take_vertices(mesh, used, faces)


def remove_duplicate_faces(mesh: Mesh) -> Mesh:
    """Drop faces whose vertex-index set repeats an earlier face, ignoring order."""

    if mesh.n_faces == 0:
        return mesh.copy()
    keys = np.sort(mesh.faces, axis=1)
    _, first = np.unique(keys, axis=0, return_index=True)
    result = mesh.copy()
    result.faces = mesh.faces[np.sort(first)]
    return result


def compute_vertex_normals(mesh: Mesh) -> Mesh:
    """Return a copy with area-weighted unit vertex normals."""

    normals = np.zeros_like(mesh.vertices)
    weighted = face_normals(mesh, unit=False)
    for corner in range(3):
        np.add.at(normals, mesh.faces[:, corner], weighted)
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    result = mesh.copy()
    result.normals = np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0)
    return result


def repair_mesh(mesh: Mesh, tolerances: Tolerances = DEFAULT_TOLERANCES) -> Mesh:
    """Weld, cull and deduplicate until the vertex count reaches a fixpoint."""

    output = mesh
    for iteration in range(1, tolerances.max_repair_passes + 1):
        begin = output.n_vertices
        output = output.copy()
        output.normals = None

        output = weld_vertices(output, tolerances.merge_tolerance)
        output = remove_degenerate_triangles(output, tolerances.min_triangle_area)
        output = remove_duplicate_faces(output)
        output = weld_vertices(output, tolerances.merge_tolerance)
        output = compute_vertex_normals(output)

        logger.debug(
            "repair pass %d: vertices %d -> %d, triangles %d",
            iteration,
            begin,
            output.n_vertices,
            output.n_faces,
        )
        if output.n_vertices == begin:
            return output

    logger.warning(
        "repair did not converge after %d passes (vertices=%d)",
        tolerances.max_repair_passes,
        output.n_vertices,
    )
    return output


def non_manifold_edges(mesh: Mesh) -> np.ndarray:
    """Return undirected edges used by other than exactly two triangles."""

    edges, counts = edge_face_counts(mesh)
    return edges[counts != 2]


def report_non_manifold(mesh: Mesh, context: str) -> MeshAnalysis:
    """Log the edge diagnostic for ``mesh``; never raises and never edits the mesh."""

    analysis = analyze_mesh(mesh)
    if analysis.nonmanifold_edges or analysis.boundary_edges:
        logger.warning("%s: %s", context, ", ".join(analysis.issues()))
    else:
        logger.debug("%s: all edges shared by exactly two triangles", context)
    return analysis
