from __future__ import annotations

import logging
from typing import Iterable, Literal

import numpy as np

from gridify.errors import BooleanOperationFailure
from gridify.mesh import Mesh, mesh_from_pyvista, mesh_to_pyvista
from gridify.repair import weld_vertices
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances

logger = logging.getLogger(__name__)

BooleanBackend = Literal["manifold", "vtk"]
BACKENDS: tuple[str, ...] = ("manifold", "vtk")


def _ensure_backend(backend: str) -> None:
    if backend not in BACKENDS:
        raise ValueError(f"Unsupported backend '{backend}'. Expected one of: {', '.join(BACKENDS)}.")


def _manifold_from_mesh(mesh: Mesh, tolerances: Tolerances = DEFAULT_TOLERANCES):
    from manifold3d import Manifold, Mesh as ManifoldMesh

    welded = weld_vertices(mesh, tolerances.merge_tolerance)
    vertices = np.asarray(welded.vertices, dtype=np.float32)
    faces = np.asarray(welded.faces, dtype=np.uint32)
    try:
        manifold_mesh = ManifoldMesh(vertices, faces)
    except TypeError:
        manifold_mesh = ManifoldMesh(vert_properties=vertices, tri_verts=faces)
    manifold = Manifold(manifold_mesh)
    status = str(manifold.status()).split(".")[-1] if hasattr(manifold, "status") else "NoError"
    if status != "NoError":
        raise BooleanOperationFailure(f"Input is not a closed manifold solid ({status}).")
    return manifold


def _mesh_from_manifold(manifold) -> Mesh:
    mesh = manifold.to_mesh()
    vertices = np.asarray(mesh.vert_properties, dtype=float)
    faces = np.asarray(mesh.tri_verts, dtype=np.int64)
    return Mesh(vertices[:, :3], faces)


def _finalize_polydata(poly, tolerance: float):
    # vtk booleans may emit polygons and strips; the next boolean needs triangles
    poly = poly.extract_geometry().triangulate()
    poly = poly.clean(tolerance=tolerance, inplace=False)
    if poly.n_cells > 0 and hasattr(poly, "orient_faces"):
        poly = poly.orient_faces(inplace=False)
    if poly.n_cells > 0:
        poly = poly.compute_normals(
            cell_normals=True,
            point_normals=False,
            auto_orient_normals=True,
            consistent_normals=True,
            inplace=False,
        )
    return poly


def _check_polydata(mesh: Mesh, tolerances: Tolerances = DEFAULT_TOLERANCES):
    poly = mesh_to_pyvista(weld_vertices(mesh, tolerances.merge_tolerance))
    return _finalize_polydata(poly, tolerances.merge_tolerance)


def _require_result(result: Mesh, operation: str) -> Mesh:
    if result.is_empty:
        raise BooleanOperationFailure(f"Boolean {operation} returned no geometry.")
    return result


def boolean_intersection(
    base: Mesh,
    cutter: Mesh,
    backend: BooleanBackend = "manifold",
    tolerance: float = 1e-4,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> Mesh:
    """Return the volume shared by ``base`` and ``cutter``.

    Both inputs are welded at ``tolerances.merge_tolerance`` first; ``tolerance``
    is the vtk intersection tolerance.
    """

    _ensure_backend(backend)
    if backend == "manifold":
        shared = _manifold_from_mesh(base, tolerances) ^ _manifold_from_mesh(cutter, tolerances)
        result = _mesh_from_manifold(shared)
    else:
        poly = _check_polydata(base, tolerances).boolean_intersection(
            _check_polydata(cutter, tolerances), tolerance=tolerance
        )
        result = mesh_from_pyvista(_finalize_polydata(poly, tolerance))
    logger.debug("intersection (%s): %d triangles", backend, result.n_faces)
    return _require_result(result, "intersection")


def boolean_union(
    meshes: Iterable[Mesh],
    backend: BooleanBackend = "manifold",
    tolerance: float = 1e-4,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
) -> Mesh:
    """Fold ``meshes`` pairwise through the boolean union."""

    _ensure_backend(backend)
    sources = list(meshes)
    if not sources:
        raise ValueError("boolean_union requires at least one mesh.")
    if len(sources) == 1:
        return _require_result(sources[0].copy(), "union")

    if backend == "manifold":
        result = _manifold_from_mesh(sources[0], tolerances)
        for mesh in sources[1:]:
            result = result + _manifold_from_mesh(mesh, tolerances)
        merged = _mesh_from_manifold(result)
    else:
        poly = _check_polydata(sources[0], tolerances)
        for mesh in sources[1:]:
            poly = poly.boolean_union(_check_polydata(mesh, tolerances), tolerance=tolerance)
            poly = _finalize_polydata(poly, tolerance)
        merged = mesh_from_pyvista(poly)
    logger.debug("union (%s) of %d meshes: %d triangles", backend, len(sources), merged.n_faces)
    return _require_result(merged, "union")
