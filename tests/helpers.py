from __future__ import annotations

import numpy as np
import pyvista as pv

from gridify.mesh import Mesh


def is_watertight(mesh: pv.DataSet) -> tuple[bool, int]:
    edges = mesh.extract_feature_edges(boundary_edges=True, feature_edges=False, non_manifold_edges=True, manifold_edges=False)
    open_edges = edges.n_cells
    return open_edges == 0, open_edges


def signed_volume(mesh: Mesh) -> float:
    tri = mesh.soup()
    return float(np.einsum("ij,ij->i", tri[:, 0], np.cross(tri[:, 1], tri[:, 2])).sum() / 6.0)


def extent(mesh: Mesh) -> np.ndarray:
    xmin, xmax, ymin, ymax, zmin, zmax = mesh.bounds
    return np.array([xmax - xmin, ymax - ymin, zmax - zmin])
