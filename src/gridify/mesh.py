from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from gridify.errors import DegenerateGeometryError


@dataclass(frozen=True)
class MeshAnalysis:
    """Counts behind the edge diagnostic and the ``inspect`` report."""

    n_vertices: int
    n_faces: int
    degenerate_faces: int
    boundary_edges: int
    nonmanifold_edges: int
    invalid_vertices: int

    @property
    def is_manifold(self) -> bool:
        return self.nonmanifold_edges == 0

    @property
    def is_watertight(self) -> bool:
        return self.is_manifold and not self.boundary_edges

    def issues(self) -> list[str]:
        labels = (
            (self.invalid_vertices, "non-finite vertex coordinates"),
            (self.degenerate_faces, "zero-area triangles"),
            (self.boundary_edges, "edges used by one triangle"),
            (self.nonmanifold_edges, "edges used by more than two triangles"),
        )
        return [f"{count} {label}" for count, label in labels if count]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in the mesh's local frame."""

    minimum: np.ndarray
    maximum: np.ndarray

    @property
    def size(self) -> np.ndarray:
        return self.maximum - self.minimum

    @property
    def center(self) -> np.ndarray:
        return (self.minimum + self.maximum) * 0.5

    def bounding_sphere(self, vertices: np.ndarray) -> tuple[np.ndarray, float]:
        center = self.center
        if vertices.size == 0:
            return center, 0.0
        radius = float(np.sqrt(np.max(np.sum((vertices - center) ** 2, axis=1))))
        return center, radius


@dataclass
class Mesh:
    """Indexed triangle buffer in millimeters.

    Pipeline stages treat meshes as values: transforms return new meshes and
    leave their input untouched.
    """

    vertices: np.ndarray
    faces: np.ndarray
    normals: np.ndarray | None = None
    uvs: np.ndarray | None = None
    metadata: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.vertices = np.array(self.vertices, dtype=float).reshape(-1, 3)
        self.faces = np.array(self.faces, dtype=np.int64).reshape(-1, 3)
        if self.normals is not None:
            self.normals = np.array(self.normals, dtype=float).reshape(-1, 3)
        if self.uvs is not None:
            self.uvs = np.array(self.uvs, dtype=float).reshape(-1, 2)

    @classmethod
    def from_soup(cls, positions: Sequence[float] | np.ndarray) -> "Mesh":
        """Build an indexed mesh from a flat triangle soup (9 floats per triangle)."""

        flat = np.asarray(positions, dtype=float).reshape(-1)
        if flat.size % 9 != 0:
            raise DegenerateGeometryError(
                f"Triangle soup length {flat.size} is not a multiple of 9."
            )
        vertices = flat.reshape(-1, 3)
        return cls(vertices=vertices, faces=np.arange(len(vertices)).reshape(-1, 3))

    def copy(self) -> "Mesh":
        # __post_init__ copies every buffer
        return Mesh(self.vertices, self.faces, self.normals, self.uvs, dict(self.metadata))

    def with_vertices(self, vertices: np.ndarray) -> "Mesh":
        """Return a copy sharing topology but with new vertex positions."""

        return Mesh(vertices, self.faces, self.normals, self.uvs, dict(self.metadata))

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return self.n_vertices == 0 or self.n_faces == 0

    @property
    def bounds(self) -> tuple[float, float, float, float, float, float]:
        """``(xmin, xmax, ymin, ymax, zmin, zmax)``, all zero for an empty mesh."""

        if self.n_vertices == 0:
            return (0.0,) * 6
        pairs = np.column_stack([self.vertices.min(axis=0), self.vertices.max(axis=0)])
        return tuple(float(value) for value in pairs.ravel())

    def soup(self) -> np.ndarray:
        """Return the (n_faces, 3, 3) per-triangle corner positions."""

        return self.vertices[self.faces]


def bounding_box(mesh: Mesh) -> BoundingBox:
    if mesh.n_vertices == 0:
        raise DegenerateGeometryError("Cannot compute a bounding box for a mesh with zero vertices.")
    return BoundingBox(minimum=mesh.vertices.min(axis=0), maximum=mesh.vertices.max(axis=0))


def face_normals(mesh: Mesh, unit: bool = True) -> np.ndarray:
    """Per-face normals from the winding; zero for collapsed faces.

    With ``unit=False`` the vectors keep their length of twice the face area.
    """

    if mesh.n_faces == 0:
        return np.zeros((0, 3), dtype=float)
    corners = mesh.soup()
    normals = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
    if not unit:
        return normals
    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    out = np.zeros_like(normals)
    np.divide(normals, lengths, out=out, where=lengths > 0)
    out[~np.isfinite(out)] = 0.0
    return out


def face_areas(mesh: Mesh) -> np.ndarray:
    return 0.5 * np.linalg.norm(face_normals(mesh, unit=False), axis=1)


def edge_face_counts(mesh: Mesh) -> tuple[np.ndarray, np.ndarray]:
    """Return unique undirected edges (k, 2) and the number of faces using each."""

    if mesh.n_faces == 0:
        return np.zeros((0, 2), dtype=np.int64), np.zeros(0, dtype=np.int64)
    edges = np.sort(mesh.faces[:, [0, 1, 1, 2, 2, 0]].reshape(-1, 2), axis=1)
    return np.unique(edges, axis=0, return_counts=True)


def combine_meshes(meshes: Iterable[Mesh]) -> Mesh:
    """Concatenate buffers without merging anything; the caller welds."""

    parts = list(meshes)
    if not parts:
        raise ValueError("combine_meshes requires at least one mesh.")
    offsets = np.cumsum([0] + [part.n_vertices for part in parts[:-1]])
    return Mesh(
        vertices=np.concatenate([part.vertices for part in parts]),
        faces=np.concatenate([part.faces + offset for part, offset in zip(parts, offsets)]),
    )


def analyze_mesh(mesh: Mesh, area_epsilon: float = 1e-12) -> MeshAnalysis:
    _, counts = edge_face_counts(mesh)
    return MeshAnalysis(
        n_vertices=mesh.n_vertices,
        n_faces=mesh.n_faces,
        degenerate_faces=int(np.sum(face_areas(mesh) <= area_epsilon)),
        boundary_edges=int(np.sum(counts == 1)),
        nonmanifold_edges=int(np.sum(counts > 2)),
        invalid_vertices=int(np.sum(~np.isfinite(mesh.vertices).all(axis=1))),
    )


def mesh_to_pyvista(mesh: Mesh):
    """Convert to ``pyvista.PolyData`` for the VTK boolean backend and watertight checks."""
    import pyvista as pv

    cells = np.column_stack([np.full(mesh.n_faces, 3, dtype=np.int64), mesh.faces]).ravel()
    return pv.PolyData(mesh.vertices, cells if mesh.n_faces else None, deep=True)


def mesh_from_pyvista(poly) -> Mesh:
    poly = poly.extract_geometry().triangulate()
    if poly.n_cells == 0:
        return Mesh(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=np.int64))
    faces = np.asarray(poly.faces, dtype=np.int64).reshape(-1, 4)[:, 1:]
    return Mesh(vertices=np.asarray(poly.points, dtype=float), faces=faces)
