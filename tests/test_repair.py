from __future__ import annotations

import numpy as np

from gridify.mesh import Mesh, analyze_mesh, combine_meshes, mesh_to_pyvista
from gridify.modeling import make_box, translate
from gridify.repair import (
    compute_vertex_normals,
    non_manifold_edges,
    remove_degenerate_triangles,
    remove_duplicate_faces,
    repair_mesh,
    report_non_manifold,
    weld_vertices,
)
from tests.helpers import is_watertight


def _soup(mesh: Mesh) -> Mesh:
    return Mesh.from_soup(mesh.soup().ravel())


def test_weld_merges_coincident_vertices(unit_box):
    soup = _soup(unit_box)
    welded = weld_vertices(soup, 0.001)
    assert welded.n_vertices == 8
    assert welded.n_faces == 12
    assert analyze_mesh(welded).is_watertight


def test_weld_respects_tolerance():
    mesh = Mesh(vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0], [0.0002, 0, 0]], faces=[[0, 1, 2], [3, 1, 2]])
    assert weld_vertices(mesh, 0.001).n_vertices == 3
    assert weld_vertices(mesh, 0.0001).n_vertices == 4


def test_remove_degenerate_compacts_vertices(unit_box):
    sliver = Mesh(vertices=[[5, 5, 5], [6, 5, 5], [7, 5, 5.00001]], faces=[[0, 1, 2]])
    mesh = combine_meshes([unit_box, sliver])
    cleaned = remove_degenerate_triangles(mesh, 0.001)
    assert cleaned.n_faces == 12
    assert cleaned.n_vertices == 8
    assert np.allclose(cleaned.vertices, unit_box.vertices)


def test_remove_duplicate_faces_ignores_index_order(unit_box):
    doubled = unit_box.copy()
    doubled.faces = np.vstack([unit_box.faces, unit_box.faces[:, ::-1], np.roll(unit_box.faces, 1, axis=1)])
    cleaned = remove_duplicate_faces(doubled)
    assert cleaned.n_faces == 12
    assert np.array_equal(cleaned.faces, unit_box.faces)


def test_vertex_normals_point_outward(unit_box):
    mesh = compute_vertex_normals(unit_box)
    center = unit_box.vertices.mean(axis=0)
    outward = np.einsum("ij,ij->i", mesh.normals, unit_box.vertices - center)
    assert np.all(outward > 0)
    assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0)


def _messy_mesh() -> Mesh:
    a = make_box((0.0, 0.0, 0.0), (2.0, 2.0, 2.0))
    b = translate(make_box((0.0, 0.0, 0.0), (2.0, 2.0, 2.0)), (5.0, 0.0, 0.0))
    soup = _soup(combine_meshes([a, b, a]))
    sliver = Mesh(vertices=[[9, 9, 9], [9.1, 9, 9], [9.2, 9, 9]], faces=[[0, 1, 2]])
    return combine_meshes([soup, sliver])


def test_repair_reaches_fixpoint():
    repaired = repair_mesh(_messy_mesh())
    assert repaired.n_vertices == 16
    assert repaired.n_faces == 24
    assert repaired.normals is not None
    assert analyze_mesh(repaired).is_watertight


def test_repair_is_idempotent():
    once = repair_mesh(_messy_mesh())
    twice = repair_mesh(once)
    assert twice.n_vertices == once.n_vertices
    assert twice.n_faces == once.n_faces
    assert len(non_manifold_edges(twice)) == len(non_manifold_edges(once))


def test_duplicate_removal_is_order_independent():
    mesh = _messy_mesh()
    rng = np.random.default_rng(7)
    expected = repair_mesh(mesh).n_faces
    for _ in range(3):
        shuffled = mesh.copy()
        shuffled.faces = mesh.faces[rng.permutation(mesh.n_faces)]
        assert repair_mesh(shuffled).n_faces == expected


def test_non_manifold_edges_reports_open_and_shared_edges(unit_box):
    assert len(non_manifold_edges(unit_box)) == 0

    open_box = unit_box.copy()
    open_box.faces = unit_box.faces[1:]
    assert len(non_manifold_edges(open_box)) == 3

    fan = Mesh(
        vertices=[[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, -1, 0], [0, 0, 1]],
        faces=[[0, 1, 2], [1, 0, 3], [0, 1, 4]],
    )
    analysis = report_non_manifold(fan, "fan")
    assert analysis.nonmanifold_edges == 1
    assert fan.n_faces == 3


def test_watertight_check_agrees_with_pyvista(unit_box):
    repaired = repair_mesh(_soup(unit_box))
    watertight, open_edges = is_watertight(mesh_to_pyvista(repaired))
    assert watertight
    assert open_edges == 0
    assert analyze_mesh(repaired).is_watertight
