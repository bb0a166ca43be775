from __future__ import annotations

import numpy as np
import pytest

from gridify.errors import EmptyAssemblyError
from gridify.mesh import edge_face_counts
from gridify.reassemble import GridSpec, Placement, count_roles, merge_pieces, place, plan_placements, reassemble
from gridify.repair import report_non_manifold
from tests.conftest import CELL, HEIGHT, RADIUS, make_box_subparts
from tests.helpers import extent


def _spec(columns: int, rows: int, cell=(CELL, CELL), **kwargs) -> GridSpec:
    return GridSpec(
        columns=columns,
        rows=rows,
        cell_size_x=cell[0],
        cell_size_y=cell[1],
        height=HEIGHT,
        corner_radius=RADIUS,
        **kwargs,
    )


@pytest.mark.parametrize("columns, rows", [(1, 1), (2, 6), (3, 2), (1, 4)])
def test_piece_counts(columns, rows):
    counts = count_roles(plan_placements(_spec(columns, rows)))
    assert counts["outer_corner"] == 12
    assert counts["boundary_edge"] == 2 * columns + 2 * rows
    assert counts["boundary_corner"] == 4 * (columns - 1) + 4 * (rows - 1)
    assert counts["center_corner"] == 4 * (columns - 1) * (rows - 1)
    assert counts["floor"] == columns * rows
    assert counts["seam_edge"] == 2 * columns * (rows - 1) + 2 * rows * (columns - 1)
    assert counts["wall"] == 4
    assert counts["rim"] == 4


def test_single_cell_has_no_seam_pieces():
    counts = count_roles(plan_placements(_spec(1, 1)))
    assert counts["seam_edge"] == 0
    assert counts["boundary_corner"] == 0
    assert counts["center_corner"] == 0


def test_plan_is_deterministic():
    parts = make_box_subparts()
    extents = {name: parts.extent(name) for name in parts}
    first = plan_placements(_spec(3, 2), extents, 0.01)
    second = plan_placements(_spec(3, 2), extents, 0.01)
    assert first == second


def test_empty_grid_has_no_pieces():
    assert plan_placements(_spec(0, 3)) == []
    with pytest.raises(EmptyAssemblyError):
        reassemble(make_box_subparts(), _spec(0, 3))
    with pytest.raises(EmptyAssemblyError):
        merge_pieces([])


def test_place_turns_and_anchors():
    subparts = make_box_subparts()
    wall = place(
        subparts,
        Placement("wall", "side_wall_panel", (10.0, 50.0, 0.0), 2, anchor_max=(False, True, False)),
    )
    xmin, xmax, ymin, ymax, zmin, zmax = wall.bounds
    assert (xmin, ymin, zmin) == pytest.approx((10.0, 50.0 - RADIUS, 0.0))
    assert (xmax, ymax) == pytest.approx((10.0 + CELL - 2 * RADIUS, 50.0))

    turned = place(subparts, Placement("boundary_edge", "side_bottom_edge", (0.0, 0.0, 0.0), 1))
    assert np.allclose(extent(turned), [RADIUS, CELL - 2 * RADIUS, RADIUS])


@pytest.mark.parametrize(
    "columns, rows, cell",
    [(1, 1, (CELL, CELL)), (2, 3, (CELL, CELL)), (3, 2, (CELL, 30.0)), (2, 2, (30.0, 45.0))],
)
def test_reassembled_extent_matches_grid(columns, rows, cell):
    subparts = make_box_subparts((cell[0], cell[1], HEIGHT))
    merged = reassemble(subparts, _spec(columns, rows, cell))

    xmin, _, ymin, _, zmin, _ = merged.bounds
    assert (xmin, ymin, zmin) == pytest.approx((0.0, 0.0, 0.0))
    assert np.allclose(extent(merged), [columns * cell[0], rows * cell[1], HEIGHT], atol=1e-6)
    assert merged.normals is not None
    assert not np.isnan(merged.vertices).any()


def test_divider_thickness_is_accepted(caplog):
    subparts = make_box_subparts()
    with caplog.at_level("INFO", logger="gridify.reassemble"):
        merged = reassemble(subparts, _spec(2, 1, divider_thickness=1.5))
    assert "divider" in caplog.text
    assert np.allclose(extent(merged), [2 * CELL, CELL, HEIGHT], atol=1e-6)


def test_reassembly_is_repaired():
    merged = reassemble(make_box_subparts(), _spec(2, 2))
    again = reassemble(make_box_subparts(), _spec(2, 2))
    assert merged.n_vertices == again.n_vertices
    assert np.allclose(merged.vertices, again.vertices)
    analysis = report_non_manifold(merged, "merged")
    assert analysis.n_faces == merged.n_faces
    assert analysis.nonmanifold_edges == int(np.sum(edge_face_counts(merged)[1] > 2))
