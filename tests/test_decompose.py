from __future__ import annotations

from itertools import combinations

import numpy as np
import pytest

from gridify.decompose import REGION_NAMES, REGIONS, SubpartSet, cutter_bounds, decompose_cell
from gridify.extract import extract_cell
from gridify.mesh import BoundingBox, analyze_mesh, bounding_box
from gridify.modeling import make_box
from gridify.validation import validate_mesh
from tests.conftest import CELL, HEIGHT, RADIUS

CELL_BOX = BoundingBox(minimum=np.zeros(3), maximum=np.array([CELL, CELL, HEIGHT]))


def _region(name):
    return next(region for region in REGIONS if region.name == name)


def test_twelve_named_regions():
    assert len(REGION_NAMES) == 12
    assert len(set(REGION_NAMES)) == 12
    assert {"bottom_outer_corner", "floor_panel", "side_wall_panel", "bottom_edge"} <= set(REGION_NAMES)


def test_corner_bounds():
    lo, hi = cutter_bounds(_region("bottom_outer_corner"), CELL_BOX, RADIUS)
    assert np.allclose(lo, [0, 0, 0])
    assert np.allclose(hi, [RADIUS, RADIUS, RADIUS])

    lo, hi = cutter_bounds(_region("top_inner_corner"), CELL_BOX, RADIUS)
    assert np.allclose(lo, [CELL - RADIUS, 0, HEIGHT - RADIUS])
    assert np.allclose(hi, [CELL, RADIUS, HEIGHT])

    lo, hi = cutter_bounds(_region("side_wall_panel"), CELL_BOX, RADIUS)
    assert np.allclose(lo, [RADIUS, 0, RADIUS])
    assert np.allclose(hi, [CELL - RADIUS, RADIUS, HEIGHT - RADIUS])


def test_region_boxes_do_not_overlap():
    boxes = {region.name: cutter_bounds(region, CELL_BOX, RADIUS) for region in REGIONS}
    for (name_a, (lo_a, hi_a)), (name_b, (lo_b, hi_b)) in combinations(boxes.items(), 2):
        overlap = np.minimum(hi_a, hi_b) - np.maximum(lo_a, lo_b)
        assert np.any(overlap <= 1e-9), f"{name_a} overlaps {name_b}"
    for lo, hi in boxes.values():
        assert np.all(lo >= CELL_BOX.minimum - 1e-9)
        assert np.all(hi <= CELL_BOX.maximum + 1e-9)
        assert np.all(hi > lo)


def test_subpart_set_requires_every_region():
    parts = {name: make_box((0, 0, 0), (1, 1, 1)) for name in REGION_NAMES}
    assert len(SubpartSet(parts)) == 12

    missing = dict(parts)
    missing.pop("floor_panel")
    with pytest.raises(ValueError):
        SubpartSet(missing)

    extra = dict(parts, divider=make_box((0, 0, 0), (1, 1, 1)))
    with pytest.raises(ValueError):
        SubpartSet(extra)


def test_clone_is_independent():
    parts = SubpartSet({name: make_box((0, 0, 0), (1, 2, 3)) for name in REGION_NAMES})
    clone = parts.clone("floor_panel")
    clone.vertices[:] = 0.0
    assert np.allclose(parts.extent("floor_panel"), [1, 2, 3])


def test_decompose_container_cell(container):
    cell = extract_cell(container, (2, 2))
    parts = decompose_cell(cell, RADIUS)

    assert list(parts) == list(REGION_NAMES)
    for name, part in parts.items():
        validate_mesh(part, name)
        assert np.allclose(bounding_box(part).minimum, 0.0)
        assert analyze_mesh(part).nonmanifold_edges == 0, name

    limit = RADIUS + 0.01 + 1e-6
    for name in ("bottom_outer_corner", "top_outer_corner", "bottom_center_corner", "top_inner_corner"):
        assert np.all(parts.extent(name) <= limit), name

    wall = parts.extent("side_wall_panel")
    assert wall[0] == pytest.approx(CELL - 2 * RADIUS, abs=0.05)
    assert wall[2] == pytest.approx(HEIGHT - 2 * RADIUS, abs=0.05)
    assert parts.extent("floor_panel")[2] == pytest.approx(2.0, abs=0.05)


def test_decompose_rejects_non_positive_radius(container):
    cell = extract_cell(container, (2, 2))
    with pytest.raises(ValueError):
        decompose_cell(cell, 0.0)
