from __future__ import annotations

import os

import numpy as np
import pytest

from gridify.decompose import REGIONS, SubpartSet, cutter_bounds
from gridify.io.stl import encode_stl
from gridify.mesh import BoundingBox, Mesh
from gridify.modeling.primitives import make_box
from gridify.modeling.transform import normalize_to_origin

CELL = 40.0
HEIGHT = 30.0
RADIUS = 5.0


def pytest_configure():
    os.environ.setdefault("PYVISTA_OFF_SCREEN", "true")


def make_container(
    columns: int = 2,
    rows: int = 2,
    cell: tuple[float, float] = (CELL, CELL),
    height: float = HEIGHT,
    wall: float = 2.0,
    floor: float = 2.0,
) -> Mesh:
    """Open-top box split into ``columns x rows`` pockets by walls of ``2 * wall``."""
    from manifold3d import Manifold

    cx, cy = cell
    solid = Manifold.cube((cx * columns, cy * rows, height))
    for i in range(columns):
        for j in range(rows):
            pocket = Manifold.cube((cx - 2 * wall, cy - 2 * wall, height))
            solid = solid - pocket.translate((i * cx + wall, j * cy + wall, floor))
    out = solid.to_mesh()
    return Mesh(np.asarray(out.vert_properties, dtype=float)[:, :3], np.asarray(out.tri_verts, dtype=np.int64))


def make_box_subparts(
    cell: tuple[float, float, float] = (CELL, CELL, HEIGHT),
    radius: float = RADIUS,
) -> SubpartSet:
    """Subparts that are plain boxes the size of each region, for placement checks without booleans."""

    bbox = BoundingBox(minimum=np.zeros(3), maximum=np.asarray(cell, dtype=float))
    parts = {}
    for region in REGIONS:
        lo, hi = cutter_bounds(region, bbox, radius)
        parts[region.name] = normalize_to_origin(make_box(lo, hi))
    return SubpartSet(parts)


@pytest.fixture
def unit_box() -> Mesh:
    return make_box((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


@pytest.fixture(scope="session")
def container() -> Mesh:
    return make_container()


@pytest.fixture(scope="session")
def container_stl(container: Mesh) -> bytes:
    return encode_stl(container)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    path = tmp_path / "config"
    monkeypatch.setenv("GRIDIFY_CONFIG_DIR", str(path))
    return path
