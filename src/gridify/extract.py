from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from gridify.errors import InvalidGridSizeError
from gridify.mesh import Mesh, bounding_box
from gridify.modeling.csg import BooleanBackend, boolean_intersection
from gridify.modeling.primitives import make_cutter_box
from gridify.modeling.transform import normalize_to_origin, scale
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances
from gridify.validation import validate_mesh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CellResult:
    """One extracted cell, normalized to the origin, with its nominal footprint and height."""

    mesh: Mesh
    size_x: float
    size_y: float
    size_z: float

    def scaled(self, factor: float) -> "CellResult":
        if factor <= 0:
            raise ValueError("Scale factor must be positive.")
        mesh = normalize_to_origin(scale(self.mesh, (factor, factor, factor)))
        return CellResult(
            mesh=validate_mesh(mesh, "scaled cell"),
            size_x=self.size_x * factor,
            size_y=self.size_y * factor,
            size_z=self.size_z * factor,
        )


def check_input_grids(grids: Sequence[int]) -> tuple[int, int]:
    n, m = (int(value) for value in grids)
    if n < 2 or m < 2:
        raise InvalidGridSizeError(f"Input grid must be at least 2x2, got {n}x{m}.")
    return n, m


def recut_to_bounds(
    solid: Mesh,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    """Clip ``solid`` against its own bounding box; a sanity pass that should not change it."""

    base = normalize_to_origin(validate_mesh(solid, "recut input"))
    bbox = bounding_box(base)
    cutter = make_cutter_box(bbox.minimum, bbox.maximum, tolerances.overlap_thickness)
    recut = boolean_intersection(base, cutter, backend, tolerances=tolerances)
    return validate_mesh(normalize_to_origin(recut), "recut output")


def extract_cell(
    solid: Mesh,
    grids: Sequence[int],
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> CellResult:
    """Cut the corner cell of an ``n x m`` container out of ``solid``."""

    n, m = check_input_grids(grids)
    base = normalize_to_origin(validate_mesh(solid, "cell extraction input"))
    size = bounding_box(base).size
    cell_x = float(size[0]) / n
    cell_y = float(size[1]) / m
    size_z = float(size[2])
    logger.info("input %dx%d: solid %.3f x %.3f x %.3f, cell %.3f x %.3f", n, m, *size, cell_x, cell_y)

    cutter = make_cutter_box(
        np.zeros(3),
        (cell_x, cell_y, size_z),
        tolerances.overlap_thickness,
    )
    cell = normalize_to_origin(boolean_intersection(base, cutter, backend, tolerances=tolerances))
    validate_mesh(cell, "extracted cell")
    return CellResult(mesh=cell, size_x=cell_x, size_y=cell_y, size_z=size_z)
