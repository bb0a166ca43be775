"""Split one cell into the twelve reusable regions the reassembler tiles with.

Every region is an axis-aligned cutter box expressed against the cell's
bounding box: each bound is anchored on the ``min`` or ``max`` face of an
axis and offset by a whole multiple of the corner radius ``r``. Cut planes
therefore sit at distance ``r`` from the four vertical faces and from the
floor and rim, and no two boxes share interior volume.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterator, Literal

import numpy as np

from gridify.extract import CellResult
from gridify.mesh import BoundingBox, Mesh, bounding_box
from gridify.modeling.csg import BooleanBackend, boolean_intersection
from gridify.modeling.primitives import make_cutter_box
from gridify.modeling.transform import normalize_to_origin
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances
from gridify.validation import validate_mesh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bound:
    anchor: Literal["min", "max"]
    radii: int = 0

    def resolve(self, low: float, high: float, radius: float) -> float:
        base = low if self.anchor == "min" else high
        return base + self.radii * radius


Span = tuple[Bound, Bound]

LOW: Span = (Bound("min"), Bound("min", 1))
HIGH: Span = (Bound("max", -1), Bound("max"))
MIDDLE: Span = (Bound("min", 1), Bound("max", -1))


@dataclass(frozen=True)
class Region:
    name: str
    x: Span
    y: Span
    z: Span
    description: str


REGIONS: tuple[Region, ...] = (
    Region("bottom_outer_corner", LOW, LOW, LOW, "outer corner at the floor, two walls"),
    Region("top_outer_corner", LOW, LOW, HIGH, "outer corner at the rim, two walls"),
    Region("bottom_inner_corner_right", HIGH, LOW, LOW, "floor corner on the near wall at a column seam"),
    Region("bottom_inner_corner_left", LOW, HIGH, LOW, "floor corner on the left wall at a row seam"),
    Region("top_inner_corner", HIGH, LOW, HIGH, "rim corner with one wall"),
    Region("bottom_center_corner", HIGH, HIGH, LOW, "floor corner where four cells meet, no walls"),
    Region("side_top_edge", MIDDLE, LOW, HIGH, "rim of the near wall"),
    Region("side_bottom_edge", MIDDLE, LOW, LOW, "floor edge along the near wall"),
    Region("side_edge_between_corners", LOW, LOW, MIDDLE, "vertical edge where two walls meet"),
    Region("side_wall_panel", MIDDLE, LOW, MIDDLE, "near wall between floor and rim"),
    Region("floor_panel", MIDDLE, MIDDLE, LOW, "floor of the cell"),
    Region("bottom_edge", HIGH, MIDDLE, LOW, "floor strip along a seam, no walls"),
)

REGION_NAMES: tuple[str, ...] = tuple(region.name for region in REGIONS)


def cutter_bounds(region: Region, bbox: BoundingBox, radius: float) -> tuple[np.ndarray, np.ndarray]:
    """Return the (minimum, maximum) corners of ``region``'s box in the cell frame."""

    lows = bbox.minimum
    highs = bbox.maximum
    minimum = np.empty(3, dtype=float)
    maximum = np.empty(3, dtype=float)
    for axis, (start, end) in enumerate((region.x, region.y, region.z)):
        minimum[axis] = start.resolve(lows[axis], highs[axis], radius)
        maximum[axis] = end.resolve(lows[axis], highs[axis], radius)
    return minimum, maximum


class SubpartSet(Mapping[str, Mesh]):
    """Exactly the twelve named, origin-normalized regions of one cell."""

    def __init__(self, parts: Mapping[str, Mesh]) -> None:
        missing = [name for name in REGION_NAMES if name not in parts]
        unknown = [name for name in parts if name not in REGION_NAMES]
        if missing or unknown:
            raise ValueError(f"SubpartSet needs exactly the known regions (missing={missing}, unknown={unknown}).")
        self._parts = {name: parts[name] for name in REGION_NAMES}

    def __getitem__(self, name: str) -> Mesh:
        return self._parts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def clone(self, name: str) -> Mesh:
        return self._parts[name].copy()

    def extent(self, name: str) -> np.ndarray:
        return bounding_box(self._parts[name]).size


def cut_region(
    cell: Mesh,
    region: Region,
    radius: float,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    minimum, maximum = cutter_bounds(region, bounding_box(cell), radius)
    cutter = make_cutter_box(minimum, maximum, tolerances.overlap_thickness)
    part = normalize_to_origin(boolean_intersection(cell.copy(), cutter, backend, tolerances=tolerances))
    logger.debug("cut %s: %d triangles, extent %s", region.name, part.n_faces, bounding_box(part).size)
    return part


def decompose_cell(
    cell: CellResult,
    corner_radius: float,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> SubpartSet:
    if corner_radius <= 0:
        raise ValueError("corner_radius must be positive.")
    source = validate_mesh(cell.mesh, "decomposition input")
    logger.info("decomposing cell with corner radius %.3f", corner_radius)

    parts = {region.name: cut_region(source, region, corner_radius, tolerances, backend) for region in REGIONS}
    for name, part in parts.items():
        validate_mesh(part, f"subpart {name}")
    return SubpartSet(parts)
