"""Tile a :class:`SubpartSet` into a ``columns x rows`` container.

The layout is a flat placement table: each row names a subpart, how to turn,
mirror and stretch a clone of it, and where its corner lands in the
container frame (origin at the near-bottom-left corner, X along columns, Y
along rows). ``place`` is the only routine that touches geometry.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence

import numpy as np

from gridify.decompose import SubpartSet
from gridify.errors import EmptyAssemblyError
from gridify.mesh import Mesh, bounding_box, combine_meshes
from gridify.modeling.csg import BooleanBackend, boolean_union
from gridify.modeling.transform import Axis, mirror, rotate_z, stretch, translate
from gridify.repair import repair_mesh, report_non_manifold, weld_vertices
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances
from gridify.validation import validate_mesh

logger = logging.getLogger(__name__)

Extents = Mapping[str, Sequence[float]]


@dataclass(frozen=True)
class GridSpec:
    columns: int
    rows: int
    cell_size_x: float
    cell_size_y: float
    height: float
    corner_radius: float
    divider_thickness: float = 0.0
    union_all: bool = False

    @property
    def container_size_x(self) -> float:
        return self.cell_size_x * self.columns

    @property
    def container_size_y(self) -> float:
        return self.cell_size_y * self.rows


@dataclass(frozen=True)
class Placement:
    role: str
    part: str
    offset: tuple[float, float, float]
    quarter_turns: int = 0
    mirror: Axis | None = None
    stretch: tuple[float | None, float | None, float | None] = (None, None, None)
    anchor_max: tuple[bool, bool, bool] = (False, False, False)


def place(subparts: SubpartSet, placement: Placement) -> Mesh:
    """Clone one subpart and apply mirror, quarter turns, stretch and translation in that order."""

    mesh = subparts.clone(placement.part)
    if placement.mirror is not None:
        mesh = mirror(mesh, placement.mirror)
    if placement.quarter_turns % 4:
        mesh = rotate_z(mesh, 90.0 * placement.quarter_turns)
    if any(target is not None for target in placement.stretch):
        mesh = stretch(mesh, *placement.stretch)
    offset = np.asarray(placement.offset, dtype=float)
    if any(placement.anchor_max):
        offset = np.where(placement.anchor_max, offset - bounding_box(mesh).size, offset)
    return translate(mesh, offset)


def _run_length(extents: Extents | None, part: str, axis: int, delta: float) -> float | None:
    # pieces cut along one cell side but laid along the other need the length difference
    if extents is None or abs(delta) < 1e-12:
        return None
    return float(extents[part][axis]) + delta


def _outer_corners(spec: GridSpec, corner_height: float) -> Iterator[Placement]:
    r = spec.corner_radius
    size_x = spec.container_size_x
    size_y = spec.container_size_y
    edge_height = spec.height - 2 * r
    origins = [(0.0, 0.0), (size_x - r, 0.0), (size_x - r, size_y - r), (0.0, size_y - r)]
    for turns, (ox, oy) in enumerate(origins):
        yield Placement("outer_corner", "bottom_outer_corner", (ox, oy, 0.0), turns)
        yield Placement("outer_corner", "top_outer_corner", (ox, oy, spec.height - r), turns)
        yield Placement(
            "outer_corner",
            "side_edge_between_corners",
            (ox, oy, corner_height),
            turns,
            stretch=(None, None, edge_height),
        )


def _near_far_edges(spec: GridSpec) -> Iterator[Placement]:
    r = spec.corner_radius
    cx = spec.cell_size_x
    far = spec.container_size_y - r
    for j in range(int(round(spec.container_size_x / cx))):
        yield Placement("boundary_edge", "side_bottom_edge", (j * cx + r, 0.0, 0.0))
        yield Placement("boundary_edge", "side_bottom_edge", (j * cx + r, far, 0.0), 2)
        if j == 0:
            continue
        seam = j * cx
        part = "bottom_inner_corner_right"
        yield Placement("boundary_corner", part, (seam - r, 0.0, 0.0))
        yield Placement("boundary_corner", part, (seam, 0.0, 0.0), mirror="x")
        yield Placement("boundary_corner", part, (seam - r, far, 0.0), 2, mirror="x")
        yield Placement("boundary_corner", part, (seam, far, 0.0), 2)


def _left_right_edges(spec: GridSpec, extents: Extents | None) -> Iterator[Placement]:
    r = spec.corner_radius
    cy = spec.cell_size_y
    right = spec.container_size_x - r
    run = _run_length(extents, "side_bottom_edge", 0, spec.cell_size_y - spec.cell_size_x)
    for j in range(int(round(spec.container_size_y / cy))):
        yield Placement("boundary_edge", "side_bottom_edge", (0.0, j * cy + r, 0.0), -1, stretch=(None, run, None))
        yield Placement("boundary_edge", "side_bottom_edge", (right, j * cy + r, 0.0), 1, stretch=(None, run, None))
        if j == 0:
            continue
        seam = j * cy
        part = "bottom_inner_corner_left"
        yield Placement("boundary_corner", part, (0.0, seam - r, 0.0))
        yield Placement("boundary_corner", part, (0.0, seam, 0.0), mirror="y")
        yield Placement("boundary_corner", part, (right, seam - r, 0.0), 2, mirror="y")
        yield Placement("boundary_corner", part, (right, seam, 0.0), 2)


def _interior(spec: GridSpec, extents: Extents | None) -> Iterator[Placement]:
    r = spec.corner_radius
    cx = spec.cell_size_x
    cy = spec.cell_size_y
    run = _run_length(extents, "bottom_edge", 1, spec.cell_size_x - spec.cell_size_y)
    for x in range(spec.columns):
        for y in range(spec.rows):
            left = x * cx
            near = y * cy
            yield Placement("floor", "floor_panel", (left + r, near + r, 0.0))
            if y > 0:
                yield Placement("seam_edge", "bottom_edge", (left + r, near - r, 0.0), 1, stretch=(run, None, None))
                yield Placement("seam_edge", "bottom_edge", (left + r, near, 0.0), -1, stretch=(run, None, None))
            if x > 0:
                yield Placement("seam_edge", "bottom_edge", (left - r, near + r, 0.0))
                yield Placement("seam_edge", "bottom_edge", (left, near + r, 0.0), 2)
            if x > 0 and y > 0:
                yield Placement("center_corner", "bottom_center_corner", (left - r, near - r, 0.0))
                yield Placement("center_corner", "bottom_center_corner", (left - r, near, 0.0), -1)
                yield Placement("center_corner", "bottom_center_corner", (left, near, 0.0), 2)
                yield Placement("center_corner", "bottom_center_corner", (left, near - r, 0.0), 1)


def _walls(spec: GridSpec, wall_overlap: float) -> Iterator[Placement]:
    r = spec.corner_radius
    size_x = spec.container_size_x
    size_y = spec.container_size_y
    span_x = size_x - 2 * r
    span_y = size_y - 2 * r
    wall_height = spec.height - 2 * r + wall_overlap
    rim = spec.height - r
    along_y = (False, True, False)
    along_x = (True, False, False)

    yield Placement("wall", "side_wall_panel", (r, 0.0, r), stretch=(span_x, None, wall_height))
    yield Placement("wall", "side_wall_panel", (r, size_y, r), 2, stretch=(span_x, None, wall_height), anchor_max=along_y)
    yield Placement("rim", "side_top_edge", (r, 0.0, rim), stretch=(span_x, None, None))
    yield Placement("rim", "side_top_edge", (r, size_y, rim), 2, stretch=(span_x, None, None), anchor_max=along_y)

    yield Placement("wall", "side_wall_panel", (0.0, r, r), -1, stretch=(None, span_y, wall_height))
    yield Placement("wall", "side_wall_panel", (size_x, r, r), 1, stretch=(None, span_y, wall_height), anchor_max=along_x)
    yield Placement("rim", "side_top_edge", (0.0, r, rim), -1, stretch=(None, span_y, None))
    yield Placement("rim", "side_top_edge", (size_x, r, rim), 1, stretch=(None, span_y, None), anchor_max=along_x)


def plan_placements(
    spec: GridSpec,
    extents: Extents | None = None,
    wall_overlap: float = 0.0,
) -> list[Placement]:
    """Build the placement table for ``spec``.

    ``extents`` maps subpart names to their local sizes; without it the table
    uses the nominal corner radius for the corner height and skips run-length
    corrections, which is enough for counting pieces.
    """

    if spec.columns < 1 or spec.rows < 1:
        return []
    corner_height = spec.corner_radius if extents is None else float(extents["bottom_outer_corner"][2])
    plan: list[Placement] = []
    plan.extend(_outer_corners(spec, corner_height))
    plan.extend(_near_far_edges(spec))
    plan.extend(_left_right_edges(spec, extents))
    plan.extend(_interior(spec, extents))
    plan.extend(_walls(spec, wall_overlap))
    return plan


def count_roles(plan: Sequence[Placement]) -> Counter:
    return Counter(placement.role for placement in plan)


def merge_pieces(
    pieces: Sequence[Mesh],
    union_all: bool = False,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    if not pieces:
        raise EmptyAssemblyError("No pieces to merge.")
    if union_all:
        return boolean_union(pieces, backend=backend, tolerances=tolerances)
    return weld_vertices(combine_meshes(pieces), tolerances.merge_tolerance)


def reassemble(
    subparts: SubpartSet,
    spec: GridSpec,
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    backend: BooleanBackend = "manifold",
) -> Mesh:
    for name, part in subparts.items():
        validate_mesh(part, f"reassembly input {name}")
    if spec.divider_thickness:
        logger.info("divider thickness %.3f ignored: divider panels are not generated", spec.divider_thickness)

    extents = {name: subparts.extent(name) for name in subparts}
    plan = plan_placements(spec, extents, tolerances.overlap_thickness)
    if not plan:
        raise EmptyAssemblyError(f"Reassembly of a {spec.columns}x{spec.rows} grid produced no pieces.")
    logger.info(
        "reassembling %dx%d container (%.3f x %.3f x %.3f): %d pieces %s",
        spec.columns,
        spec.rows,
        spec.container_size_x,
        spec.container_size_y,
        spec.height,
        len(plan),
        dict(count_roles(plan)),
    )

    pieces = [place(subparts, placement) for placement in plan]
    merged = merge_pieces(pieces, spec.union_all, tolerances, backend)
    repaired = repair_mesh(merged, tolerances)
    report_non_manifold(repaired, "reassembly output")
    return validate_mesh(repaired, "reassembly output")
