from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from gridify.decompose import decompose_cell
from gridify.errors import InvalidGridSizeError
from gridify.extract import check_input_grids, extract_cell, recut_to_bounds
from gridify.io.stl import decode_stl, encode_stl, write_stl
from gridify.mesh import Mesh
from gridify.modeling.csg import BooleanBackend
from gridify.reassemble import GridSpec, reassemble
from gridify.tolerances import DEFAULT_TOLERANCES, Tolerances

logger = logging.getLogger(__name__)

ArtifactSink = Callable[[str, Mesh], None]


@dataclass(frozen=True)
class GridifyOptions:
    """Parameters for one run.

    ``input_grids`` is the ``(n, m)`` cell count of the source container and
    ``output_grids`` the ``(columns, rows)`` count of the result, X first.
    """

    input_grids: tuple[int, int]
    input_corner_radius: float
    height: float
    output_grids: tuple[int, int]
    output_grid_size: Optional[float] = None
    divider_thickness: float = 0.0
    union_all: bool = False
    debug: bool = False
    backend: BooleanBackend = "manifold"
    tolerances: Tolerances = DEFAULT_TOLERANCES

    def validate(self) -> None:
        check_input_grids(self.input_grids)
        columns, rows = self.output_grids
        if columns < 1 or rows < 1:
            raise InvalidGridSizeError(f"Output grid must be at least 1x1, got {columns}x{rows}.")
        if self.input_corner_radius <= 0:
            raise ValueError("input_corner_radius must be positive.")
        if self.height <= 0:
            raise ValueError("height must be positive.")
        if self.output_grid_size is not None and self.output_grid_size <= 0:
            raise ValueError("output_grid_size must be positive.")


class DirectoryArtifactSink:
    """Write each debug artifact to ``<directory>/<name>.stl``."""

    def __init__(self, directory: Path, ascii: bool = False) -> None:
        self.directory = Path(directory)
        self.ascii = ascii

    def __call__(self, name: str, mesh: Mesh) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"{name}.stl"
        write_stl(mesh, path, ascii=self.ascii)
        logger.debug("wrote artifact %s", path)


def gridify_mesh(
    solid: Mesh,
    options: GridifyOptions,
    sink: ArtifactSink | None = None,
) -> Mesh:
    """Run extraction, decomposition and reassembly over an already decoded solid."""

    options.validate()
    emit = sink if options.debug and sink is not None else None
    tolerances = options.tolerances

    if emit is not None:
        solid = recut_to_bounds(solid, tolerances, options.backend)
        emit("base", solid)

    cell = extract_cell(solid, options.input_grids, tolerances, options.backend)
    radius = options.input_corner_radius
    if options.output_grid_size is not None:
        factor = options.output_grid_size / cell.size_x
        logger.info("scaling cell by %.4f to a %.3f grid", factor, options.output_grid_size)
        cell = cell.scaled(factor)
        radius *= factor
    if emit is not None:
        emit("cell", cell.mesh)

    subparts = decompose_cell(cell, radius, tolerances, options.backend)
    if emit is not None:
        for name, part in subparts.items():
            emit(name, part)

    columns, rows = options.output_grids
    spec = GridSpec(
        columns=columns,
        rows=rows,
        cell_size_x=cell.size_x,
        cell_size_y=cell.size_y,
        height=options.height,
        corner_radius=radius,
        divider_thickness=options.divider_thickness,
        union_all=options.union_all,
    )
    merged = reassemble(subparts, spec, tolerances, options.backend)
    if emit is not None:
        emit("merged", merged)
    return merged


def generate(data: bytes, options: GridifyOptions, sink: ArtifactSink | None = None) -> bytes:
    """Turn STL bytes of an ``n x m`` container into binary STL bytes of the requested grid."""

    options.validate()
    solid = decode_stl(data)
    logger.info("loaded solid: %d triangles", solid.n_faces)
    merged = gridify_mesh(solid, options, sink)
    logger.info("exporting %d vertices, %d triangles", merged.n_vertices, merged.n_faces)
    return encode_stl(merged)


async def generate_async(data: bytes, options: GridifyOptions, sink: ArtifactSink | None = None) -> bytes:
    """Run :func:`generate` in a worker thread so the caller's event loop stays responsive."""

    return await asyncio.to_thread(generate, data, options, sink)
