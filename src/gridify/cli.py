from __future__ import annotations

import logging
import pathlib
import re

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from gridify._config import get_user_settings
from gridify.errors import GridifyError
from gridify.io.stl import read_stl
from gridify.mesh import analyze_mesh
from gridify.modeling.csg import BACKENDS
from gridify.pipeline import DirectoryArtifactSink, GridifyOptions, generate
from gridify.repair import weld_vertices

console = Console()
app = typer.Typer(help="Resize grid storage containers while keeping their styling.")

_GRID_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def parse_grid_size(text: str, option: str = "grid") -> tuple[int, int]:
    """Parse ``NxM`` with N, M >= 1."""

    match = _GRID_PATTERN.match(text)
    if match is None:
        raise typer.BadParameter(f"Invalid grid size '{text}'. Expected NxM, e.g. 4x2.", param_hint=option)
    n, m = int(match.group(1)), int(match.group(2))
    if n < 1 or m < 1:
        raise typer.BadParameter(
            f"Invalid grid size '{text}'. N and M must be positive integers.", param_hint=option
        )
    return n, m


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command("generate")
def generate_command(
    input: pathlib.Path = typer.Option(..., "--input", "-i", help="STL of the source NxM container."),
    input_grids: str = typer.Option(..., "--input-grids", "-g", help="Cells in the source container, NxM."),
    input_corner_radius: float = typer.Option(
        ..., "--input-corner-radius", "-r", help="Corner radius in mm used for the cut planes."
    ),
    height: float = typer.Option(..., "--height", "-h", help="Container height in mm."),
    output_grids: str = typer.Option(..., "--output-grids", "-o", help="Cells in the result, NxM (X first)."),
    output_file: pathlib.Path = typer.Option(..., "--output-file", "-f", help="Where to write the binary STL."),
    output_grid_size: float | None = typer.Option(
        None, "--output-grid-size", "-s", help="Rescale the cell so its X side is this many mm."
    ),
    divider_thickness: float = typer.Option(
        0.0, "--divider-thickness", "-d", help="Divider thickness in mm (accepted, dividers are not generated)."
    ),
    union_all: bool = typer.Option(False, "--union-all", "-u", help="Boolean-union every piece into one shell."),
    debug_dir: pathlib.Path | None = typer.Option(
        None, "--debug-dir", help="Write intermediate meshes (cell, subparts, merged) to this directory."
    ),
    backend: str | None = typer.Option(None, "--backend", help=f"Boolean backend: {', '.join(BACKENDS)}."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline progress."),
) -> None:
    """
    Cut one cell out of the input container and re-tile it into the requested grid.
    """

    _configure_logging(verbose)
    source_grids = parse_grid_size(input_grids, "--input-grids")
    target_grids = parse_grid_size(output_grids, "--output-grids")
    if not input.exists():
        raise typer.BadParameter(f"Input path {input} does not exist.", param_hint="--input")

    settings = get_user_settings()
    chosen_backend = (backend or settings.backend).lower()
    if chosen_backend not in BACKENDS:
        raise typer.BadParameter(f"Unknown backend '{backend}'.", param_hint="--backend")

    options = GridifyOptions(
        input_grids=source_grids,
        input_corner_radius=input_corner_radius,
        height=height,
        output_grids=target_grids,
        output_grid_size=output_grid_size,
        divider_thickness=divider_thickness,
        union_all=union_all,
        debug=debug_dir is not None,
        backend=chosen_backend,
        tolerances=settings.tolerances,
    )
    sink = DirectoryArtifactSink(debug_dir) if debug_dir is not None else None

    console.print(f"Loading [green]{input}[/green]")
    try:
        payload = generate(input.read_bytes(), options, sink)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(payload)
    except (GridifyError, ValueError, OSError) as exc:
        console.print(Panel.fit(str(exc), title=type(exc).__name__, style="red"))
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"Wrote {target_grids[0]}x{target_grids[1]} container to [green]{output_file}[/green].",
            title="Export complete",
            border_style="green",
        )
    )


@app.command()
def inspect(
    path: pathlib.Path = typer.Argument(..., help="STL file to check."),
) -> None:
    """
    Report vertex/face counts, bounds and edges not shared by exactly two triangles.
    """

    try:
        mesh = weld_vertices(read_stl(path))
    except (GridifyError, OSError) as exc:
        console.print(Panel.fit(str(exc), title=type(exc).__name__, style="red"))
        raise typer.Exit(code=1) from exc

    analysis = analyze_mesh(mesh)
    table = Table(title=str(path))
    table.add_column("metric")
    table.add_column("value", justify="right")
    table.add_row("vertices", str(analysis.n_vertices))
    table.add_row("triangles", str(analysis.n_faces))
    xmin, xmax, ymin, ymax, zmin, zmax = mesh.bounds
    table.add_row("size", f"{xmax - xmin:.3f} x {ymax - ymin:.3f} x {zmax - zmin:.3f}")
    table.add_row("boundary edges", str(analysis.boundary_edges))
    table.add_row("non-manifold edges", str(analysis.nonmanifold_edges))
    console.print(table)
    for issue in analysis.issues():
        console.print(f"[yellow]{issue}[/yellow]")
