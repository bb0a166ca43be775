"""Gridify: resize grid storage containers while keeping their styling."""

from __future__ import annotations

from .errors import (
    BooleanOperationFailure,
    DegenerateGeometryError,
    EmptyAssemblyError,
    GridifyError,
    InvalidGridSizeError,
    MeshValidationError,
    StlFormatError,
)
from .mesh import Mesh
from .pipeline import DirectoryArtifactSink, GridifyOptions, generate, generate_async, gridify_mesh
from .tolerances import DEFAULT_TOLERANCES, Tolerances

__all__ = [
    "__version__",
    "BooleanOperationFailure",
    "DegenerateGeometryError",
    "EmptyAssemblyError",
    "GridifyError",
    "InvalidGridSizeError",
    "MeshValidationError",
    "StlFormatError",
    "Mesh",
    "DirectoryArtifactSink",
    "GridifyOptions",
    "generate",
    "generate_async",
    "gridify_mesh",
    "DEFAULT_TOLERANCES",
    "Tolerances",
]

__version__ = "0.1.0"
