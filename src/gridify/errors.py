from __future__ import annotations


class GridifyError(RuntimeError):
    """Base class for failures raised by the gridify pipeline."""


class InvalidGridSizeError(GridifyError, ValueError):
    """Raised when a grid size is too small or cannot be parsed."""


class DegenerateGeometryError(GridifyError):
    """Raised when an intermediate mesh has no vertices or unusable extents."""


class EmptyAssemblyError(GridifyError):
    """Raised when reassembly produced no pieces to merge."""


class BooleanOperationFailure(GridifyError):
    """Raised when the boolean engine returns no result geometry."""


class MeshValidationError(GridifyError):
    """Raised when a checkpoint finds NaN positions or an invalid bounding sphere."""


class StlFormatError(GridifyError, ValueError):
    """Raised when a buffer is neither binary nor ASCII STL."""


__all__ = [
    "GridifyError",
    "InvalidGridSizeError",
    "DegenerateGeometryError",
    "EmptyAssemblyError",
    "BooleanOperationFailure",
    "MeshValidationError",
    "StlFormatError",
]
