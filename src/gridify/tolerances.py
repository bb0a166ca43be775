from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Tolerances:
    """Fixed margins used when cutting, welding and culling geometry (mm)."""

    overlap_thickness: float = 0.01
    merge_tolerance: float = 0.001
    min_triangle_area: float = 0.001
    max_repair_passes: int = 16

    def __post_init__(self) -> None:
        if self.overlap_thickness < 0:
            raise ValueError("overlap_thickness must be >= 0.")
        if self.merge_tolerance <= 0:
            raise ValueError("merge_tolerance must be positive.")
        if self.min_triangle_area < 0:
            raise ValueError("min_triangle_area must be >= 0.")
        if self.max_repair_passes < 1:
            raise ValueError("max_repair_passes must be at least 1.")


DEFAULT_TOLERANCES = Tolerances()

