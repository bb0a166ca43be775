"""Modeling utilities: cutter boxes, transforms and boolean helpers."""

from __future__ import annotations

from .transform import mirror, normalize_to_origin, rotate_z, scale, stretch, translate
from .primitives import make_box, make_cutter_box
from .csg import BACKENDS, boolean_intersection, boolean_union

__all__ = [
    "make_box",
    "make_cutter_box",
    "boolean_intersection",
    "boolean_union",
    "BACKENDS",
    "mirror",
    "normalize_to_origin",
    "rotate_z",
    "scale",
    "stretch",
    "translate",
]
