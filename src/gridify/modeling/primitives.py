from __future__ import annotations

from typing import Sequence

import numpy as np

from gridify.mesh import Mesh

_BOX_FACES = np.array(
    [
        [0, 2, 1], [0, 3, 2],  # z min
        [4, 5, 6], [4, 6, 7],  # z max
        [0, 1, 5], [0, 5, 4],  # y min
        [3, 7, 6], [3, 6, 2],  # y max
        [0, 4, 7], [0, 7, 3],  # x min
        [1, 2, 6], [1, 6, 5],  # x max
    ],
    dtype=np.int64,
)


def make_box(minimum: Sequence[float], maximum: Sequence[float]) -> Mesh:
    """Closed, outward-facing axis-aligned box spanning ``minimum``..``maximum``."""

    lo = np.asarray(minimum, dtype=float).reshape(3)
    hi = np.asarray(maximum, dtype=float).reshape(3)
    if np.any(hi <= lo):
        raise ValueError(f"Box maximum {tuple(hi)} must exceed minimum {tuple(lo)} on every axis.")
    x0, y0, z0 = lo
    x1, y1, z1 = hi
    vertices = np.array(
        [
            [x0, y0, z0],
            [x1, y0, z0],
            [x1, y1, z0],
            [x0, y1, z0],
            [x0, y0, z1],
            [x1, y0, z1],
            [x1, y1, z1],
            [x0, y1, z1],
        ],
        dtype=float,
    )
    return Mesh(vertices=vertices, faces=_BOX_FACES)


def make_cutter_box(
    minimum: Sequence[float],
    maximum: Sequence[float],
    overlap: float,
) -> Mesh:
    """Box grown by ``overlap / 2`` on every side so cut planes never sit on a coplanar face."""

    pad = overlap / 2.0
    lo = np.asarray(minimum, dtype=float).reshape(3) - pad
    hi = np.asarray(maximum, dtype=float).reshape(3) + pad
    return make_box(lo, hi)
