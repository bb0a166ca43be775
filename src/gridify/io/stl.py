"""Binary and ASCII STL codecs.

Decoding always yields a triangle soup (three fresh vertices per facet);
welding is left to the pipeline so tolerances stay configurable.
"""

from __future__ import annotations

from pathlib import Path
import re
import struct

import numpy as np

from gridify.errors import StlFormatError
from gridify.mesh import Mesh, face_normals

_HEADER = b"Gridify STL".ljust(80, b"\0")
_RECORD = np.dtype(
    [
        ("normal", "<f4", (3,)),
        ("corners", "<f4", (3, 3)),
        ("attribute", "<u2"),
    ]
)
_VERTEX_LINE = re.compile(rb"vertex\s+(\S+)\s+(\S+)\s+(\S+)")
_FACET = "  facet normal {0:.6e} {1:.6e} {2:.6e}\n    outer loop\n{3}    endloop\n  endfacet\n"
_CORNER = "      vertex {0:.6e} {1:.6e} {2:.6e}\n"


def _is_binary(data: bytes) -> bool:
    if len(data) < 84:
        return False
    (count,) = struct.unpack_from("<I", data, 80)
    return len(data) == 84 + count * _RECORD.itemsize


def _decode_ascii(data: bytes) -> Mesh:
    if not data[:512].lstrip().lower().startswith(b"solid"):
        raise StlFormatError("Buffer is neither binary STL nor ASCII STL.")
    values = _VERTEX_LINE.findall(data)
    if not values and b"facet" in data:
        raise StlFormatError("ASCII STL contains facets without vertices.")
    try:
        positions = np.array(values, dtype=float).reshape(-1)
    except ValueError as exc:
        raise StlFormatError(f"ASCII STL has an unreadable vertex: {exc}") from exc
    if positions.size % 9:
        raise StlFormatError("ASCII STL facet does not have exactly three vertices.")
    return Mesh.from_soup(positions)


def decode_stl(data: bytes) -> Mesh:
    """Parse binary or ASCII STL. Binary wins when the size matches the facet count."""

    data = bytes(data)
    if not _is_binary(data):
        return _decode_ascii(data)
    records = np.frombuffer(data, dtype=_RECORD, offset=84)
    return Mesh.from_soup(records["corners"].astype(float))


def read_stl(path: Path) -> Mesh:
    return decode_stl(Path(path).read_bytes())


def encode_stl(mesh: Mesh, ascii: bool = False) -> bytes:
    normals = face_normals(mesh)
    corners = mesh.soup()

    if ascii:
        facets = (
            _FACET.format(*normal, "".join(_CORNER.format(*corner) for corner in triangle))
            for normal, triangle in zip(normals, corners)
        )
        return ("solid gridify\n" + "".join(facets) + "endsolid gridify\n").encode("ascii")

    records = np.zeros(mesh.n_faces, dtype=_RECORD)
    records["normal"] = normals
    records["corners"] = corners
    return _HEADER + struct.pack("<I", mesh.n_faces) + records.tobytes()


def write_stl(mesh: Mesh, path: Path, ascii: bool = False) -> None:
    Path(path).write_bytes(encode_stl(mesh, ascii=ascii))
