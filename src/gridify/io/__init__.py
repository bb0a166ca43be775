"""STL interchange."""

from __future__ import annotations

from .stl import decode_stl, encode_stl, read_stl, write_stl

__all__ = ["decode_stl", "encode_stl", "read_stl", "write_stl"]
