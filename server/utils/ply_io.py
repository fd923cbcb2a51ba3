"""Read PLY files from disk into geometry buffers."""

from pathlib import Path

import numpy as np

from pipeline.geometry_buffer import GeometryBuffer
from pipeline.ply_decoder import decode_ply, read_ply_header
from pipeline.ply_types import HeaderDescriptor, PlyDecodeError


class PlyFileTooLarge(PlyDecodeError):
    """File exceeds the configured size limit."""


def read_ply_bytes(path: Path, max_bytes: int | None = None) -> bytes:
    """Read a whole PLY file.

    Raises PlyFileTooLarge if the file is bigger than ``max_bytes``.
    """
    path = Path(path)
    size = path.stat().st_size
    if max_bytes is not None and size > max_bytes:
        raise PlyFileTooLarge(f"{path.name} is {size} bytes, limit is {max_bytes}")
    return path.read_bytes()


def load_ply(path: Path, max_bytes: int | None = None) -> GeometryBuffer:
    return decode_ply(read_ply_bytes(path, max_bytes))


def load_ply_header(path: Path) -> HeaderDescriptor:
    return read_ply_header(read_ply_bytes(path))


def read_ply_positions(path: Path) -> np.ndarray:
    """Read just the XYZ positions from a PLY file.

    Returns an (N, 3) float32 array.
    """
    return load_ply(path).positions()
