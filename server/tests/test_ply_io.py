"""Tests for utils.ply_io: reading PLY files from disk."""

import numpy as np
import pytest


def _make_ply(path, n: int = 10):
    """Write a synthetic binary point cloud with plyfile."""
    from plyfile import PlyData, PlyElement

    data = np.zeros(n, dtype=[("x", "f4"), ("y", "f4"), ("z", "f4")])
    data["x"] = np.linspace(-5, 5, n).astype(np.float32)
    data["z"] = np.ones(n, dtype=np.float32)
    PlyData([PlyElement.describe(data, "vertex")], text=False).write(str(path))
    return data


def test_load_ply(tmp_path):
    from utils.ply_io import load_ply
    path = tmp_path / "cloud.ply"
    data = _make_ply(path, n=25)
    geometry = load_ply(path)
    assert geometry.vertex_count == 25
    np.testing.assert_array_equal(geometry.positions()[:, 0], data["x"])


def test_read_ply_positions(tmp_path):
    from utils.ply_io import read_ply_positions
    path = tmp_path / "cloud.ply"
    _make_ply(path, n=4)
    positions = read_ply_positions(path)
    assert positions.shape == (4, 3)
    assert positions.dtype == np.float32
    assert positions[:, 2].tolist() == [1, 1, 1, 1]


def test_load_ply_header(tmp_path):
    from utils.ply_io import load_ply_header
    path = tmp_path / "cloud.ply"
    _make_ply(path, n=6)
    header = load_ply_header(path)
    assert header.count("vertex") == 6
    assert header.elements[0].property_names == ["x", "y", "z"]


def test_size_limit(tmp_path):
    from pipeline.ply_types import PlyDecodeError
    from utils.ply_io import PlyFileTooLarge, read_ply_bytes
    path = tmp_path / "cloud.ply"
    _make_ply(path, n=100)
    with pytest.raises(PlyFileTooLarge):
        read_ply_bytes(path, max_bytes=64)
    # Size failures are decode failures for callers
    assert issubclass(PlyFileTooLarge, PlyDecodeError)
    assert len(read_ply_bytes(path, max_bytes=10_000)) == path.stat().st_size
