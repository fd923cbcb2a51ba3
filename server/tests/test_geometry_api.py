"""Tests for the geometry API endpoints using httpx against the ASGI app."""

import struct

import pytest
from httpx import AsyncClient, ASGITransport


ASCII_PLY = (
    b"ply\nformat ascii 1.0\n"
    b"element vertex 3\nproperty float x\nproperty float y\nproperty float z\n"
    b"property uchar red\nproperty uchar green\nproperty uchar blue\n"
    b"element face 1\nproperty list uchar int vertex_indices\n"
    b"end_header\n"
    b"0 0 0 255 0 0\n1 0 0 0 255 0\n0 1 0 0 0 255\n"
    b"3 0 1 2\n"
)

BINARY_HEADER = (
    b"ply\nformat binary_little_endian 1.0\n"
    b"element vertex 2\nproperty float x\nproperty float y\nproperty float z\n"
    b"end_header\n"
)


@pytest.fixture
async def client():
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def _upload(data: bytes, name: str = "scan.ply"):
    return {"file": (name, data, "application/octet-stream")}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_decode_ascii_upload(client):
    resp = await client.post("/api/geometry/decode", files=_upload(ASCII_PLY))
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "success"
    assert data["error"] is None
    assert data["vertex_count"] == 3
    assert data["triangle_count"] == 1
    assert data["geometry"]["vertices"] == [0, 0, 0, 1, 0, 0, 0, 1, 0]
    assert data["geometry"]["colors"] == [1, 0, 0, 0, 1, 0, 0, 0, 1]
    assert data["geometry"]["indices"] == [0, 1, 2]


@pytest.mark.asyncio
async def test_decode_without_geometry(client):
    resp = await client.post("/api/geometry/decode?geometry=false", files=_upload(ASCII_PLY))
    data = resp.json()
    assert data["status"] == "success"
    assert data["vertex_count"] == 3
    assert data["geometry"] is None


@pytest.mark.asyncio
async def test_decode_truncated_binary_reports_failure(client):
    body = struct.pack("<4f", 1, 2, 3, 4)  # second vertex is short
    resp = await client.post("/api/geometry/decode", files=_upload(BINARY_HEADER + body))
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "failure"
    assert "offset" in data["error"]
    assert data["geometry"] is None


@pytest.mark.asyncio
async def test_decode_garbage_is_empty_success(client):
    resp = await client.post("/api/geometry/decode", files=_upload(b"not a ply file at all"))
    data = resp.json()
    assert data["status"] == "success"
    assert data["vertex_count"] == 0


@pytest.mark.asyncio
async def test_empty_upload_rejected(client):
    resp = await client.post("/api/geometry/decode", files=_upload(b""))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_upload_size_limit(client, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "max_upload_size_mb", 0)
    resp = await client.post("/api/geometry/decode", files=_upload(ASCII_PLY))
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_header_endpoint(client):
    resp = await client.post("/api/geometry/header", files=_upload(ASCII_PLY))
    assert resp.status_code == 200
    data = resp.json()
    assert data["format"] == "ascii"
    assert data["header_length"] == ASCII_PLY.index(b"end_header\n") + len(b"end_header\n")
    vertex, face = data["elements"]
    assert vertex["count"] == 3
    assert [p["name"] for p in vertex["properties"]] == ["x", "y", "z", "red", "green", "blue"]
    assert face["properties"][0] == {
        "name": "vertex_indices", "type": "list", "count_type": "uint8", "item_type": "int32",
    }


@pytest.mark.asyncio
async def test_decode_stored_file(client, tmp_path, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    (tmp_path / "ply").mkdir()
    (tmp_path / "ply" / "room.ply").write_bytes(ASCII_PLY)

    resp = await client.get("/api/geometry/files/room.ply")
    assert resp.status_code == 200
    assert resp.json()["vertex_count"] == 3

    resp = await client.get("/api/geometry/files/missing.ply")
    assert resp.status_code == 404

    resp = await client.get("/api/geometry/files/..")
    assert resp.status_code in (400, 404)
