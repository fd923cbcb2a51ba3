"""Tests for app.schemas and app.config."""

import numpy as np
import pytest


class TestDecodeResult:
    def test_failure_defaults(self):
        from app.schemas import DecodeResult
        result = DecodeResult(status="failure", error="boom")
        assert result.geometry is None
        assert result.vertex_count == 0

    def test_rejects_unknown_status(self):
        from pydantic import ValidationError
        from app.schemas import DecodeResult
        with pytest.raises(ValidationError):
            DecodeResult(status="pending")

    def test_payload_from_buffer(self):
        from app.schemas import GeometryPayload
        from pipeline.geometry_buffer import GeometryBuffer
        geometry = GeometryBuffer(
            vertices=np.array([1, 2, 3], dtype=np.float32),
            colors=np.array([0.5, 0.5, 0.5], dtype=np.float32),
        )
        payload = GeometryPayload.from_buffer(geometry)
        assert payload.vertices == [1.0, 2.0, 3.0]
        assert payload.colors == [0.5, 0.5, 0.5]
        assert payload.indices == []
        assert set(payload.model_dump()) == {
            "vertices", "normals", "colors", "uvs", "indices", "face_vertex_uvs",
        }


class TestHeaderResponse:
    def test_from_header(self):
        from app.schemas import HeaderResponse
        from pipeline.ply_header import extract_header, parse_header

        text = (
            b"ply\nformat binary_big_endian 1.0\ncomment hi\n"
            b"element vertex 4\nproperty double x\n"
            b"element face 2\nproperty list ushort uint vertex_index\n"
            b"end_header\n"
        )
        resp = HeaderResponse.from_header(parse_header(*extract_header(text)))
        assert resp.format == "binary_big_endian"
        assert resp.comments == ["hi"]
        assert resp.header_length == len(text)
        assert resp.elements[0].properties[0].type == "float64"
        assert resp.elements[1].properties[0].count_type == "uint16"
        assert resp.elements[1].properties[0].item_type == "uint32"

    def test_unusable_header(self):
        from app.schemas import HeaderResponse
        from pipeline.ply_header import parse_header
        resp = HeaderResponse.from_header(parse_header("garbage"))
        assert resp.format is None
        assert resp.elements == []


class TestSettings:
    def test_defaults(self):
        from app.config import Settings
        cfg = Settings()
        assert cfg.max_upload_bytes == cfg.max_upload_size_mb * 1024 * 1024
        assert cfg.ply_dir == cfg.data_dir / "ply"
        assert cfg.decode_workers >= 1

    def test_env_prefix(self, monkeypatch):
        from app.config import Settings
        monkeypatch.setenv("PLYDECODE_MAX_UPLOAD_SIZE_MB", "7")
        monkeypatch.setenv("PLYDECODE_DECODE_WORKERS", "4")
        cfg = Settings()
        assert cfg.max_upload_size_mb == 7
        assert cfg.decode_workers == 4
