"""Geometry endpoints: decode uploaded or stored PLY files."""

import logging
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from app.config import settings
from app.schemas import DecodeResult, HeaderResponse
from app.services.decoder import decode_in_background
from pipeline.ply_decoder import read_ply_header
from utils.ply_io import PlyFileTooLarge, read_ply_bytes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/geometry", tags=["geometry"])


async def _read_upload(file: UploadFile) -> bytes:
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {settings.max_upload_size_mb} MB limit",
        )
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    return data


def _resolve_stored(filename: str) -> Path:
    ply_dir = settings.ply_dir.resolve()
    path = (ply_dir / filename).resolve()
    if path.parent != ply_dir:
        raise HTTPException(status_code=400, detail="Invalid file name")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="PLY file not found")
    return path


@router.post("/decode", response_model=DecodeResult)
async def decode_upload(file: UploadFile = File(...), geometry: bool = True):
    """Decode an uploaded PLY file.

    Decode failures come back as ``status="failure"``, not as HTTP errors.
    """
    data = await _read_upload(file)
    logger.info("Decoding upload %s (%d bytes)", file.filename, len(data))
    return await decode_in_background(data, include_geometry=geometry)


@router.post("/header", response_model=HeaderResponse)
async def read_upload_header(file: UploadFile = File(...)):
    data = await _read_upload(file)
    return HeaderResponse.from_header(read_ply_header(data))


@router.get("/files/{filename}", response_model=DecodeResult)
async def decode_stored(filename: str, geometry: bool = True):
    """Decode a PLY file from the data directory."""
    path = _resolve_stored(filename)
    try:
        data = read_ply_bytes(path, settings.max_upload_bytes)
    except PlyFileTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    return await decode_in_background(data, include_geometry=geometry)
