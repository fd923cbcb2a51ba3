"""Run PLY decodes off the event loop.

Each request gets exactly one decode on the thread pool. A decode cannot be
cancelled once started; callers that lose interest just drop the result.
"""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from app.config import settings
from app.schemas import DecodeResult, GeometryPayload
from pipeline.ply_decoder import PlyInput, decode_ply
from pipeline.ply_types import PlyDecodeError

logger = logging.getLogger(__name__)

# Thread pool for CPU-bound decodes
_executor = ThreadPoolExecutor(max_workers=settings.decode_workers)


async def decode_in_background(data: PlyInput, include_geometry: bool = True) -> DecodeResult:
    """Decode on the worker pool and report success or failure.

    PlyDecodeError is turned into a ``failure`` result; anything else is a
    bug and propagates.
    """
    loop = asyncio.get_running_loop()
    t0 = time.time()
    try:
        geometry = await loop.run_in_executor(_executor, decode_ply, data)
    except PlyDecodeError as e:
        logger.error("PLY decode failed: %s", e)
        return DecodeResult(status="failure", error=str(e), duration_sec=round(time.time() - t0, 3))

    return DecodeResult(
        status="success",
        vertex_count=geometry.vertex_count,
        triangle_count=geometry.triangle_count,
        duration_sec=round(time.time() - t0, 3),
        geometry=GeometryPayload.from_buffer(geometry) if include_geometry else None,
    )
