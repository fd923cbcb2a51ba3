"""Decode a complete PLY file held in memory into a GeometryBuffer.

Pipeline: extract header -> parse header -> decode body -> build buffer.
Each call is independent; nothing is cached between calls and the input is
never modified or retained.
"""

import logging
import time

from pipeline.geometry_buffer import GeometryBuffer, GeometryBufferBuilder
from pipeline.ply_body import read_body
from pipeline.ply_header import extract_header, parse_header
from pipeline.ply_types import HeaderDescriptor

logger = logging.getLogger(__name__)

PlyInput = bytes | bytearray | memoryview | str


def _as_bytes(data: PlyInput) -> bytes | bytearray | memoryview:
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


def read_ply_header(data: PlyInput) -> HeaderDescriptor:
    """Extract and parse only the header."""
    header_text, header_length = extract_header(_as_bytes(data))
    return parse_header(header_text, header_length)


def decode_ply(data: PlyInput) -> GeometryBuffer:
    """Decode PLY bytes (or the text of an ASCII PLY file).

    Malformed headers and truncated ASCII bodies produce a smaller (possibly
    empty) buffer. A binary body shorter than its header declares raises
    PlyDecodeError.
    """
    raw = _as_bytes(data)
    t0 = time.time()
    logger.info("Begin PLY decode (%d bytes)", len(raw))

    header = read_ply_header(raw)
    builder = GeometryBufferBuilder(vertex_limit=header.count("vertex"))
    for element, record in read_body(raw, header):
        builder.add(element, record)
    geometry = builder.build()

    logger.info(
        "Completed PLY decode: %s, %d vertices, %d triangles in %.2fs",
        header.format.value if header.format else "unknown format",
        geometry.vertex_count, geometry.triangle_count, time.time() - t0,
    )
    return geometry
