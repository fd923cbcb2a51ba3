"""Geometry buffer assembled from decoded PLY records.

Maps vertex properties onto position / normal / uv / color roles by name and
turns face index lists into a flat triangle list. Quads are fan-triangulated
as (0, 1, 3), (1, 2, 3).
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from pipeline.ply_types import ElementDescriptor, ElementRecord

logger = logging.getLogger(__name__)

# Accepted property names per attribute role, in preference order
POSITION_ALIASES = {
    "x": ("x", "px", "posx"),
    "y": ("y", "py", "posy"),
    "z": ("z", "pz", "posz"),
}
NORMAL_ALIASES = {
    "nx": ("nx", "normalx"),
    "ny": ("ny", "normaly"),
    "nz": ("nz", "normalz"),
}
UV_ALIASES = {
    "s": ("s", "u", "texture_u", "tx"),
    "t": ("t", "v", "texture_v", "ty"),
}
COLOR_ALIASES = {
    "r": ("red", "diffuse_red", "r", "diffuse_r"),
    "g": ("green", "diffuse_green", "g", "diffuse_g"),
    "b": ("blue", "diffuse_blue", "b", "diffuse_b"),
}
FACE_INDEX_NAMES = ("vertex_indices", "vertex_index")


def _find_name(names: set[str], aliases: tuple[str, ...]) -> str | None:
    for alias in aliases:
        if alias in names:
            return alias
    return None


def _resolve_group(names: set[str], group: dict[str, tuple[str, ...]]) -> tuple[str, ...] | None:
    """Resolve every role in a group, or None if any role is missing."""
    resolved = tuple(_find_name(names, aliases) for aliases in group.values())
    if any(name is None for name in resolved):
        return None
    return resolved


@dataclass(frozen=True)
class AttributeMap:
    """Property names playing each vertex attribute role for one element."""
    position: tuple[str, str, str] = ("x", "y", "z")
    normal: tuple[str, str, str] | None = None
    uv: tuple[str, str] | None = None
    color: tuple[str, str, str] | None = None

    @classmethod
    def from_properties(cls, property_names: list[str]) -> "AttributeMap":
        names = set(property_names)
        position = tuple(
            _find_name(names, aliases) or role for role, aliases in POSITION_ALIASES.items()
        )
        return cls(
            position=position,
            normal=_resolve_group(names, NORMAL_ALIASES),
            uv=_resolve_group(names, UV_ALIASES),
            color=_resolve_group(names, COLOR_ALIASES),
        )


# ---------------------------------------------------------------------------
# Output buffer
# ---------------------------------------------------------------------------

@dataclass
class GeometryBuffer:
    """Flat attribute arrays ready for upload as GPU buffers.

    Strides: vertices/normals/colors 3, uvs 2, indices 3 (triangle list),
    face_vertex_uvs 2 per triangle vertex. Optional arrays are empty when the
    source has no such attribute.
    """
    vertices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    normals: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    colors: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    uvs: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))
    face_vertex_uvs: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // 3

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def is_empty(self) -> bool:
        return self.vertex_count == 0 and self.triangle_count == 0

    def positions(self) -> np.ndarray:
        """Vertices as an (N, 3) view."""
        return self.vertices.reshape(-1, 3)

    def to_dict(self) -> dict[str, list]:
        return {
            "vertices": self.vertices.tolist(),
            "normals": self.normals.tolist(),
            "colors": self.colors.tolist(),
            "uvs": self.uvs.tolist(),
            "indices": self.indices.tolist(),
            "face_vertex_uvs": self.face_vertex_uvs.tolist(),
        }


class GeometryBufferBuilder:
    """Accumulates records one at a time, in decode order.

    ``vertex_limit`` is the declared vertex count; faces referencing an index
    outside ``[0, vertex_limit)`` are skipped.
    """

    def __init__(self, vertex_limit: int | None = None):
        self.vertex_limit = vertex_limit
        self.vertices: list[float] = []
        self.normals: list[float] = []
        self.colors: list[float] = []
        self.uvs: list[float] = []
        self.indices: list[int] = []
        self.face_vertex_uvs: list[float] = []
        self.skipped_faces = 0
        self._attribute_maps: dict[int, AttributeMap] = {}

    def attribute_map(self, element: ElementDescriptor) -> AttributeMap:
        key = id(element)
        attrs = self._attribute_maps.get(key)
        if attrs is None:
            attrs = AttributeMap.from_properties(element.property_names)
            self._attribute_maps[key] = attrs
        return attrs

    def add(self, element: ElementDescriptor, record: ElementRecord) -> None:
        if element.name == "vertex":
            self.add_vertex(record, self.attribute_map(element))
        elif element.name == "face":
            self.add_face(record)

    def add_vertex(self, record: ElementRecord, attrs: AttributeMap) -> None:
        self.vertices.extend(float(record.get(name, 0.0)) for name in attrs.position)

        if attrs.normal is not None:
            self.normals.extend(float(record[name]) for name in attrs.normal)
        if attrs.uv is not None:
            self.uvs.extend(float(record[name]) for name in attrs.uv)
        if attrs.color is not None:
            self.colors.extend(record[name] / 255.0 for name in attrs.color)

    def add_face(self, record: ElementRecord) -> None:
        face = None
        for name in FACE_INDEX_NAMES:
            if name in record:
                face = record[name]
                break

        if not isinstance(face, list) or len(face) not in (3, 4):
            self._skip_face("needs a 3 or 4 entry index list")
            return

        try:
            face = [int(i) for i in face]
        except (ValueError, OverflowError):
            self._skip_face("non-finite vertex index")
            return
        if self.vertex_limit is not None and any(i < 0 or i >= self.vertex_limit for i in face):
            self._skip_face(f"index out of range for {self.vertex_limit} vertices")
            return

        if len(face) == 3:
            self.indices.extend(face)
            texcoord = record.get("texcoord")
            if isinstance(texcoord, list) and len(texcoord) == 6:
                self.face_vertex_uvs.extend(float(v) for v in texcoord)
        else:
            a, b, c, d = face
            self.indices.extend((a, b, d, b, c, d))

    def _skip_face(self, reason: str) -> None:
        self.skipped_faces += 1
        logger.debug("Skipping PLY face: %s", reason)

    def build(self) -> GeometryBuffer:
        if self.skipped_faces:
            logger.info("Skipped %d malformed PLY faces", self.skipped_faces)
        return GeometryBuffer(
            vertices=np.asarray(self.vertices, dtype=np.float32),
            normals=np.asarray(self.normals, dtype=np.float32),
            colors=np.asarray(self.colors, dtype=np.float32),
            uvs=np.asarray(self.uvs, dtype=np.float32),
            indices=np.asarray(self.indices, dtype=np.uint32),
            face_vertex_uvs=np.asarray(self.face_vertex_uvs, dtype=np.float32),
        )
