from typing import Literal

from pydantic import BaseModel

from pipeline.geometry_buffer import GeometryBuffer
from pipeline.ply_types import HeaderDescriptor, ListProperty


# --- Header ---


class PropertyInfo(BaseModel):
    name: str
    type: str  # numeric type, or "list"
    count_type: str | None = None
    item_type: str | None = None


class ElementInfo(BaseModel):
    name: str
    count: int
    properties: list[PropertyInfo]


class HeaderResponse(BaseModel):
    format: str | None = None
    version: str = ""
    comments: list[str] = []
    obj_info: str = ""
    header_length: int
    elements: list[ElementInfo]

    @classmethod
    def from_header(cls, header: HeaderDescriptor) -> "HeaderResponse":
        elements = []
        for element in header.elements:
            props = []
            for prop in element.properties:
                if isinstance(prop, ListProperty):
                    props.append(PropertyInfo(
                        name=prop.name,
                        type="list",
                        count_type=prop.count_type.type_name,
                        item_type=prop.item_type.type_name,
                    ))
                else:
                    props.append(PropertyInfo(name=prop.name, type=prop.numeric_type.type_name))
            elements.append(ElementInfo(name=element.name, count=element.count, properties=props))
        return cls(
            format=header.format.value if header.format else None,
            version=header.version,
            comments=header.comments,
            obj_info=header.obj_info,
            header_length=header.header_length,
            elements=elements,
        )


# --- Geometry ---


class GeometryPayload(BaseModel):
    vertices: list[float]
    normals: list[float] = []
    colors: list[float] = []
    uvs: list[float] = []
    indices: list[int] = []
    face_vertex_uvs: list[float] = []

    @classmethod
    def from_buffer(cls, geometry: GeometryBuffer) -> "GeometryPayload":
        return cls(**geometry.to_dict())


class DecodeResult(BaseModel):
    """Outcome of one background decode: a status tag plus the payload."""
    status: Literal["success", "failure"]
    error: str | None = None
    vertex_count: int = 0
    triangle_count: int = 0
    duration_sec: float = 0.0
    geometry: GeometryPayload | None = None
