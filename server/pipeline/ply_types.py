"""PLY header data types and the numeric type table shared by the decoders."""

import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class PlyError(Exception):
    """Base class for PLY decoding errors."""


class PlyDecodeError(PlyError):
    """Body could not be decoded (e.g. a binary read ran past the end of the buffer)."""


class PlyFormat(str, Enum):
    ASCII = "ascii"
    BINARY_LITTLE_ENDIAN = "binary_little_endian"
    BINARY_BIG_ENDIAN = "binary_big_endian"

    @property
    def is_binary(self) -> bool:
        return self is not PlyFormat.ASCII

    @property
    def byte_order(self) -> str:
        """struct byte-order prefix for this format."""
        return ">" if self is PlyFormat.BINARY_BIG_ENDIAN else "<"


def _parse_ascii_int(token: str | bytes) -> int:
    # Truncating parse: "3.7" -> 3, "1e3" -> 1000
    try:
        return int(token)
    except ValueError:
        return int(float(token))


# ---------------------------------------------------------------------------
# Numeric types
# ---------------------------------------------------------------------------

class NumericType(Enum):
    """The fixed set of PLY scalar types.

    Each member's value is (byte width, struct format char, ASCII parser).
    """

    INT8 = (1, "b", _parse_ascii_int)
    UINT8 = (1, "B", _parse_ascii_int)
    INT16 = (2, "h", _parse_ascii_int)
    UINT16 = (2, "H", _parse_ascii_int)
    INT32 = (4, "i", _parse_ascii_int)
    UINT32 = (4, "I", _parse_ascii_int)
    FLOAT32 = (4, "f", float)
    FLOAT64 = (8, "d", float)

    @property
    def size(self) -> int:
        return self.value[0]

    @property
    def struct_char(self) -> str:
        return self.value[1]

    @property
    def parse_ascii(self) -> Callable[[str | bytes], int | float]:
        return self.value[2]

    @property
    def type_name(self) -> str:
        return self.name.lower()

    @property
    def is_float(self) -> bool:
        return self in (NumericType.FLOAT32, NumericType.FLOAT64)

    def struct(self, byte_order: str) -> struct.Struct:
        return struct.Struct(byte_order + self.struct_char)

    @classmethod
    def from_name(cls, name: str) -> "NumericType":
        """Look up a type by its PLY name, accepting the legacy aliases.

        Raises KeyError for unknown names.
        """
        return _TYPE_NAMES[name]


_TYPE_NAMES: dict[str, NumericType] = {
    "int8": NumericType.INT8,
    "char": NumericType.INT8,
    "uint8": NumericType.UINT8,
    "uchar": NumericType.UINT8,
    "int16": NumericType.INT16,
    "short": NumericType.INT16,
    "uint16": NumericType.UINT16,
    "ushort": NumericType.UINT16,
    "int32": NumericType.INT32,
    "int": NumericType.INT32,
    "uint32": NumericType.UINT32,
    "uint": NumericType.UINT32,
    "float32": NumericType.FLOAT32,
    "float": NumericType.FLOAT32,
    "float64": NumericType.FLOAT64,
    "double": NumericType.FLOAT64,
}


# ---------------------------------------------------------------------------
# Header descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScalarProperty:
    name: str
    numeric_type: NumericType


@dataclass(frozen=True)
class ListProperty:
    """Length-prefixed property, e.g. ``property list uchar int vertex_indices``."""
    name: str
    count_type: NumericType
    item_type: NumericType


PropertyDescriptor = ScalarProperty | ListProperty

# One decoded element instance: property name -> number or list of numbers
ElementRecord = dict[str, int | float | list[int | float]]


@dataclass
class ElementDescriptor:
    name: str
    count: int
    properties: list[PropertyDescriptor] = field(default_factory=list)

    @property
    def property_names(self) -> list[str]:
        return [prop.name for prop in self.properties]

    @property
    def has_lists(self) -> bool:
        return any(isinstance(prop, ListProperty) for prop in self.properties)


@dataclass
class HeaderDescriptor:
    format: PlyFormat | None = None
    version: str = ""
    comments: list[str] = field(default_factory=list)
    obj_info: str = ""
    elements: list[ElementDescriptor] = field(default_factory=list)
    header_length: int = 0  # byte offset of the first body byte

    def element(self, name: str) -> ElementDescriptor | None:
        for element in self.elements:
            if element.name == name:
                return element
        return None

    def count(self, name: str) -> int:
        """Total declared instances of elements called ``name``."""
        return sum(e.count for e in self.elements if e.name == name)
