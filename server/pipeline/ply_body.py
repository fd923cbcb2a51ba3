"""PLY body decoders.

Both decoders walk the header's elements in declaration order and yield one
``(element, record)`` pair per element instance. They differ in how they
treat running out of input:

- ASCII: a truncated body ends the decode quietly; records already yielded
  stay valid.
- Binary: reading past the end of the buffer raises PlyDecodeError.
"""

import logging
import struct
from typing import Iterator

from pipeline.ply_types import (
    ElementDescriptor,
    ElementRecord,
    HeaderDescriptor,
    ListProperty,
    NumericType,
    PlyDecodeError,
    PlyFormat,
)

logger = logging.getLogger(__name__)

BodyRecords = Iterator[tuple[ElementDescriptor, ElementRecord]]


def read_body(data: bytes | bytearray | memoryview, header: HeaderDescriptor) -> BodyRecords:
    """Dispatch to the ASCII or binary decoder based on the header format."""
    if header.format is None:
        return iter(())
    if header.format is PlyFormat.ASCII:
        return read_ascii_body(data, header)
    return read_binary_body(data, header)


# ---------------------------------------------------------------------------
# ASCII
# ---------------------------------------------------------------------------

class _TokensExhausted(Exception):
    pass


def _next_token(tokens: Iterator[bytes]) -> bytes:
    try:
        return next(tokens)
    except StopIteration:
        raise _TokensExhausted() from None


def _read_ascii_record(element: ElementDescriptor, tokens: Iterator[bytes]) -> ElementRecord:
    record: ElementRecord = {}
    for prop in element.properties:
        if isinstance(prop, ListProperty):
            n = int(prop.count_type.parse_ascii(_next_token(tokens)))
            parse = prop.item_type.parse_ascii
            record[prop.name] = [parse(_next_token(tokens)) for _ in range(n)]
        else:
            record[prop.name] = prop.numeric_type.parse_ascii(_next_token(tokens))
    return record


def read_ascii_body(data: bytes | bytearray | memoryview, header: HeaderDescriptor) -> BodyRecords:
    """Decode a whitespace-separated ASCII body.

    Tokens are consumed positionally. If they run out (or one is not a
    number) partway through a record, that record and all remaining
    elements are abandoned without raising.
    """
    tokens = iter(bytes(memoryview(data)[header.header_length:]).split())

    for element in header.elements:
        for i in range(element.count):
            try:
                record = _read_ascii_record(element, tokens)
            except _TokensExhausted:
                logger.warning(
                    "ASCII PLY body truncated in element %r at instance %d of %d",
                    element.name, i, element.count,
                )
                return
            except (ValueError, OverflowError) as e:
                logger.warning(
                    "Invalid number in ASCII PLY element %r at instance %d: %s",
                    element.name, i, e,
                )
                return
            yield element, record


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------

class BinaryCursor:
    """Sequential reader over a byte buffer with bounds checking.

    ``offset`` only moves forward, by exactly the number of bytes consumed.
    """

    def __init__(self, data: bytes | bytearray | memoryview, offset: int = 0, byte_order: str = "<"):
        self.view = memoryview(data)
        self.offset = offset
        self.byte_order = byte_order
        self._structs: dict[tuple[str, int], struct.Struct] = {}

    @property
    def remaining(self) -> int:
        return max(len(self.view) - self.offset, 0)

    def _struct(self, chars: str, repeat: int = 1) -> struct.Struct:
        key = (chars, repeat)
        fmt = self._structs.get(key)
        if fmt is None:
            fmt = struct.Struct(f"{self.byte_order}{repeat}{chars}")
            self._structs[key] = fmt
        return fmt

    def unpack(self, fmt: struct.Struct) -> tuple:
        end = self.offset + fmt.size
        if end > len(self.view):
            raise PlyDecodeError(
                f"Binary PLY body ended at byte {len(self.view)}, "
                f"needed {fmt.size} bytes at offset {self.offset}"
            )
        values = fmt.unpack_from(self.view, self.offset)
        self.offset = end
        return values

    def read(self, numeric_type: NumericType) -> int | float:
        return self.unpack(self._struct(numeric_type.struct_char))[0]

    def read_array(self, numeric_type: NumericType, n: int) -> list[int | float]:
        if n <= 0:
            return []
        return list(self.unpack(self._struct(numeric_type.struct_char, n)))

    def read_record(self, element: ElementDescriptor) -> ElementRecord:
        """Read one element instance, property by property."""
        record: ElementRecord = {}
        for prop in element.properties:
            if isinstance(prop, ListProperty):
                n = int(self.read(prop.count_type))
                record[prop.name] = self.read_array(prop.item_type, n)
            else:
                record[prop.name] = self.read(prop.numeric_type)
        return record


def read_binary_body(data: bytes | bytearray | memoryview, header: HeaderDescriptor) -> BodyRecords:
    """Decode a packed binary body starting at ``header.header_length``.

    Raises PlyDecodeError if the declared element counts need more bytes than
    the buffer holds.
    """
    cursor = BinaryCursor(data, header.header_length, header.format.byte_order)

    for element in header.elements:
        if element.has_lists or not element.properties:
            for _ in range(element.count):
                yield element, cursor.read_record(element)
            continue

        # Fixed-size records: one struct per instance
        names = element.property_names
        record_struct = struct.Struct(
            cursor.byte_order + "".join(p.numeric_type.struct_char for p in element.properties)
        )
        for _ in range(element.count):
            yield element, dict(zip(names, cursor.unpack(record_struct)))

    if cursor.remaining:
        logger.debug("%d trailing bytes after binary PLY body", cursor.remaining)
