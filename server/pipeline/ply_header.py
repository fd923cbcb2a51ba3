"""PLY header extraction, parsing and formatting.

The header is the text block between the ``ply`` magic line and
``end_header``. Its exact byte length matters: a binary body starts at the
first byte after the terminator line.
"""

import logging
import re

from pipeline.ply_types import (
    ElementDescriptor,
    HeaderDescriptor,
    ListProperty,
    NumericType,
    PlyFormat,
    PropertyDescriptor,
    ScalarProperty,
)

logger = logging.getLogger(__name__)

MAGIC = "ply"
END_HEADER = "end_header"

_LF = 0x0A
_CR = 0x0D
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class _MalformedLine(ValueError):
    pass


def extract_header(data: bytes | bytearray | memoryview) -> tuple[str, int]:
    """Locate the header in raw bytes.

    Returns (header_text, header_length). Lines are joined with ``\\n`` and
    empty lines dropped. ``header_length`` is the offset of the first body
    byte; for ``\\r\\n`` files (detected from the magic line) the ``\\n``
    after ``end_header`` is included. If ``end_header`` never appears the
    whole input is consumed and the returned text has no terminator line.
    """
    view = memoryview(data)
    size = len(view)
    crlf = bytes(view[:5]) == b"ply\r\n"

    lines: list[str] = []
    line = bytearray()
    pos = 0
    terminated = False

    while pos < size:
        c = view[pos]
        pos += 1
        if c != _LF and c != _CR:
            line.append(c)
            continue
        if line:
            text = line.decode("latin-1")
            lines.append(text)
            line = bytearray()
            if text == END_HEADER:
                terminated = True
                break

    if terminated and crlf:
        pos = min(pos + 1, size)
    elif not terminated and line:
        lines.append(line.decode("latin-1"))

    return "\n".join(lines), pos


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _parse_property(tokens: list[str]) -> PropertyDescriptor:
    try:
        if tokens and tokens[0] == "list":
            if len(tokens) < 4:
                raise _MalformedLine("list property needs count type, item type and name")
            return ListProperty(
                name=tokens[3],
                count_type=NumericType.from_name(tokens[1]),
                item_type=NumericType.from_name(tokens[2]),
            )
        if len(tokens) < 2:
            raise _MalformedLine("property needs a type and a name")
        return ScalarProperty(name=tokens[1], numeric_type=NumericType.from_name(tokens[0]))
    except KeyError as e:
        raise _MalformedLine(f"unknown property type {e.args[0]!r}") from e


def _parse_element(tokens: list[str]) -> ElementDescriptor:
    if len(tokens) < 2:
        raise _MalformedLine("element needs a name and a count")
    try:
        count = int(tokens[1])
    except ValueError as e:
        raise _MalformedLine(f"element count {tokens[1]!r} is not an integer") from e
    if count < 0:
        raise _MalformedLine(f"element count {count} is negative")
    return ElementDescriptor(name=tokens[0], count=count)


def parse_header(text: str, header_length: int = 0) -> HeaderDescriptor:
    """Parse header text (as returned by :func:`extract_header`).

    Never raises. A header that lacks the magic line, the terminator or a
    known format yields no elements. A malformed element or property line
    drops that element and everything declared after it, since the body
    offsets of later elements can no longer be located.
    """
    header = HeaderDescriptor(header_length=header_length)
    current: ElementDescriptor | None = None
    broken = False
    magic = False
    terminated = False
    format_name = None
    first = True

    for raw in _LINE_BREAK.split(text):
        line = raw.strip()
        if not line:
            continue

        tokens = line.split()
        keyword, rest = tokens[0], tokens[1:]

        if first:
            first = False
            if keyword == MAGIC and not rest:
                magic = True
                continue

        if keyword == END_HEADER:
            terminated = True
            break
        elif keyword == "format":
            format_name = rest[0] if rest else None
            header.version = rest[1] if len(rest) > 1 else ""
        elif keyword == "comment":
            header.comments.append(" ".join(rest))
        elif keyword == "obj_info":
            header.obj_info = " ".join(rest)
        elif keyword == "element":
            if broken:
                continue
            if current is not None:
                header.elements.append(current)
                current = None
            try:
                current = _parse_element(rest)
            except _MalformedLine as e:
                logger.warning("Malformed PLY header line %r: %s; dropping remaining elements", line, e)
                broken = True
        elif keyword == "property":
            if broken:
                continue
            if current is None:
                logger.warning("PLY property %r declared before any element, skipping", line)
                continue
            try:
                current.properties.append(_parse_property(rest))
            except _MalformedLine as e:
                logger.warning(
                    "Malformed PLY property in element %r (%r): %s; dropping it and later elements",
                    current.name, line, e,
                )
                current = None
                broken = True
        else:
            logger.debug("Ignoring PLY header line %r", line)

    if current is not None:
        header.elements.append(current)

    if format_name is not None:
        try:
            header.format = PlyFormat(format_name)
        except ValueError:
            logger.warning("Unknown PLY format %r", format_name)

    if not magic:
        logger.warning("PLY magic line missing; decoding no elements")
        header.elements = []
    elif not terminated:
        logger.warning("PLY header has no %s; decoding no elements", END_HEADER)
        header.elements = []
    elif header.format is None:
        logger.warning("PLY header declares no usable format; decoding no elements")
        header.elements = []

    return header


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _format_property(prop: PropertyDescriptor) -> str:
    if isinstance(prop, ListProperty):
        return f"property list {prop.count_type.type_name} {prop.item_type.type_name} {prop.name}"
    return f"property {prop.numeric_type.type_name} {prop.name}"


def format_header(header: HeaderDescriptor) -> str:
    """Write a header back out as canonical PLY text, ``\\n`` terminated."""
    if header.format is None:
        raise ValueError("Cannot format a PLY header without a format")

    lines = [MAGIC, f"format {header.format.value} {header.version}".rstrip()]
    lines += [f"comment {c}" for c in header.comments]
    if header.obj_info:
        lines.append(f"obj_info {header.obj_info}")
    for element in header.elements:
        lines.append(f"element {element.name} {element.count}")
        lines += [_format_property(p) for p in element.properties]
    lines.append(END_HEADER)
    return "\n".join(lines) + "\n"
