#!/usr/bin/env python3
"""Print a PLY file's header and decoded geometry counts.

Usage:
    python scripts/inspect_ply.py scene.ply
    python scripts/inspect_ply.py scene.ply --header-only
    python scripts/inspect_ply.py scene.ply --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add server root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pipeline.ply_decoder import decode_ply, read_ply_header
from pipeline.ply_types import HeaderDescriptor, ListProperty, PlyDecodeError

logger = logging.getLogger(__name__)


def describe_header(header: HeaderDescriptor) -> list[str]:
    fmt = header.format.value if header.format else "unknown"
    lines = [f"format: {fmt} {header.version}".rstrip(), f"header bytes: {header.header_length}"]
    for comment in header.comments:
        lines.append(f"comment: {comment}")
    if header.obj_info:
        lines.append(f"obj_info: {header.obj_info}")
    for element in header.elements:
        lines.append(f"element {element.name}: {element.count}")
        for prop in element.properties:
            if isinstance(prop, ListProperty):
                lines.append(
                    f"  {prop.name}: list[{prop.count_type.type_name}] of {prop.item_type.type_name}"
                )
            else:
                lines.append(f"  {prop.name}: {prop.numeric_type.type_name}")
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a PLY file")
    parser.add_argument("path", type=Path, help="PLY file")
    parser.add_argument("--header-only", action="store_true", help="Skip decoding the body")
    parser.add_argument("--json", action="store_true", help="Emit a JSON summary")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.path.is_file():
        logger.error("No such file: %s", args.path)
        return 1

    data = args.path.read_bytes()
    header = read_ply_header(data)
    summary = {
        "file": str(args.path),
        "format": header.format.value if header.format else None,
        "elements": [{"name": e.name, "count": e.count} for e in header.elements],
    }

    if not args.header_only:
        try:
            geometry = decode_ply(data)
        except PlyDecodeError as e:
            logger.error("Decode failed: %s", e)
            return 1
        summary.update(
            vertices=geometry.vertex_count,
            triangles=geometry.triangle_count,
            has_normals=len(geometry.normals) > 0,
            has_colors=len(geometry.colors) > 0,
            has_uvs=len(geometry.uvs) > 0,
        )

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print("\n".join(describe_header(header)))
    if not args.header_only:
        print(f"decoded: {summary['vertices']} vertices, {summary['triangles']} triangles")
        attrs = [name for name in ("normals", "colors", "uvs") if summary[f"has_{name}"]]
        print(f"attributes: {', '.join(attrs) or 'positions only'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
