#!/usr/bin/env python3
"""
Wavefront OBJ loading for lens surfaces.

Only `v` and `vn` records matter, plus the normal references in `f`
records. Vertex i takes the first normal any face pairs it with; without
face normals, `v` and `vn` records pair up by order.
"""

import logging
import os

import numpy as np
from typing import Dict, Iterable, List, Optional, Tuple

from exceptions import MeshIOError, MeshParseError
from geometry import LensSurface

logger = logging.getLogger(__name__)


def _floats(parts: List[str], count: int, line_number: int, line: str) -> List[float]:
    if len(parts) < count:
        raise MeshParseError(f"expected {count} coordinates, got {len(parts)}", line_number, line)
    try:
        values = [float(p) for p in parts[:count]]
    except ValueError:
        raise MeshParseError("invalid number", line_number, line) from None
    if not all(np.isfinite(values)):
        raise MeshParseError("non-finite coordinate", line_number, line)
    return values


def _resolve(ref: str, count: int, kind: str, line_number: int, line: str) -> int:
    """Turn a 1-based (or negative, relative) OBJ index into a 0-based one."""
    try:
        idx = int(ref)
    except ValueError:
        raise MeshParseError(f"invalid {kind} index {ref!r}", line_number, line) from None
    if idx > 0:
        resolved = idx - 1
    elif idx < 0:
        resolved = count + idx
    else:
        resolved = -1
    if not 0 <= resolved < count:
        raise MeshParseError(f"{kind} index {idx} out of range (have {count})", line_number, line)
    return resolved


def parse_obj(lines: Iterable[str], name: str = "mesh") -> LensSurface:
    """
    Parse OBJ text into a LensSurface.

    Raises MeshParseError on malformed records, dangling indices, a
    vertex/normal mismatch or an empty mesh. No partial mesh is returned.
    """
    vertices: List[List[float]] = []
    normals: List[List[float]] = []
    # vertex index -> normal index, first reference wins
    pairing: Dict[int, int] = {}
    has_face_normals = False
    first_line: Dict[int, Tuple[int, str]] = {}

    for line_number, raw in enumerate(lines, start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        parts = line.split()
        tag, args = parts[0], parts[1:]
        if tag == "v":
            first_line.setdefault(len(vertices), (line_number, line))
            vertices.append(_floats(args, 3, line_number, line))
        elif tag == "vn":
            normals.append(_floats(args, 3, line_number, line))
        elif tag == "f":
            if len(args) < 3:
                raise MeshParseError("face needs at least 3 vertices", line_number, line)
            for ref in args:
                fields = ref.split("/")
                vi = _resolve(fields[0], len(vertices), "vertex", line_number, line)
                if len(fields) == 3 and fields[2]:
                    ni = _resolve(fields[2], len(normals), "normal", line_number, line)
                    has_face_normals = True
                    pairing.setdefault(vi, ni)

    if not vertices:
        raise MeshParseError("mesh has no vertices")
    if not normals:
        raise MeshParseError("mesh has no normals")

    V = np.asarray(vertices, dtype=np.float64)
    N_all = np.asarray(normals, dtype=np.float64)

    if has_face_normals:
        missing = [i for i in range(len(vertices)) if i not in pairing]
        if missing:
            line_number, line = first_line[missing[0]]
            raise MeshParseError(
                f"{len(missing)} vertices have no normal in any face", line_number, line
            )
        N = N_all[[pairing[i] for i in range(len(vertices))]]
    else:
        if len(normals) != len(vertices):
            raise MeshParseError(
                f"vertex/normal count mismatch: {len(vertices)} v, {len(normals)} vn"
            )
        N = N_all

    lengths = np.linalg.norm(N, axis=1)
    zero = lengths == 0.0
    if np.any(zero):
        logger.warning("%s: %d zero-length normals", name, int(zero.sum()))
    N = np.divide(N, lengths[:, None], out=np.zeros_like(N), where=~zero[:, None])

    return LensSurface.from_arrays(V, N, name=name)


def load_obj(path: str, name: Optional[str] = None) -> LensSurface:
    """
    Load a lens surface from an OBJ file.

    Raises MeshIOError if the file cannot be read and MeshParseError if its
    contents are invalid.
    """
    if name is None:
        name = os.path.splitext(os.path.basename(path))[0]
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            surface = parse_obj(fh, name=name)
    except OSError as exc:
        raise MeshIOError(f"cannot read mesh {path!r}: {exc}") from exc
    logger.info("Loaded %s: %d vertices with normals", path, len(surface))
    return surface


def save_obj(path: str, surface: LensSurface) -> None:
    """Write vertices and normals as paired v/vn records."""
    try:
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(f"# {surface.name}\n")
            for x, y, z in surface.vertices:
                fh.write(f"v {x:.17g} {y:.17g} {z:.17g}\n")
            for x, y, z in surface.normals:
                fh.write(f"vn {x:.17g} {y:.17g} {z:.17g}\n")
    except OSError as exc:
        raise MeshIOError(f"cannot write mesh {path!r}: {exc}") from exc
