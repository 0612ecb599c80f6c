"""Resource path helpers.

Resource paths are always '/'-separated and relative to the source (or
destination) root, regardless of platform.
"""

from __future__ import annotations

import posixpath
from typing import Optional


def normalize_res_path(res_path: str) -> str:
    res_path = res_path.replace("\\", "/")
    normalized = posixpath.normpath(res_path)
    return "" if normalized == "." else normalized


def resolve_res_path(target: str, source: Optional[str] = None) -> str:
    """Resolve ``target`` relative to the resource ``source``.

    Paths starting with ``@/`` are resolved from the project root even when
    ``source`` is given. If ``source`` ends with '/' it is treated as a
    directory, otherwise its directory is used.
    """
    target = target.replace("\\", "/")

    if target.startswith("@/"):
        target = target[2:]
        source = None

    if source is not None and not posixpath.isabs(target):
        source = source.replace("\\", "/")
        if source.endswith("/"):
            base = source.rstrip("/")
        else:
            base = posixpath.dirname(source)
        target = posixpath.join(base, target)

    return normalize_res_path(target)


def compute_relative_path(from_res_path: str, to_res_path: str) -> str:
    """Path to ``to_res_path`` as seen from the file ``from_res_path``."""
    from_dir = posixpath.dirname(normalize_res_path(from_res_path)) or "."
    return posixpath.relpath(normalize_res_path(to_res_path) or ".", from_dir)
