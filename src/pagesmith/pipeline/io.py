"""Pipeline I/O.

The pipeline never touches the filesystem directly; it reads sources and
writes outputs through a PipelineIO. ``FileSystemPipelineIO`` works on real
directories and ``MemoryPipelineIO`` keeps everything in dicts.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import xxhash

from pagesmith.errors import ResourceIOError
from pagesmith.pipeline.paths import normalize_res_path

log = logging.getLogger(__name__)


class ResourceType(str, Enum):
    HTML = "html"
    CSS = "css"
    JAVASCRIPT = "js"
    JSON = "json"
    YAML = "yaml"
    TEXT = "txt"
    PYTHON = "py"
    UNKNOWN = "dat"

    @property
    def extension(self) -> str:
        return self.value


CREATED_RESOURCE_DIR = "resources"


def hash_content(contents: str) -> str:
    """Fast non-cryptographic hash of some pipeline content."""
    return xxhash.xxh64_hexdigest(contents.encode("utf-8"))


class PipelineIO(Protocol):
    def get_resource(self, kind: ResourceType, res_path: str) -> str: ...

    def write_resource(self, kind: ResourceType, res_path: str, contents: str) -> None: ...

    def create_resource(self, kind: ResourceType, contents: str, name_hint: Optional[str] = None) -> str: ...

    def source_res_path_for(self, path: Union[str, Path]) -> str: ...


def _created_res_path(kind: ResourceType, contents: str, name_hint: Optional[str]) -> str:
    name = name_hint or hash_content(contents)
    return f"{CREATED_RESOURCE_DIR}/{name}.{kind.extension}"


class FileSystemPipelineIO:
    """Reads from a source directory and writes into a destination directory."""

    def __init__(self, source_dir: Union[str, Path], destination_dir: Union[str, Path]):
        self.source_dir = Path(source_dir).resolve()
        self.destination_dir = Path(destination_dir).resolve()

    def resolve_source_path(self, res_path: str) -> Path:
        return self.source_dir / normalize_res_path(res_path)

    def resolve_destination_path(self, res_path: str) -> Path:
        return self.destination_dir / normalize_res_path(res_path)

    def source_res_path_for(self, path: Union[str, Path]) -> str:
        """Convert a filesystem path into a source resource path."""
        path = Path(path).resolve()
        try:
            return path.relative_to(self.source_dir).as_posix()
        except ValueError:
            return path.as_posix()

    def get_resource(self, kind: ResourceType, res_path: str) -> str:
        path = self.resolve_source_path(res_path)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ResourceIOError(f"Unable to read {kind.value} resource: {exc}", res_path) from exc

    def write_resource(self, kind: ResourceType, res_path: str, contents: str) -> None:
        path = self.resolve_destination_path(res_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(contents, encoding="utf-8")
        except OSError as exc:
            raise ResourceIOError(f"Unable to write {kind.value} resource: {exc}", res_path) from exc
        log.debug("Wrote %s", path)

    def create_resource(self, kind: ResourceType, contents: str, name_hint: Optional[str] = None) -> str:
        res_path = _created_res_path(kind, contents, name_hint)
        self.write_resource(kind, res_path, contents)
        return res_path


class MemoryPipelineIO:
    """In-memory sources and outputs, keyed by resource path."""

    def __init__(self, sources: Optional[Dict[str, str]] = None):
        self.sources: Dict[str, str] = {
            normalize_res_path(k): v for k, v in (sources or {}).items()
        }
        self.outputs: Dict[str, str] = {}

    def source_res_path_for(self, path: Union[str, Path]) -> str:
        return normalize_res_path(str(path))

    def get_resource(self, kind: ResourceType, res_path: str) -> str:
        try:
            return self.sources[normalize_res_path(res_path)]
        except KeyError as exc:
            raise ResourceIOError(f"No such {kind.value} resource", res_path) from exc

    def write_resource(self, kind: ResourceType, res_path: str, contents: str) -> None:
        self.outputs[normalize_res_path(res_path)] = contents

    def create_resource(self, kind: ResourceType, contents: str, name_hint: Optional[str] = None) -> str:
        res_path = _created_res_path(kind, contents, name_hint)
        self.write_resource(kind, res_path, contents)
        return res_path
