"""I/O and cache decorators that report every resource a compile reads."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Union

from pagesmith.pipeline.cache import Cache, V
from pagesmith.pipeline.io import PipelineIO, ResourceType
from pagesmith.pipeline.paths import normalize_res_path

ReadCallback = Callable[[str], None]


class TrackingPipelineIO:
    """Forwards to another PipelineIO and reports every source read.

    The read is reported before it is attempted, so a page that referenced a
    missing file is rebuilt once that file appears.
    """

    def __init__(self, io: PipelineIO, on_read: ReadCallback):
        self.io = io
        self.on_read = on_read

    def get_resource(self, kind: ResourceType, res_path: str) -> str:
        self.on_read(normalize_res_path(res_path))
        return self.io.get_resource(kind, res_path)

    def write_resource(self, kind: ResourceType, res_path: str, contents: str) -> None:
        self.io.write_resource(kind, res_path, contents)

    def create_resource(self, kind: ResourceType, contents: str, name_hint: Optional[str] = None) -> str:
        return self.io.create_resource(kind, contents, name_hint)

    def source_res_path_for(self, path: Union[str, Path]) -> str:
        return self.io.source_res_path_for(path)


class TrackingCache(Cache[V]):
    """A cache that reports its hits as reads of the cached resource path.

    Cached fragments skip the I/O layer, so without this a page compiled
    after another page warmed the cache would record no dependency on them.
    """

    def __init__(self, inner: Cache[V], on_read: ReadCallback):
        self.inner = inner
        self.on_read = on_read

    def has(self, key: str) -> bool:
        return self.inner.has(key)

    def get(self, key: str) -> V:
        value = self.inner.get(key)
        self.on_read(key)
        for source in getattr(value, "sources", ()):
            self.on_read(source)
        return value

    def store(self, key: str, value: V) -> None:
        self.inner.store(key, value)

    def remove(self, key: str) -> None:
        self.inner.remove(key)

    def clear(self) -> None:
        self.inner.clear()

    def keys(self):
        return self.inner.keys()

    def __len__(self) -> int:
        return len(self.inner)
