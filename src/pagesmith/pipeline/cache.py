"""Pipeline caches.

Every cache is pure memoization: clearing any of them changes how long a
build takes, never what it produces. Entries are replaced or removed as a
whole, never mutated in place.
"""

from __future__ import annotations

from typing import Dict, Generic, Iterator, NamedTuple, TypeVar

V = TypeVar("V")


class Cache(Generic[V]):
    """A string-keyed map."""

    def __init__(self) -> None:
        self._entries: Dict[str, V] = {}

    def has(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> V:
        return self._entries[key]

    def store(self, key: str, value: V) -> None:
        self._entries[key] = value

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class CreatedResource(NamedTuple):
    res_path: str
    contents: str


class PipelineCache:
    """All caches owned by one Pipeline.

    - ``fragments``: resource path -> parsed Fragment (never mutated, always cloned)
    - ``components``: resource path -> parsed Component
    - ``expressions``: expression source -> compiled callable
    - ``scripts``: script source -> compiled callable
    - ``modules``: resource path -> module loaded with ``require()``
    - ``created_resources``: "kind:hash" -> CreatedResource
    """

    def __init__(self) -> None:
        self.fragments: Cache = Cache()
        self.components: Cache = Cache()
        self.expressions: Cache = Cache()
        self.scripts: Cache = Cache()
        self.modules: Cache = Cache()
        self.created_resources: Cache[CreatedResource] = Cache()

    def all(self):
        return [
            self.fragments,
            self.components,
            self.expressions,
            self.scripts,
            self.modules,
            self.created_resources,
        ]

    def evict(self, res_path: str) -> None:
        """Forget everything parsed or loaded from ``res_path``."""
        self.fragments.remove(res_path)
        self.components.remove(res_path)
        for key in self.components.keys():
            if res_path in self.components.get(key).sources:
                self.components.remove(key)
        self.modules.remove(res_path)

    def clear(self) -> None:
        for cache in self.all():
            cache.clear()
