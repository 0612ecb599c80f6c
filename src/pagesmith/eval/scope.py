"""Scope chains.

A Scope holds the variable bindings owned by one node (or one fragment
instantiation). Reads fall through to the parent scope when a name is not
bound locally; writes and deletes always stay local.
"""

from __future__ import annotations

import re
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Optional


_HYPHEN_RE = re.compile(r"-([a-zA-Z0-9])")


def to_scope_name(attribute_name: str) -> str:
    """Convert a hyphenated attribute name into its binding name.

    ``my-param`` becomes ``myParam``.
    """
    return _HYPHEN_RE.sub(lambda m: m.group(1).upper(), attribute_name)


class Scope(MutableMapping):
    """Variable bindings with read-fallback to a parent scope."""

    def __init__(
        self,
        bindings: Optional[Dict[str, Any]] = None,
        parent: Optional["Scope"] = None,
    ):
        self._bindings: Dict[str, Any] = dict(bindings or {})
        self.parent = parent

    def __getitem__(self, name: str) -> Any:
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope.parent
        raise KeyError(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self._bindings[name] = value

    def __delitem__(self, name: str) -> None:
        del self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.flatten())

    def __len__(self) -> int:
        return len(self.flatten())

    def __repr__(self) -> str:
        return f"Scope({self._bindings!r}, parent={'yes' if self.parent else 'no'})"

    @property
    def local(self) -> Dict[str, Any]:
        """Bindings owned by this scope only."""
        return self._bindings

    def has_local(self, name: str) -> bool:
        return name in self._bindings

    def child(self, bindings: Optional[Dict[str, Any]] = None) -> "Scope":
        """Create a new scope that falls back to this one."""
        return Scope(bindings, parent=self)

    def flatten(self) -> Dict[str, Any]:
        """Collapse the chain into one dict, nearer bindings winning."""
        chain = []
        scope: Optional[Scope] = self
        while scope is not None:
            chain.append(scope._bindings)
            scope = scope.parent

        flat: Dict[str, Any] = {}
        for bindings in reversed(chain):
            flat.update(bindings)
        return flat
