"""Evaluation context passed to compiled expressions and scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import ModuleType
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pagesmith.eval.scope import Scope

if TYPE_CHECKING:
    from pagesmith.dom.node import Node
    from pagesmith.pipeline.context import FragmentContext
    from pagesmith.pipeline.pipeline import Pipeline


# Names that are always bound inside expressions and scripts.
RESERVED_NAMES = frozenset({"scope", "context", "require"})


@dataclass
class EvalContext:
    """Everything an expression or script can see while it runs."""

    scope: Scope
    pipeline: Optional["Pipeline"] = None
    node: Optional["Node"] = None
    fragment_context: Optional["FragmentContext"] = None
    require: Callable[[str], ModuleType] = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.require is None:
            self.require = self._require

    @property
    def res_path(self) -> Optional[str]:
        if self.fragment_context is None:
            return None
        return self.fragment_context.fragment_res_path

    def bindings(self) -> Dict[str, Any]:
        """Flatten the scope chain and add the reserved names."""
        names = self.scope.flatten()
        names["scope"] = self.scope
        names["context"] = self
        names["require"] = self.require
        return names

    def _require(self, path: str) -> ModuleType:
        if self.pipeline is None:
            raise RuntimeError("require() is only available inside a pipeline")
        return self.pipeline.require(path, self.res_path)
