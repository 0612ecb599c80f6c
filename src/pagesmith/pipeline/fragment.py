"""Fragment, page and component models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pagesmith.dom.node import DocumentNode


@dataclass
class Fragment:
    """A parsed template identified by its resource path."""

    path: str
    dom: DocumentNode
    is_page: bool = False
    exports: Dict[str, Any] = field(default_factory=dict)

    def clone(self) -> "Fragment":
        return Fragment(self.path, self.dom.clone(True), self.is_page, dict(self.exports))


@dataclass
class Page:
    """A compiled page: its tree and the HTML written for it."""

    path: str
    dom: DocumentNode
    html: str


class StyleBind(str, Enum):
    HEAD = "head"
    LINK = "link"


@dataclass
class ComponentStyle:
    text: str
    bind: StyleBind = StyleBind.HEAD
    src: Optional[str] = None


@dataclass
class Component:
    """A fragment split into template, script and optional style sections.

    ``sources`` lists the resolved paths of every external section, so the
    component can be invalidated when one of them changes.
    """

    path: str
    template: DocumentNode
    script: str
    script_src: Optional[str] = None
    template_src: Optional[str] = None
    style: Optional[ComponentStyle] = None
    sources: FrozenSet[str] = frozenset()

    def clone(self) -> "Component":
        return Component(
            path=self.path,
            template=self.template.clone(True),
            script=self.script,
            script_src=self.script_src,
            template_src=self.template_src,
            style=self.style,
            sources=self.sources,
        )
