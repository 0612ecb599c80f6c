"""``<m-var>``, ``<m-scope>`` and ``<m-data>``.

``m-var`` writes its attributes into the enclosing scope and disappears at
once. ``m-scope`` keeps its bindings on itself so only its descendants see
them, and is unwrapped once its subtree is compiled. ``m-data`` loads files
into the enclosing scope.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Tuple

import yaml

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import DocumentNode, TagNode
from pagesmith.errors import StructuralError
from pagesmith.eval.scope import Scope, to_scope_name
from pagesmith.pipeline.io import ResourceType
from pagesmith.pipeline.paths import resolve_res_path

M_VAR = "m-var"
M_SCOPE = "m-scope"
M_DATA = "m-data"
REFERENCE_TAGS = frozenset({"m-fragment", "m-component"})

_DATA_TYPES = {
    "json": ResourceType.JSON,
    "yaml": ResourceType.YAML,
    "text": ResourceType.TEXT,
}


def bind_attributes(scope: Scope, attributes: Iterable[Tuple[str, Any]]) -> None:
    for name, value in attributes:
        scope[to_scope_name(name)] = value


class VarModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node

        if isinstance(node, DocumentNode):
            node.set_root_scope(ctx.fragment_context.scope)

        elif not isinstance(node, TagNode):
            return

        elif node.tag_name == M_VAR:
            bind_attributes(ctx.parent_scope(), node.attributes.items())
            node.detach()
            ctx.set_deleted()

        elif node.tag_name == M_SCOPE:
            bind_attributes(node.scope, node.attributes.items())

        elif node.tag_name == M_DATA:
            self._load_data(node, ctx)

        elif node.tag_name in REFERENCE_TAGS:
            # parameters are visible to slot content written inside the reference
            params = ((k, v) for k, v in node.attributes.items() if k != "src")
            bind_attributes(node.scope, params)

    def exit_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if isinstance(node, TagNode) and node.tag_name == M_SCOPE:
            node.remove_self(keep_children=True)
            ctx.set_deleted()

    def _load_data(self, node: TagNode, ctx: CompilerContext) -> None:
        data_type = node.get_required_value_attribute("type", ctx.res_path).lower()
        if data_type not in _DATA_TYPES:
            raise StructuralError(f"Unknown <m-data> type '{data_type}'", ctx.res_path)

        kind = _DATA_TYPES[data_type]
        target = ctx.parent_scope()

        for name, path in node.attributes.items():
            if name == "type" or path is None:
                continue
            res_path = resolve_res_path(str(path), ctx.res_path)
            raw = ctx.pipeline.get_raw_text(res_path, kind)
            target[to_scope_name(name)] = _parse_data(raw, kind, res_path)

        node.detach()
        ctx.set_deleted()


def _parse_data(raw: str, kind: ResourceType, res_path: str) -> Any:
    try:
        if kind == ResourceType.JSON:
            return json.loads(raw)
        if kind == ResourceType.YAML:
            return yaml.safe_load(raw)
    except (ValueError, yaml.YAMLError) as exc:
        raise StructuralError(f"Unable to parse {kind.value} data: {exc}", res_path) from exc
    return raw
