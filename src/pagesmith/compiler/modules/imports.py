"""``<m-import>``: register a custom tag name for a fragment or component."""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule, ImportDefinition
from pagesmith.dom.node import TagNode

M_IMPORT = "m-import"


class ImportModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode):
            return

        if node.tag_name == M_IMPORT:
            self._register(node, ctx)
            return

        definition = ctx.get_import(node.tag_name)
        if definition is not None:
            self._replace(node, definition, ctx)

    def _register(self, node: TagNode, ctx: CompilerContext) -> None:
        src = node.get_required_value_attribute("src", ctx.res_path)
        alias = node.get_required_value_attribute("as", ctx.res_path).lower()
        kind = "component" if node.has_attribute("component") else "fragment"

        # visible to the import's siblings and their descendants
        target = ctx.parent if ctx.parent is not None else ctx
        target.define_import(ImportDefinition(alias=alias, src=src, kind=kind))

        node.detach()
        ctx.set_deleted()

    def _replace(self, node: TagNode, definition: ImportDefinition, ctx: CompilerContext) -> None:
        attributes = dict(node.attributes)
        attributes["src"] = definition.src

        replacement = TagNode(f"m-{definition.kind}", attributes)
        replacement.append_children(node.children)

        node.replace_self([replacement])
        ctx.set_replaced()
