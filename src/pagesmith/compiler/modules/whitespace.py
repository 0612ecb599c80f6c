"""``<m-whitespace mode="sensitive|insensitive">``."""

from __future__ import annotations

from typing import Iterable

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import Node, ParentNode, TagNode, TextNode
from pagesmith.errors import StructuralError

M_WHITESPACE = "m-whitespace"
NODE_TAG_WHITESPACE = "whitespace.processed"


def apply_whitespace(sensitive: bool, nodes: Iterable[Node]) -> None:
    for node in nodes:
        # an inner m-whitespace has already claimed its subtree
        if NODE_TAG_WHITESPACE in node.node_tags:
            continue
        node.node_tags.add(NODE_TAG_WHITESPACE)

        if isinstance(node, TextNode):
            node.is_whitespace_sensitive = sensitive
        elif isinstance(node, ParentNode):
            apply_whitespace(sensitive, node.children)


class WhitespaceModule(CompilerModule):
    def exit_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode) or node.tag_name != M_WHITESPACE:
            return

        mode = node.get_optional_value_attribute("mode") or "sensitive"
        if mode not in ("sensitive", "insensitive"):
            raise StructuralError(f"Invalid <m-whitespace> mode '{mode}'", ctx.res_path)

        apply_whitespace(mode == "sensitive", node.children)
        node.remove_self(keep_children=True)
        ctx.set_replaced()
