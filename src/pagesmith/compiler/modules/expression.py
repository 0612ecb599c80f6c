"""Evaluate ``{{ }}`` and ``${ }`` in attribute values and text."""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import TagNode, TextNode
from pagesmith.eval.engine import is_expression_string

# text inside these elements is code, not template text
_CODE_TAGS = frozenset({"script", "style"})


class ExpressionModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node

        if isinstance(node, TagNode):
            for name, value in list(node.attributes.items()):
                if isinstance(value, str) and is_expression_string(value):
                    node.attributes[name] = ctx.evaluate(value)

        elif isinstance(node, TextNode):
            parent = node.parent
            if isinstance(parent, TagNode) and parent.tag_name in _CODE_TAGS:
                return
            if is_expression_string(node.text):
                value = ctx.evaluate(node.text)
                node.text = "" if value is None else str(value)
