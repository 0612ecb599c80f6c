"""``<m-slot>`` outlets inside a fragment."""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import TagNode
from pagesmith.pipeline.context import DEFAULT_SLOT

M_SLOT = "m-slot"


def slot_name(node: TagNode) -> str:
    return (
        node.get_optional_value_attribute("slot")
        or node.get_optional_value_attribute("name")
        or DEFAULT_SLOT
    )


class SlotModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode) or node.tag_name != M_SLOT:
            return

        content = ctx.fragment_context.slot_contents.get(slot_name(node))
        if content is not None:
            # the same slot may appear more than once, so fill it with a copy
            node.replace_self(content.clone(True).children)
        else:
            # unfilled: the outlet's own children are the default content
            node.remove_self(keep_children=True)
        ctx.set_replaced()
