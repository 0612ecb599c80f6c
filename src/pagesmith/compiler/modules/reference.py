"""``<m-fragment>`` and ``<m-component>``: splice in another compiled template.

References are resolved on exit, after their own children (the slot fills)
have been compiled in the referencing scope.
"""

from __future__ import annotations

from typing import Dict, List

from pagesmith.compiler.compiler import NODE_TAG_COMPILED, CompilerContext, CompilerModule
from pagesmith.dom.node import CommentNode, DocumentNode, Node, TagNode, TextNode
from pagesmith.errors import DuplicateSlotError
from pagesmith.eval.scope import to_scope_name
from pagesmith.pipeline.context import DEFAULT_SLOT, UsageContext
from pagesmith.pipeline.paths import resolve_res_path

M_FRAGMENT = "m-fragment"
M_COMPONENT = "m-component"
M_CONTENT = "m-content"


def mark_compiled(nodes: List[Node]) -> None:
    for node in nodes:
        node.node_tags.add(NODE_TAG_COMPILED)


def extract_slot_contents(reference: TagNode, res_path: str) -> Dict[str, DocumentNode]:
    """Move the reference's children into one document per slot.

    Bare children fill the default slot; each ``<m-content slot="x">``
    contributes its children to slot ``x``. A slot may be named by at most
    one ``m-content`` wrapper.
    """
    slots: Dict[str, DocumentNode] = {}
    wrapped: set = set()
    src = str(reference.get_attribute("src"))

    bare: List[Node] = []
    for child in reference.children:
        if isinstance(child, TagNode) and child.tag_name == M_CONTENT:
            name = child.get_optional_value_attribute("slot") or DEFAULT_SLOT
            if name in wrapped:
                raise DuplicateSlotError(name, src, res_path)
            wrapped.add(name)
            slots.setdefault(name, DocumentNode()).append_children(child.children)
        else:
            bare.append(child)

    # whitespace and comments alone do not fill the default slot
    if any(_is_content(node) for node in bare):
        slots.setdefault(DEFAULT_SLOT, DocumentNode()).append_children(bare)

    for dom in slots.values():
        mark_compiled(dom.children)
    return slots


def _is_content(node: Node) -> bool:
    if isinstance(node, TextNode):
        return node.has_content
    return not isinstance(node, CommentNode)


class ReferenceModule(CompilerModule):
    def exit_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode) or node.tag_name not in (M_FRAGMENT, M_COMPONENT):
            return

        kind = "fragment" if node.tag_name == M_FRAGMENT else "component"
        src = node.get_required_value_attribute("src", ctx.res_path)
        res_path = resolve_res_path(src, ctx.res_path)

        parameters = {
            to_scope_name(name): value
            for name, value in node.attributes.items()
            if name != "src" and value is not None
        }
        usage = UsageContext(extract_slot_contents(node, ctx.res_path), parameters)

        if kind == "fragment":
            fragment = ctx.pipeline.compile_fragment(res_path, usage, ctx.fragment_context)
        else:
            fragment = ctx.pipeline.compile_component(res_path, usage, ctx.fragment_context)

        contents = fragment.dom.children
        mark_compiled(contents)
        node.replace_self(contents)
        ctx.set_replaced()
