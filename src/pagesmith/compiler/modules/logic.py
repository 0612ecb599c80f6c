"""Structural directives: ``m-if`` / ``m-else-if`` / ``m-else`` and ``m-for``."""

from __future__ import annotations

from collections.abc import Iterable as IterableABC, Mapping, Sized
from typing import Any, Iterable, List, Optional, Tuple

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import CommentNode, Node, TagNode, TextNode
from pagesmith.errors import MissingAttributeError, StructuralError
from pagesmith.eval.scope import to_scope_name

M_IF = "m-if"
M_ELSE_IF = "m-else-if"
M_ELSE = "m-else"
M_FOR = "m-for"
M_SCOPE = "m-scope"

CONDITION_ATTRIBUTE = "?"


def _next_chain_member(node: Node) -> Optional[TagNode]:
    """Next else/else-if after ``node``, skipping whitespace and comments."""
    sibling = node.next_sibling
    while sibling is not None:
        if isinstance(sibling, TextNode) and not sibling.has_content:
            sibling = sibling.next_sibling
        elif isinstance(sibling, CommentNode):
            sibling = sibling.next_sibling
        elif isinstance(sibling, TagNode) and sibling.tag_name in (M_ELSE_IF, M_ELSE):
            return sibling
        else:
            return None
    return None


def iterate_for(node: TagNode, res_path: str) -> List[Tuple[Any, int]]:
    """Values to bind for each iteration of an m-for, with their index."""
    if node.has_attribute("of"):
        collection = node.get_attribute("of")
        if collection is None:
            return []
        if not isinstance(collection, IterableABC):
            raise _not_a_collection(collection, res_path)
        values: Iterable[Any] = collection
    elif node.has_attribute("in"):
        collection = node.get_attribute("in")
        if collection is None:
            return []
        if isinstance(collection, Mapping):
            values = collection.keys()
        elif isinstance(collection, Sized):
            values = range(len(collection))
        else:
            raise _not_a_collection(collection, res_path)
    else:
        raise MissingAttributeError(M_FOR, "of", res_path)

    if isinstance(values, str):
        raise StructuralError(
            f"<m-for> expects a collection, got the string '{values}'", res_path
        )
    return [(value, index) for index, value in enumerate(values)]


def _not_a_collection(value: Any, res_path: str) -> StructuralError:
    return StructuralError(
        f"<{M_FOR}> expects a collection, got {type(value).__name__} {value!r}", res_path
    )


class DomLogicModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode):
            return

        if node.tag_name in (M_IF, M_ELSE_IF):
            self._compile_condition(node, ctx)
        elif node.tag_name == M_ELSE:
            node.remove_self(keep_children=True)
            ctx.set_replaced()
        elif node.tag_name == M_FOR:
            self._compile_for(node, ctx)

    def _compile_condition(self, node: TagNode, ctx: CompilerContext) -> None:
        if not node.has_attribute(CONDITION_ATTRIBUTE):
            raise MissingAttributeError(node.tag_name, CONDITION_ATTRIBUTE, ctx.res_path)

        if node.get_attribute(CONDITION_ATTRIBUTE):
            # taken: drop the rest of the chain without evaluating it
            member = _next_chain_member(node)
            while member is not None:
                following = _next_chain_member(member) if member.tag_name == M_ELSE_IF else None
                member.detach()
                member = following
            node.remove_self(keep_children=True)
        else:
            # not taken: the next chain member gets its turn when the walk reaches it
            node.detach()
        ctx.set_replaced()

    def _compile_for(self, node: TagNode, ctx: CompilerContext) -> None:
        var_name = to_scope_name(node.get_required_value_attribute("var", ctx.res_path))
        index_attr = node.get_optional_value_attribute("index")
        index_name = to_scope_name(index_attr) if index_attr else None

        for value, index in iterate_for(node, ctx.res_path):
            iteration = TagNode(M_SCOPE)
            iteration.scope[var_name] = value
            if index_name is not None:
                iteration.scope[index_name] = index
            for child in node.children:
                iteration.append_child(child.clone(True))
            node.prepend_sibling(iteration)

        node.detach()
        ctx.set_replaced()
