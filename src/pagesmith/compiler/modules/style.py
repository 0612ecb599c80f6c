"""``<style compiled>``: inline or linked stylesheets."""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.compiler.modules.script import parse_bind, read_section
from pagesmith.dom.node import TagNode, TextNode
from pagesmith.pipeline.fragment import StyleBind
from pagesmith.pipeline.io import ResourceType


class StyleModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not (
            isinstance(node, TagNode)
            and node.tag_name == "style"
            and node.has_attribute("compiled")
        ):
            return

        bind = parse_bind(node, ctx)
        content = read_section(node, ctx, ResourceType.CSS)

        if bind == StyleBind.LINK:
            href = ctx.pipeline.link_resource(
                ResourceType.CSS, content, ctx.fragment_context.root_res_path
            )
            replacement = TagNode("link", {"rel": "stylesheet", "href": href})
        else:
            replacement = TagNode("style")
            replacement.append_child(TextNode(content))

        node.replace_self([replacement])
        ctx.set_replaced()
