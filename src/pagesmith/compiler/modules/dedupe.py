"""Drop repeated stylesheets and links within one page."""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import TagNode

NODE_TAG_DEDUPLICATED = "dedupe.processed"


class DeduplicateModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode) or NODE_TAG_DEDUPLICATED in node.node_tags:
            return
        node.node_tags.add(NODE_TAG_DEDUPLICATED)

        if node.tag_name == "style" and not node.has_attribute("compiled"):
            self._dedupe_style(node, ctx)
        elif node.tag_name == "link":
            self._dedupe_link(node, ctx)

    def _dedupe_style(self, node: TagNode, ctx: CompilerContext) -> None:
        styles = ctx.fragment_context.styles_in_page
        text = node.text_content

        if text.strip() and text not in styles:
            styles.add(text)
        else:
            node.detach()
            ctx.set_deleted()

    def _dedupe_link(self, node: TagNode, ctx: CompilerContext) -> None:
        href = node.get_optional_value_attribute("href")
        if href is None:
            return

        links = ctx.fragment_context.links_in_page
        if href in links:
            node.detach()
            ctx.set_deleted()
        else:
            links.add(href)
