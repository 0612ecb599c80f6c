"""Turn a compiled fragment tree into a complete HTML page."""

from __future__ import annotations

from typing import List

from pagesmith.dom.node import DocumentNode, Node, ProcessingInstructionNode, TagNode

HEAD_TAGS = frozenset({"style", "link", "meta", "title", "base", "head"})
BODY_PROMOTE_TAGS = frozenset({"html", "body"})


def build_page(dom: DocumentNode) -> None:
    """Normalise ``dom`` into ``<!doctype?><html><head/><body/></html>``.

    Processing instructions are hoisted to the top, duplicate ``html`` tags
    are merged, head-only elements are gathered into ``head`` (with a
    ``title`` added if missing) and everything else goes into ``body``.
    """
    instructions: List[Node] = [
        n for n in dom.walk() if isinstance(n, ProcessingInstructionNode)
    ]
    for instruction in instructions:
        instruction.detach()

    html = _create_html(dom)
    head = _create_head(html)
    body = _create_body(html)

    dom.clear_children()
    html.clear_children()

    dom.append_children(instructions)
    dom.append_child(html)
    html.append_child(head)
    html.append_child(body)


def _create_html(dom: DocumentNode) -> TagNode:
    html_tags = dom.find_child_tags("html")
    if not html_tags:
        html = TagNode("html")
        html.append_children(dom.children)
        return html

    first = html_tags[0]
    first.detach()
    for other in html_tags[1:]:
        other.detach()
        first.append_children(other.children)

    # stray content outside of <html> still belongs to the page
    first.append_children(dom.children)
    return first


def _create_head(root: TagNode) -> TagNode:
    head = TagNode("head")
    head.append_children(root.find_child_tags(lambda tag: tag.tag_name in HEAD_TAGS))

    for nested in head.find_child_tags("head"):
        nested.remove_self(keep_children=True)

    if head.find_child_tag("title", deep=False) is None:
        head.append_child(TagNode("title"))

    return head


def _create_body(root: TagNode) -> TagNode:
    body = TagNode("body")
    body.append_children(root.children)

    for nested in body.find_child_tags(lambda tag: tag.tag_name in BODY_PROMOTE_TAGS):
        nested.remove_self(keep_children=True)

    return body
