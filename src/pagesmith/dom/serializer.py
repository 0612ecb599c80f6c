"""Serialize a document tree back into HTML text."""

from __future__ import annotations

from typing import Any, List

from pagesmith.dom.node import (
    CDataNode,
    CommentNode,
    DocumentNode,
    Node,
    ParentNode,
    ProcessingInstructionNode,
    TagNode,
    TextNode,
)
from pagesmith.dom.parser import VOID_TAGS
from pagesmith.errors import InvalidNodeError

_RAW_TEXT_TAGS = frozenset({"script", "style"})


def serialize(node: Node) -> str:
    """Render ``node`` and its descendants as HTML."""
    html: List[str] = []
    _serialize_node(node, html)
    return "".join(html)


def _serialize_node(node: Node, html: List[str]) -> None:
    if isinstance(node, TagNode):
        _serialize_tag(node, html)
    elif isinstance(node, TextNode):
        html.append(_escape_text(node))
    elif isinstance(node, CommentNode):
        html.append(f"<!--{node.text}-->")
    elif isinstance(node, CDataNode):
        html.append("<![CDATA[")
        _serialize_children(node, html)
        html.append("]]>")
    elif isinstance(node, ProcessingInstructionNode):
        if "<" in node.data or ">" in node.data:
            raise InvalidNodeError(f"Invalid processing instruction: {node.data}")
        html.append(f"<{node.data}>")
    elif isinstance(node, DocumentNode):
        _serialize_children(node, html)
    else:
        raise InvalidNodeError(f"Unknown node type: {type(node).__name__}")


def _serialize_tag(tag: TagNode, html: List[str]) -> None:
    name = tag.tag_name.lower()
    _validate_tag_text(name)

    html.append("<")
    html.append(name)
    for key, value in tag.attributes.items():
        _validate_tag_text(key)
        html.append(" ")
        html.append(key)
        if value is not None:
            html.append('="')
            html.append(_escape_attribute(value))
            html.append('"')

    if name in VOID_TAGS:
        html.append(" />")
        return

    html.append(">")
    _serialize_children(tag, html)
    html.append(f"</{name}>")


def _serialize_children(parent: ParentNode, html: List[str]) -> None:
    for child in parent.children:
        _serialize_node(child, html)


def _escape_text(text: TextNode) -> str:
    # text is stored as it appeared in the source, entity references included
    parent = text.parent
    if isinstance(parent, TagNode) and parent.tag_name in _RAW_TEXT_TAGS:
        return text.text
    return text.text.replace("<", "&lt;").replace(">", "&gt;")


def _escape_attribute(value: Any) -> str:
    if isinstance(value, bool):
        value = str(value).lower()
    return str(value).replace("&", "&amp;").replace('"', "&quot;")


def _validate_tag_text(text: str) -> None:
    if any(c in text for c in '<>"&'):
        raise InvalidNodeError(f"Invalid tag text: {text}")
