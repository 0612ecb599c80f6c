"""Document model, HTML parser and serializer."""

from pagesmith.dom.node import (
    CDataNode,
    CommentNode,
    DocumentNode,
    Node,
    NodeType,
    ParentNode,
    ProcessingInstructionNode,
    TagNode,
    TextNode,
)
from pagesmith.dom.parser import DomBuilder, DomParser, HtmlTokenizer, parse_html
from pagesmith.dom.serializer import serialize

__all__ = [
    "CDataNode",
    "CommentNode",
    "DocumentNode",
    "DomBuilder",
    "DomParser",
    "HtmlTokenizer",
    "Node",
    "NodeType",
    "ParentNode",
    "ProcessingInstructionNode",
    "TagNode",
    "TextNode",
    "parse_html",
    "serialize",
]
