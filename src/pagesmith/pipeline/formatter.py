"""HTML formatters.

A formatter gets two chances to touch a page: ``format_dom`` rewrites the
compiled tree in place (merging adjacent text and re-indenting) and
``format_html`` post-processes the serialized text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Union

from pagesmith.dom.node import (
    CDataNode,
    CommentNode,
    DocumentNode,
    Node,
    ParentNode,
    TagNode,
    TextNode,
)

_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
_SINGLE_LINE_RE = re.compile(r"^\s*(\S| )+\s*$")

# Elements whose content is never reflowed.
PRESERVE_WHITESPACE_TAGS = frozenset({"pre", "textarea", "script", "style"})


class HtmlFormatter(Protocol):
    def format_dom(self, dom: DocumentNode) -> None: ...

    def format_html(self, html: str) -> str: ...


class FormatterMode(str, Enum):
    PRETTY = "pretty"
    MINIMIZED = "minimized"
    NONE = "none"


@dataclass(frozen=True)
class FormatterOptions:
    mode: FormatterMode
    indent: str = ""
    end_of_line: str = ""
    strip_comments: bool = False
    strip_cdata: bool = False


PRESETS = {
    FormatterMode.NONE: FormatterOptions(FormatterMode.NONE),
    FormatterMode.PRETTY: FormatterOptions(
        FormatterMode.PRETTY, indent="    ", end_of_line="\n", strip_cdata=True
    ),
    FormatterMode.MINIMIZED: FormatterOptions(
        FormatterMode.MINIMIZED, strip_comments=True, strip_cdata=True
    ),
}


class StandardHtmlFormatter:
    """Pretty, minimized or pass-through formatting."""

    def __init__(self, options: Union[FormatterOptions, FormatterMode, str, None] = None):
        if options is None:
            options = FormatterMode.NONE
        if not isinstance(options, FormatterOptions):
            options = PRESETS[FormatterMode(options)]
        self.options = options

    @property
    def mode(self) -> FormatterMode:
        return self.options.mode

    def format_dom(self, dom: DocumentNode) -> None:
        if self.mode == FormatterMode.NONE:
            return

        if self.options.strip_comments:
            for node in list(dom.walk()):
                if isinstance(node, CommentNode):
                    node.detach()

        if self.options.strip_cdata:
            for node in list(dom.walk()):
                if isinstance(node, CDataNode):
                    node.detach()

        if dom.first_child is not None:
            self._format_whitespace(dom.first_child, 0)

    def format_html(self, html: str) -> str:
        if self.mode == FormatterMode.NONE:
            return html
        return html.strip()

    def _format_whitespace(self, start: Node, depth: int) -> None:
        current: Optional[Node] = start

        while current is not None:
            content = _content_node(current)

            text = _get_or_insert_text_node(current)
            _absorb_adjacent_text(text)
            self._format_text(text, depth)

            if content is None:
                break

            if (
                isinstance(content, ParentNode)
                and content.first_child is not None
                and not _preserves_whitespace(content)
            ):
                self._format_whitespace(content.first_child, depth + 1)

            next_node = content.next_sibling
            if next_node is None:
                # trailing text node carries the closing indentation
                next_node = TextNode()
                content.append_sibling(next_node)
            current = next_node

    def _format_text(self, text: TextNode, depth: int) -> None:
        if text.is_whitespace_sensitive:
            return

        content = _extract_text_content(text)

        if self.mode == FormatterMode.MINIMIZED or _is_inline_text(text):
            if content is None:
                text.detach()
            else:
                text.text = content
            return

        parts = [self.options.end_of_line]
        if content is not None:
            parts.append(self.options.indent * depth)
            parts.append(content.strip())
            parts.append(self.options.end_of_line)

        closing_depth = depth if text.next_sibling is not None else depth - 1
        parts.append(self.options.indent * max(closing_depth, 0))
        text.text = "".join(parts)


def create_formatter(mode: Union[FormatterMode, str]) -> StandardHtmlFormatter:
    return StandardHtmlFormatter(FormatterMode(mode))


def _preserves_whitespace(node: Node) -> bool:
    return isinstance(node, TagNode) and node.tag_name in PRESERVE_WHITESPACE_TAGS


def _content_node(start: Node) -> Optional[Node]:
    current: Optional[Node] = start
    while isinstance(current, TextNode):
        current = current.next_sibling
    return current


def _get_or_insert_text_node(start: Node) -> TextNode:
    if isinstance(start, TextNode):
        return start
    text = TextNode()
    start.prepend_sibling(text)
    return text


def _absorb_adjacent_text(text: TextNode) -> None:
    parts = [text.text]
    current = text.next_sibling
    while isinstance(current, TextNode):
        following = current.next_sibling
        parts.append(current.text)
        text.is_whitespace_sensitive = text.is_whitespace_sensitive or current.is_whitespace_sensitive
        current.detach()
        current = following
    text.text = "".join(parts)


def _extract_text_content(text: TextNode) -> Optional[str]:
    if not text.has_content:
        return None
    return _WHITESPACE_RUN_RE.sub(" ", text.text)


def _is_inline_text(text: TextNode) -> bool:
    # a lone text child holding at most one line of content
    return (
        text.prev_sibling is None
        and text.next_sibling is None
        and _SINGLE_LINE_RE.match(text.text) is not None
    )
