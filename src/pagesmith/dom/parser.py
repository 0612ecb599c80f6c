"""HTML parser.

Parsing is split in two halves:

- ``DomBuilder`` consumes a push-style token protocol (open tag, text,
  comment, CDATA start/end, processing instruction, close tag, reset and
  error) and assembles a document tree.
- ``HtmlTokenizer`` drives a ``DomBuilder`` from the standard library's
  ``html.parser.HTMLParser``.

Adjacent text tokens are kept as separate text nodes; merging them is left
to the formatter.
"""

from __future__ import annotations

import logging
from html.parser import HTMLParser
from typing import Iterable, List, Optional, Tuple

from pagesmith.dom.node import (
    CDataNode,
    CommentNode,
    DocumentNode,
    ParentNode,
    ProcessingInstructionNode,
    TagNode,
    TextNode,
)
from pagesmith.errors import TemplateParseError

log = logging.getLogger(__name__)


# Elements that never have content and so never receive a close tag.
VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "menuitem",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class DomBuilder:
    """Builds a DocumentNode from parser callbacks."""

    def __init__(self, res_path: Optional[str] = None):
        self.res_path = res_path
        self.dom = DocumentNode()
        self._stack: List[ParentNode] = [self.dom]

    @property
    def current_parent(self) -> ParentNode:
        return self._stack[-1]

    def on_reset(self) -> None:
        """Discard everything built so far and start a fresh document."""
        self.dom = DocumentNode()
        self._stack = [self.dom]

    def on_open_tag(self, name: str, attributes: Iterable[Tuple[str, Optional[str]]]) -> None:
        attrs = {}
        for key, value in attributes:
            # empty and bare attributes are both stored without a value
            attrs[key] = value if value else None

        tag = TagNode(name, attrs)
        self.current_parent.append_child(tag)
        self._stack.append(tag)

    def on_close_tag(self, name: str) -> None:
        # close the nearest open tag with this name, implicitly closing
        # anything opened after it
        for depth in range(len(self._stack) - 1, 0, -1):
            node = self._stack[depth]
            if isinstance(node, TagNode) and node.tag_name == name:
                del self._stack[depth:]
                return
        log.debug("Ignoring unmatched close tag </%s> in %s", name, self.res_path)

    def on_text(self, text: str) -> None:
        self.current_parent.append_child(TextNode(text))

    def on_comment(self, text: str) -> None:
        self.current_parent.append_child(CommentNode(text))

    def on_cdata_start(self) -> None:
        cdata = CDataNode()
        self.current_parent.append_child(cdata)
        self._stack.append(cdata)

    def on_cdata_end(self) -> None:
        if not isinstance(self.current_parent, CDataNode):
            raise TemplateParseError("CDATA section closed but never opened", self.res_path)
        self._stack.pop()

    def on_processing_instruction(self, name: str, data: str) -> None:
        self.current_parent.append_child(ProcessingInstructionNode(name, data))

    def on_error(self, error: BaseException) -> None:
        raise TemplateParseError(f"Malformed HTML: {error}", self.res_path) from error

    def finish(self) -> DocumentNode:
        """Close any tags left open and return the finished document."""
        del self._stack[1:]
        return self.dom


class HtmlTokenizer(HTMLParser):
    """Feeds ``HTMLParser`` events into a DomBuilder."""

    def __init__(self, builder: DomBuilder):
        self.builder = builder
        super().__init__(convert_charrefs=False)

    def reset(self) -> None:
        super().reset()
        # HTMLParser.__init__ calls reset() before the builder exists
        builder = getattr(self, "builder", None)
        if builder is not None:
            builder.on_reset()

    def handle_starttag(self, tag, attrs):
        self.builder.on_open_tag(tag, attrs)
        if tag in VOID_TAGS:
            self.builder.on_close_tag(tag)

    def handle_startendtag(self, tag, attrs):
        self.builder.on_open_tag(tag, attrs)
        self.builder.on_close_tag(tag)

    def handle_endtag(self, tag):
        if tag not in VOID_TAGS:
            self.builder.on_close_tag(tag)

    def handle_data(self, data):
        self.builder.on_text(data)

    def handle_entityref(self, name):
        self.builder.on_text(f"&{name};")

    def handle_charref(self, name):
        self.builder.on_text(f"&#{name};")

    def handle_comment(self, data):
        self.builder.on_comment(data)

    def handle_decl(self, decl):
        name = decl.split(maxsplit=1)[0].lower() if decl.strip() else ""
        self.builder.on_processing_instruction(f"!{name}", f"!{decl}")

    def handle_pi(self, data):
        name = data.split(maxsplit=1)[0] if data.strip() else ""
        self.builder.on_processing_instruction(f"?{name.rstrip('?')}", f"?{data}")

    def unknown_decl(self, data):
        if data.startswith("CDATA["):
            self.builder.on_cdata_start()
            if len(data) > 6:
                self.builder.on_text(data[6:])
            self.builder.on_cdata_end()
        else:
            self.handle_decl(data)


class DomParser:
    """Parses HTML text into a DocumentNode."""

    def parse(self, html: str, res_path: Optional[str] = None) -> DocumentNode:
        builder = DomBuilder(res_path)
        tokenizer = HtmlTokenizer(builder)
        try:
            tokenizer.feed(html)
            tokenizer.close()
        except TemplateParseError:
            raise
        except (AssertionError, ValueError) as exc:
            builder.on_error(exc)
        return builder.finish()


def parse_html(html: str, res_path: Optional[str] = None) -> DocumentNode:
    """Parse a string of HTML into a new document."""
    return DomParser().parse(html, res_path)
