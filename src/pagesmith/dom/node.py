"""Document model.

A parsed template is a tree of six node kinds. Parent/child links are kept
on both sides: each parent owns an ordered child list and each child points
back at its parent. Every node also owns a Scope that chains to the scope of
its parent, so bindings declared on an ancestor are visible to descendants.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

from pagesmith.errors import InvalidNodeError, MissingAttributeError
from pagesmith.eval.scope import Scope


class NodeType(str, Enum):
    DOCUMENT = "document"
    TAG = "tag"
    TEXT = "text"
    COMMENT = "comment"
    CDATA = "cdata"
    PROCESSING_INSTRUCTION = "processing-instruction"


CloneCallback = Callable[["Node", "Node"], None]
TagMatcher = Union[str, Callable[["TagNode"], bool]]


class Node:
    """Common base of all node kinds."""

    node_type: NodeType

    def __init__(self) -> None:
        self.parent: Optional[ParentNode] = None
        self.scope = Scope()
        # markers set by compiler modules that must not re-process a node
        self.node_tags: set[str] = set()

    @property
    def prev_sibling(self) -> Optional["Node"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = self.parent.index_of(self)
        return siblings[index - 1] if index > 0 else None

    @property
    def next_sibling(self) -> Optional["Node"]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = self.parent.index_of(self)
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def detach(self) -> None:
        """Remove this node from its parent. Safe to call on a detached node."""
        if self.parent is None:
            return
        self.parent._children.pop(self.parent.index_of(self))
        self.parent = None
        self.scope.parent = None

    def remove_self(self, keep_children: bool = False) -> None:
        """Detach this node, optionally promoting its children into its place."""
        if keep_children and isinstance(self, ParentNode):
            self.replace_self(list(self.children))
        else:
            self.detach()

    def replace_self(self, nodes: Iterable["Node"]) -> None:
        """Splice ``nodes`` into this node's position and detach this node.

        Passing this node's own children unwraps it.
        """
        parent = self.parent
        if parent is None:
            raise InvalidNodeError("Cannot replace a node that has no parent")

        for node in list(nodes):
            if node is self:
                continue
            parent.insert_before(node, self)
        self.detach()

    def append_sibling(self, node: "Node") -> None:
        if self.parent is None:
            raise InvalidNodeError("Cannot add a sibling to a node that has no parent")
        self.parent.insert_after(node, self)

    def prepend_sibling(self, node: "Node") -> None:
        if self.parent is None:
            raise InvalidNodeError("Cannot add a sibling to a node that has no parent")
        self.parent.insert_before(node, self)

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "Node":
        raise NotImplementedError

    def is_tag(self, name: Optional[str] = None) -> bool:
        return False

    def _finish_clone(self, copy: "Node", callback: Optional[CloneCallback]) -> "Node":
        copy.scope.local.update(self.scope.local)
        copy.node_tags = set(self.node_tags)
        if callback is not None:
            callback(self, copy)
        return copy


class ParentNode(Node):
    """A node that can hold children."""

    def __init__(self) -> None:
        super().__init__()
        self._children: List[Node] = []

    @property
    def children(self) -> List[Node]:
        """Snapshot of the current children."""
        return list(self._children)

    @property
    def first_child(self) -> Optional[Node]:
        return self._children[0] if self._children else None

    @property
    def last_child(self) -> Optional[Node]:
        return self._children[-1] if self._children else None

    @property
    def has_children(self) -> bool:
        return bool(self._children)

    def index_of(self, child: Node) -> int:
        for index, node in enumerate(self._children):
            if node is child:
                return index
        raise InvalidNodeError("Node is not a child of this parent")

    def _adopt(self, node: Node) -> None:
        if isinstance(node, DocumentNode):
            raise InvalidNodeError("A document node cannot be inserted as a child")

        ancestor: Optional[Node] = self
        while ancestor is not None:
            if ancestor is node:
                raise InvalidNodeError("A node cannot be inserted into its own subtree")
            ancestor = ancestor.parent

        node.detach()
        node.parent = self
        node.scope.parent = self.scope

    def append_child(self, node: Node) -> None:
        self._adopt(node)
        self._children.append(node)

    def prepend_child(self, node: Node) -> None:
        self._adopt(node)
        self._children.insert(0, node)

    def append_children(self, nodes: Iterable[Node]) -> None:
        for node in list(nodes):
            self.append_child(node)

    def prepend_children(self, nodes: Iterable[Node]) -> None:
        for node in reversed(list(nodes)):
            self.prepend_child(node)

    def insert_before(self, node: Node, reference: Node) -> None:
        """Insert ``node`` immediately before ``reference``, one of our children."""
        self.index_of(reference)
        self._adopt(node)
        self._children.insert(self.index_of(reference), node)

    def insert_after(self, node: Node, reference: Node) -> None:
        """Insert ``node`` immediately after ``reference``, one of our children."""
        self.index_of(reference)
        self._adopt(node)
        self._children.insert(self.index_of(reference) + 1, node)

    def clear_children(self) -> None:
        for child in self.children:
            child.detach()

    def walk(self) -> Iterator[Node]:
        """Yield every descendant in document order."""
        for child in self.children:
            yield child
            if isinstance(child, ParentNode):
                yield from child.walk()

    def find_child_tag(self, matcher: TagMatcher, deep: bool = True) -> Optional["TagNode"]:
        for tag in self.find_child_tags(matcher, deep):
            return tag
        return None

    def find_child_tags(self, matcher: TagMatcher, deep: bool = True) -> List["TagNode"]:
        if isinstance(matcher, str):
            name = matcher
            matcher = lambda tag: tag.tag_name == name  # noqa: E731

        candidates = self.walk() if deep else iter(self.children)
        return [n for n in candidates if isinstance(n, TagNode) and matcher(n)]

    @property
    def text_content(self) -> str:
        """Concatenated text of every descendant text node."""
        return "".join(n.text for n in self.walk() if isinstance(n, TextNode))

    def create_dom_from_children(self) -> "DocumentNode":
        """Build a new document holding clones of this node's children."""
        dom = DocumentNode()
        for child in self._children:
            dom.append_child(child.clone(True))
        return dom

    def _clone_children_into(self, copy: "ParentNode", callback: Optional[CloneCallback]) -> None:
        for child in self._children:
            copy.append_child(child.clone(True, callback))


class DocumentNode(ParentNode):
    """Root of a tree. Never has a parent."""

    node_type = NodeType.DOCUMENT

    def set_root_scope(self, scope: Scope) -> None:
        """Chain the document's scope onto an outer (fragment) scope."""
        self.scope.parent = scope

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "DocumentNode":
        copy = DocumentNode()
        if deep:
            self._clone_children_into(copy, callback)
        self._finish_clone(copy, callback)
        return copy

    def __repr__(self) -> str:
        return f"<DocumentNode children={len(self._children)}>"


class TagNode(ParentNode):
    """An element with a name and ordered attributes.

    Attribute values start as strings (or None for bare attributes) but may
    hold any value once expressions have been evaluated.
    """

    node_type = NodeType.TAG

    def __init__(self, tag_name: str, attributes: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.tag_name = tag_name
        self.attributes: Dict[str, Any] = dict(attributes or {})

    def is_tag(self, name: Optional[str] = None) -> bool:
        return name is None or self.tag_name == name

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def has_value_attribute(self, name: str) -> bool:
        return self.attributes.get(name) is not None

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def get_required_attribute(self, name: str, res_path: Optional[str] = None) -> Any:
        """Return a raw attribute value, raising if it is absent or bare."""
        value = self.attributes.get(name)
        if value is None:
            raise MissingAttributeError(self.tag_name, name, res_path)
        return value

    def get_required_value_attribute(self, name: str, res_path: Optional[str] = None) -> str:
        return str(self.get_required_attribute(name, res_path))

    def get_optional_value_attribute(self, name: str) -> Optional[str]:
        value = self.attributes.get(name)
        return None if value is None else str(value)

    def set_attribute(self, name: str, value: Any = None) -> None:
        self.attributes[name] = value

    def delete_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "TagNode":
        copy = TagNode(self.tag_name, self.attributes)
        if deep:
            self._clone_children_into(copy, callback)
        self._finish_clone(copy, callback)
        return copy

    def __repr__(self) -> str:
        return f"<TagNode {self.tag_name} {self.attributes!r}>"


class CDataNode(ParentNode):
    node_type = NodeType.CDATA

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "CDataNode":
        copy = CDataNode()
        if deep:
            self._clone_children_into(copy, callback)
        self._finish_clone(copy, callback)
        return copy


class TextNode(Node):
    node_type = NodeType.TEXT

    def __init__(self, text: str = "", is_whitespace_sensitive: bool = False):
        super().__init__()
        self.text = text
        self.is_whitespace_sensitive = is_whitespace_sensitive

    @property
    def has_content(self) -> bool:
        """True if the text is not empty or pure whitespace."""
        return bool(self.text.strip())

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "TextNode":
        copy = TextNode(self.text, self.is_whitespace_sensitive)
        self._finish_clone(copy, callback)
        return copy

    def __repr__(self) -> str:
        return f"<TextNode {self.text!r}>"


class CommentNode(Node):
    node_type = NodeType.COMMENT

    def __init__(self, text: str = ""):
        super().__init__()
        self.text = text

    def clone(self, deep: bool = True, callback: Optional[CloneCallback] = None) -> "CommentNode":
        copy = CommentNode(self.text)
        self._finish_clone(copy, callback)
        return copy


class ProcessingInstructionNode(Node):
    """``<!doctype ...>`` and ``<?xml ...?>`` style instructions."""

    node_type = NodeType.PROCESSING_INSTRUCTION

    def __init__(self, name: str, data: str):
        super().__init__()
        self.name = name
        self.data = data

    def clone(
        self, deep: bool = True, callback: Optional[CloneCallback] = None
    ) -> "ProcessingInstructionNode":
        copy = ProcessingInstructionNode(self.name, self.data)
        self._finish_clone(copy, callback)
        return copy
