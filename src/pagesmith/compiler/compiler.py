"""HTML compiler - walks a fragment tree through a chain of modules.

Every node is visited in document order. All modules get an ``enter_node``
call before the node's children are walked and an ``exit_node`` call after.
A module that deletes or replaces the node it was given marks the context,
which stops the remaining modules from seeing the stale node.

The walk keeps an explicit stack of frames rather than recursing, and each
frame finds its next child lazily. When the child just visited was removed
or replaced on enter, the frame backtracks to the sibling saved before the
visit (or to the parent's first child) so that replacement nodes are walked
too. Nodes replaced on exit were already walked, so the frame moves on to
the sibling that followed them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from pagesmith.dom.node import DocumentNode, Node, ParentNode
from pagesmith.eval.context import EvalContext
from pagesmith.eval.scope import Scope

if TYPE_CHECKING:
    from pagesmith.pipeline.context import FragmentContext
    from pagesmith.pipeline.fragment import Fragment
    from pagesmith.pipeline.pipeline import Pipeline

log = logging.getLogger(__name__)

# Set on nodes that were already compiled by a nested compile (fragment
# output, slot fills) so the enclosing walk leaves them alone.
NODE_TAG_COMPILED = "compiler.compiled"


class Disposition(str, Enum):
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    REPLACED = "replaced"


@dataclass
class ImportDefinition:
    alias: str
    src: str
    kind: str  # "fragment" or "component"


@dataclass
class SharedContext:
    """State common to every node of one fragment compile."""

    pipeline: "Pipeline"
    fragment: "Fragment"
    fragment_context: "FragmentContext"


class CompilerContext:
    """Per-node compile state, chained to the parent node's context."""

    def __init__(self, shared: SharedContext, node: Node, parent: Optional["CompilerContext"] = None):
        self.shared = shared
        self.node = node
        self.parent = parent
        self.disposition = Disposition.UNCHANGED
        self._imports: Dict[str, ImportDefinition] = {}

    @property
    def pipeline(self) -> "Pipeline":
        return self.shared.pipeline

    @property
    def fragment_context(self) -> "FragmentContext":
        return self.shared.fragment_context

    @property
    def res_path(self) -> str:
        return self.shared.fragment_context.fragment_res_path

    @property
    def is_deleted(self) -> bool:
        return self.disposition != Disposition.UNCHANGED

    def set_deleted(self) -> None:
        self.disposition = Disposition.DELETED

    def set_replaced(self) -> None:
        self.disposition = Disposition.REPLACED

    def child(self, node: Node) -> "CompilerContext":
        return CompilerContext(self.shared, node, self)

    def define_import(self, definition: ImportDefinition) -> None:
        self._imports[definition.alias] = definition

    def get_import(self, alias: str) -> Optional[ImportDefinition]:
        ctx: Optional[CompilerContext] = self
        while ctx is not None:
            if alias in ctx._imports:
                return ctx._imports[alias]
            ctx = ctx.parent
        return None

    def parent_scope(self) -> Scope:
        """Scope of the parent node, or the fragment scope at the root."""
        if self.node.parent is not None:
            return self.node.parent.scope
        return self.fragment_context.scope

    def create_eval_context(self, scope: Optional[Scope] = None) -> EvalContext:
        return EvalContext(
            scope=scope if scope is not None else self.node.scope,
            pipeline=self.pipeline,
            node=self.node,
            fragment_context=self.fragment_context,
        )

    def evaluate(self, text: str, scope: Optional[Scope] = None) -> Any:
        return self.pipeline.compile_expression(text, self.create_eval_context(scope))


class CompilerModule:
    """Base class for compiler modules. Both hooks are optional."""

    def enter_node(self, ctx: CompilerContext) -> None:
        pass

    def exit_node(self, ctx: CompilerContext) -> None:
        pass


class _Frame:
    def __init__(self, ctx: CompilerContext):
        self.ctx = ctx
        self.started = False
        self.current: Optional[Node] = None
        self.saved_prev: Optional[Node] = None
        self.saved_next: Optional[Node] = None
        self.current_exited = False

    def next_child(self) -> Optional[Node]:
        parent = self.ctx.node
        assert isinstance(parent, ParentNode)

        if not self.started:
            self.started = True
            return parent.first_child

        current = self.current
        if current is None:
            return None
        if current.parent is not parent:
            if self.current_exited:
                # replaced after its subtree was walked: skip the replacement
                if self.saved_next is None or self.saved_next.parent is parent:
                    return self.saved_next
            # removed or replaced: resume after the sibling we saved
            if self.saved_prev is not None and self.saved_prev.parent is parent:
                return self.saved_prev.next_sibling
            return parent.first_child
        return current.next_sibling


def default_modules() -> List[CompilerModule]:
    from pagesmith.compiler.modules import (
        AnchorModule,
        DeduplicateModule,
        DomLogicModule,
        ExpressionModule,
        ImportModule,
        ReferenceModule,
        ScriptModule,
        SlotModule,
        StyleModule,
        VarModule,
        WhitespaceModule,
    )

    # order matters: expressions and scopes first, then structure, then
    # content, then references which splice in other fragments
    return [
        ExpressionModule(),
        VarModule(),
        ScriptModule(),
        SlotModule(),
        DomLogicModule(),
        ImportModule(),
        StyleModule(),
        DeduplicateModule(),
        AnchorModule(),
        WhitespaceModule(),
        ReferenceModule(),
    ]


class HtmlCompiler:
    """Runs every compiler module over a fragment's tree."""

    def __init__(self, modules: Optional[Sequence[CompilerModule]] = None):
        self.modules = list(modules) if modules is not None else default_modules()

    def compile_fragment(
        self,
        fragment: "Fragment",
        pipeline: "Pipeline",
        fragment_context: "FragmentContext",
    ) -> None:
        """Compile ``fragment.dom`` in place."""
        shared = SharedContext(pipeline, fragment, fragment_context)
        root = CompilerContext(shared, fragment.dom)
        log.debug("Compiling fragment %s", fragment.path)
        self._walk(root)

    def _walk(self, root: CompilerContext) -> None:
        if not self._enter(root):
            return

        stack: List[_Frame] = []
        if self._can_descend(root.node):
            stack.append(_Frame(root))
        else:
            self._exit(root)
            return

        while stack:
            frame = stack[-1]
            child = frame.next_child()

            if child is None:
                stack.pop()
                self._exit(frame.ctx)
                if stack:
                    stack[-1].current_exited = True
                continue

            frame.current = child
            frame.saved_prev = child.prev_sibling
            frame.saved_next = child.next_sibling
            frame.current_exited = False

            if NODE_TAG_COMPILED in child.node_tags:
                continue

            child_ctx = frame.ctx.child(child)
            if not self._enter(child_ctx):
                continue

            if self._can_descend(child):
                stack.append(_Frame(child_ctx))
            else:
                self._exit(child_ctx)
                frame.current_exited = True

    def _enter(self, ctx: CompilerContext) -> bool:
        for module in self.modules:
            module.enter_node(ctx)
            if ctx.is_deleted:
                return False
        return True

    def _exit(self, ctx: CompilerContext) -> None:
        for module in self.modules:
            module.exit_node(ctx)
            if ctx.is_deleted:
                return

    @staticmethod
    def _can_descend(node: Node) -> bool:
        if not isinstance(node, ParentNode):
            return False
        # a detached node's children are no longer part of the tree
        return isinstance(node, DocumentNode) or node.parent is not None
