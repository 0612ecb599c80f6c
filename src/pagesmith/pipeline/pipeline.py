"""Pipeline - drives parse, compile, format, serialize and write.

One Pipeline owns the caches, the compiler and the script engine. Fragment
references re-enter the pipeline recursively through ``compile_fragment``
and ``compile_component``; nothing runs concurrently.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Callable, Dict, Optional

from pagesmith.compiler.compiler import HtmlCompiler
from pagesmith.dom.parser import DomParser
from pagesmith.dom.node import TagNode, TextNode
from pagesmith.dom.serializer import serialize
from pagesmith.errors import (
    EvaluationError,
    PagesmithError,
    ReferenceCycleError,
    ReferenceResolutionError,
    ResourceIOError,
)
from pagesmith.eval.context import EvalContext
from pagesmith.eval.engine import ScriptEngine, StandardScriptEngine
from pagesmith.eval.scope import Scope
from pagesmith.pipeline.cache import CreatedResource, PipelineCache
from pagesmith.pipeline.component_parser import ComponentParser
from pagesmith.pipeline.context import FragmentContext, UsageContext
from pagesmith.pipeline.formatter import HtmlFormatter, StandardHtmlFormatter
from pagesmith.pipeline.fragment import Component, Fragment, Page
from pagesmith.pipeline.io import PipelineIO, ResourceType, hash_content
from pagesmith.pipeline.page_builder import build_page
from pagesmith.pipeline.paths import compute_relative_path, normalize_res_path, resolve_res_path

log = logging.getLogger(__name__)

PageCallback = Callable[[Page], None]


class Pipeline:
    """Compiles pages and fragments.

    Args:
        io: Source/destination I/O.
        formatter: Applied to every page; defaults to no formatting.
        engine: Script engine for expressions and scripts.
        global_vars: Root-scope bindings visible inside every fragment.
        on_page_compiled: Called with each Page after it is written.
    """

    def __init__(
        self,
        io: PipelineIO,
        formatter: Optional[HtmlFormatter] = None,
        engine: Optional[ScriptEngine] = None,
        global_vars: Optional[Dict[str, Any]] = None,
        on_page_compiled: Optional[PageCallback] = None,
    ):
        self.io = io
        self.formatter = formatter or StandardHtmlFormatter()
        self.engine = engine or StandardScriptEngine()
        self.root_scope = Scope(global_vars)
        self.on_page_compiled = on_page_compiled
        self.cache = PipelineCache()
        self.compiler = HtmlCompiler()
        self.dom_parser = DomParser()
        self.component_parser = ComponentParser(self)

    def compile_page(self, res_path: str) -> Page:
        """Compile, format and write one page.

        Pages are parsed fresh every time and never enter the fragment cache.
        """
        res_path = normalize_res_path(res_path)
        log.debug("Compiling page %s", res_path)

        html = self.get_raw_text(res_path, ResourceType.HTML)
        fragment = Fragment(res_path, self.dom_parser.parse(html, res_path), is_page=True)
        self.compiler.compile_fragment(fragment, self, self._root_context(res_path))

        dom = fragment.dom
        build_page(dom)
        self.formatter.format_dom(dom)
        output = self.formatter.format_html(serialize(dom))

        self.io.write_resource(ResourceType.HTML, res_path, output)

        page = Page(path=res_path, dom=dom, html=output)
        if self.on_page_compiled is not None:
            self.on_page_compiled(page)
        return page

    def compile_fragment(
        self,
        res_path: str,
        usage: Optional[UsageContext] = None,
        parent_context: Optional[FragmentContext] = None,
    ) -> Fragment:
        """Compile a fragment into a tree without serializing it.

        Without ``parent_context`` the fragment is its own root and gets
        formatted; nested fragments are formatted with their page.
        """
        res_path = normalize_res_path(res_path)
        context = self._fragment_context(res_path, usage, parent_context)
        fragment = self.get_fragment(res_path, parent_context)

        self.compiler.compile_fragment(fragment, self, context)

        if parent_context is None:
            self.formatter.format_dom(fragment.dom)
        return fragment

    def compile_component(
        self,
        res_path: str,
        usage: Optional[UsageContext] = None,
        parent_context: Optional[FragmentContext] = None,
    ) -> Fragment:
        """Instantiate a component: run its script, then compile its template."""
        res_path = normalize_res_path(res_path)
        context = self._fragment_context(res_path, usage, parent_context)
        component = self.get_component(res_path, parent_context)

        eval_context = EvalContext(scope=context.scope, pipeline=self, fragment_context=context)
        context.scope.update(self.run_script(component.script, eval_context))

        dom = component.template
        if component.style is not None:
            style = TagNode("style", {"compiled": None, "bind": component.style.bind.value})
            style.append_child(TextNode(component.style.text))
            dom.prepend_child(style)

        fragment = Fragment(res_path, dom)
        self.compiler.compile_fragment(fragment, self, context)

        if parent_context is None:
            self.formatter.format_dom(fragment.dom)
        return fragment

    def get_fragment(self, res_path: str, referrer: Optional[FragmentContext] = None) -> Fragment:
        """Return a private copy of a parsed fragment, parsing it on first use."""
        if self.cache.fragments.has(res_path):
            fragment = self.cache.fragments.get(res_path)
        else:
            html = self._read_reference(res_path, ResourceType.HTML, "fragment", referrer)
            fragment = Fragment(res_path, self.dom_parser.parse(html, res_path))
            self.cache.fragments.store(res_path, fragment)
        return fragment.clone()

    def get_component(self, res_path: str, referrer: Optional[FragmentContext] = None) -> Component:
        if self.cache.components.has(res_path):
            component = self.cache.components.get(res_path)
        else:
            html = self._read_reference(res_path, ResourceType.HTML, "component", referrer)
            component = self.component_parser.parse(res_path, html)
            self.cache.components.store(res_path, component)
        return component.clone()

    def compile_expression(self, text: str, context: EvalContext) -> Any:
        """Evaluate template text containing ``{{ }}`` or ``${ }``."""
        try:
            if self.cache.expressions.has(text):
                function = self.cache.expressions.get(text)
            else:
                function = self.engine.compile_expression(text)
                self.cache.expressions.store(text, function)
            return function(context)
        except PagesmithError:
            raise
        except Exception as exc:
            raise EvaluationError(text, exc, context.res_path) from exc

    def run_script(self, script: str, context: EvalContext) -> Dict[str, Any]:
        """Execute a Python script and return the bindings it produced."""
        try:
            if self.cache.scripts.has(script):
                function = self.cache.scripts.get(script)
            else:
                function = self.engine.compile_script(script)
                self.cache.scripts.store(script, function)
            return function(context)
        except PagesmithError:
            raise
        except Exception as exc:
            raise EvaluationError(script, exc, context.res_path) from exc

    def require(self, path: str, from_res_path: Optional[str] = None) -> ModuleType:
        """Load a Python helper module by resource path."""
        res_path = resolve_res_path(path, from_res_path)
        if self.cache.modules.has(res_path):
            return self.cache.modules.get(res_path)

        source = self.get_raw_text(res_path, ResourceType.PYTHON)
        module = ModuleType(res_path.rsplit("/", 1)[-1].rsplit(".", 1)[0])
        module.__file__ = res_path
        exec(compile(source, res_path, "exec"), module.__dict__)

        self.cache.modules.store(res_path, module)
        return module

    def get_raw_text(self, res_path: str, kind: ResourceType = ResourceType.TEXT) -> str:
        return self.io.get_resource(kind, res_path)

    def link_resource(self, kind: ResourceType, contents: str, root_res_path: str) -> str:
        """Materialize ``contents`` once and return its path relative to the page."""
        res_path = self._create_linkable_resource(kind, contents)
        return compute_relative_path(root_res_path, res_path)

    def reset(self) -> None:
        """Drop every cache."""
        self.cache.clear()

    def _create_linkable_resource(self, kind: ResourceType, contents: str) -> str:
        content_hash = hash_content(contents)
        name = content_hash
        suffix = 0

        # a hash hit only counts if the stored content is identical
        while self.cache.created_resources.has(f"{kind.value}:{name}"):
            created = self.cache.created_resources.get(f"{kind.value}:{name}")
            if created.contents == contents:
                return created.res_path
            suffix += 1
            name = f"{content_hash}-{suffix}"
            log.warning("Resource hash collision on %s, using %s", content_hash, name)

        res_path = self.io.create_resource(kind, contents, name)
        self.cache.created_resources.store(f"{kind.value}:{name}", CreatedResource(res_path, contents))
        return res_path

    def _read_reference(
        self, res_path: str, kind: ResourceType, label: str, referrer: Optional[FragmentContext]
    ) -> str:
        try:
            return self.get_raw_text(res_path, kind)
        except ResourceIOError as exc:
            source = referrer.fragment_res_path if referrer is not None else None
            raise ReferenceResolutionError(res_path, label, source) from exc

    def _root_context(self, res_path: str) -> FragmentContext:
        return FragmentContext(
            scope=self.root_scope.child(),
            fragment_res_path=res_path,
            root_res_path=res_path,
            reference_chain=(res_path,),
        )

    def _fragment_context(
        self,
        res_path: str,
        usage: Optional[UsageContext],
        parent_context: Optional[FragmentContext],
    ) -> FragmentContext:
        usage = usage or UsageContext()
        if parent_context is None:
            context = self._root_context(res_path)
            context.scope.update(usage.parameters)
            context.slot_contents = usage.slot_contents
            return context

        chain = parent_context.reference_chain
        if res_path in chain:
            cycle = chain[chain.index(res_path) :] + (res_path,)
            raise ReferenceCycleError(cycle, parent_context.fragment_res_path)
        return parent_context.create_sub_context(res_path, usage, self.root_scope)
