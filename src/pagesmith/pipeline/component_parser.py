"""Split a component file into its template, script and style sections."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Set

from pagesmith.dom.node import DocumentNode, TagNode
from pagesmith.dom.parser import DomParser
from pagesmith.errors import ComponentFormatError
from pagesmith.pipeline.fragment import Component, ComponentStyle, StyleBind
from pagesmith.pipeline.io import ResourceType
from pagesmith.pipeline.paths import resolve_res_path

if TYPE_CHECKING:
    from pagesmith.pipeline.pipeline import Pipeline


class ComponentParser:
    """Parses component files.

    A component has a required ``<template>``, a required ``<script>`` and
    an optional ``<style bind="head|link">``. Each section may hold its
    content inline or point at another file with ``src``.
    """

    def __init__(self, pipeline: "Pipeline", dom_parser: Optional[DomParser] = None):
        self.pipeline = pipeline
        self.dom_parser = dom_parser or DomParser()

    def parse(self, res_path: str, html: str) -> Component:
        dom = self.dom_parser.parse(html, res_path)
        sources: Set[str] = set()

        template_node = self._required_section(dom, "template", res_path)
        template_src = template_node.get_optional_value_attribute("src")
        if template_src is not None:
            template_path = resolve_res_path(template_src, res_path)
            sources.add(template_path)
            template = self.pipeline.get_fragment(template_path).dom
        else:
            template = template_node.create_dom_from_children()

        script_node = self._required_section(dom, "script", res_path)
        script_src = script_node.get_optional_value_attribute("src")
        script = self._section_text(script_node, script_src, res_path, ResourceType.PYTHON, sources)

        return Component(
            path=res_path,
            template=template,
            script=script,
            script_src=script_src,
            template_src=template_src,
            style=self._parse_style(dom, res_path, sources),
            sources=frozenset(sources),
        )

    def _parse_style(self, dom: DocumentNode, res_path: str, sources: Set[str]) -> Optional[ComponentStyle]:
        style_node = dom.find_child_tag("style", deep=False)
        if style_node is None:
            return None

        bind_name = style_node.get_optional_value_attribute("bind") or StyleBind.HEAD.value
        try:
            bind = StyleBind(bind_name)
        except ValueError as exc:
            raise ComponentFormatError(f"Unknown component <style> bind: '{bind_name}'", res_path) from exc

        src = style_node.get_optional_value_attribute("src")
        text = self._section_text(style_node, src, res_path, ResourceType.CSS, sources)
        return ComponentStyle(text=text, bind=bind, src=src)

    def _section_text(
        self, node: TagNode, src: Optional[str], res_path: str, kind: ResourceType, sources: Set[str]
    ) -> str:
        if src is not None:
            src_path = resolve_res_path(src, res_path)
            sources.add(src_path)
            return self.pipeline.get_raw_text(src_path, kind)

        text = node.text_content
        if not text.strip():
            raise ComponentFormatError(f"Component <{node.tag_name}> section cannot be empty", res_path)
        return text

    @staticmethod
    def _required_section(dom: DocumentNode, name: str, res_path: str) -> TagNode:
        node = dom.find_child_tag(name, deep=False)
        if node is None:
            raise ComponentFormatError(f"Component is missing required section: <{name}>", res_path)
        return node
