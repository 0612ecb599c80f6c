"""``<a compiled resolve="...">``: rewrite ``href`` relative to a chosen base.

- ``root``: relative to the directory of the page being built (default)
- ``local``: relative to the directory of the current fragment
- ``base``: relative to the project root, as seen from the page
- ``none``: unchanged
"""

from __future__ import annotations

import posixpath

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import TagNode
from pagesmith.errors import StructuralError
from pagesmith.pipeline.context import FragmentContext
from pagesmith.pipeline.paths import normalize_res_path

RESOLVE_MODES = ("root", "local", "base", "none")


def resolve_anchor_href(href: str, resolve: str, fragment_context: FragmentContext) -> str:
    if resolve == "root":
        return posixpath.join(posixpath.dirname(fragment_context.root_res_path), href)
    if resolve == "local":
        return posixpath.join(posixpath.dirname(fragment_context.fragment_res_path), href)
    if resolve == "base":
        root_dir = normalize_res_path(posixpath.dirname(fragment_context.root_res_path))
        if not root_dir:
            return href
        inverted = "/".join(".." for _ in root_dir.split("/"))
        return f"{inverted}/{href}"
    if resolve == "none":
        return href
    raise ValueError(f"Invalid anchor resolve mode: {resolve}")


class AnchorModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not (isinstance(node, TagNode) and node.tag_name == "a" and node.has_attribute("compiled")):
            return

        resolve = node.get_optional_value_attribute("resolve") or "root"
        if resolve not in RESOLVE_MODES:
            raise StructuralError(f"Invalid <a> resolve mode '{resolve}'", ctx.res_path)

        href = node.get_required_value_attribute("href", ctx.res_path)
        node.set_attribute("href", resolve_anchor_href(href, resolve, ctx.fragment_context))
        node.delete_attribute("compiled")
        node.delete_attribute("resolve")
