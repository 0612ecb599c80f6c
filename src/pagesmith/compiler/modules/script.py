"""``<script>`` handling.

``<script compiled>`` runs Python at compile time in the enclosing scope
and is removed. ``<script bind="head|link">`` is a client-side script whose
content is either kept inline or written once as a shared resource and
referenced with ``src``.
"""

from __future__ import annotations

from pagesmith.compiler.compiler import CompilerContext, CompilerModule
from pagesmith.dom.node import TagNode, TextNode
from pagesmith.errors import StructuralError
from pagesmith.pipeline.fragment import StyleBind
from pagesmith.pipeline.io import ResourceType
from pagesmith.pipeline.paths import resolve_res_path


def read_section(node: TagNode, ctx: CompilerContext, kind: ResourceType) -> str:
    """Text of a script/style node, from ``src`` if given, else its content."""
    src = node.get_optional_value_attribute("src")
    if src is not None:
        return ctx.pipeline.get_raw_text(resolve_res_path(src, ctx.res_path), kind)
    return node.text_content


def parse_bind(node: TagNode, ctx: CompilerContext) -> StyleBind:
    bind = node.get_optional_value_attribute("bind") or StyleBind.HEAD.value
    try:
        return StyleBind(bind)
    except ValueError as exc:
        raise StructuralError(
            f"Unknown bind mode '{bind}' on <{node.tag_name}>", ctx.res_path
        ) from exc


class ScriptModule(CompilerModule):
    def enter_node(self, ctx: CompilerContext) -> None:
        node = ctx.node
        if not isinstance(node, TagNode) or node.tag_name != "script":
            return

        if node.has_attribute("compiled"):
            self._run_compiled(node, ctx)
        elif node.has_attribute("bind"):
            self._bind_client_script(node, ctx)

    def _run_compiled(self, node: TagNode, ctx: CompilerContext) -> None:
        source = read_section(node, ctx, ResourceType.PYTHON)

        # runs against the enclosing scope so its bindings are visible to siblings
        target = ctx.parent_scope()
        bindings = ctx.pipeline.run_script(source, ctx.create_eval_context(target))
        target.update(bindings)

        node.detach()
        ctx.set_deleted()

    def _bind_client_script(self, node: TagNode, ctx: CompilerContext) -> None:
        bind = parse_bind(node, ctx)
        content = read_section(node, ctx, ResourceType.JAVASCRIPT)

        attributes = {
            k: v for k, v in node.attributes.items() if k not in ("bind", "src")
        }
        replacement = TagNode("script", attributes)

        if bind == StyleBind.LINK:
            replacement.set_attribute(
                "src",
                ctx.pipeline.link_resource(
                    ResourceType.JAVASCRIPT, content, ctx.fragment_context.root_res_path
                ),
            )
        else:
            replacement.append_child(TextNode(content))

        node.replace_self([replacement])
        ctx.set_replaced()
