"""Usage and fragment contexts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Set, Tuple

from pagesmith.dom.node import DocumentNode
from pagesmith.eval.scope import Scope

DEFAULT_SLOT = "[default]"


@dataclass
class UsageContext:
    """One instantiation request: slot fills plus parameters.

    Built fresh for every reference and never shared or cached.
    """

    slot_contents: Dict[str, DocumentNode] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FragmentContext:
    """State for compiling one fragment instance.

    ``fragment_res_path`` is the fragment being compiled and
    ``root_res_path`` the page that will contain it. The style and link
    sets are shared by every fragment compiled into the same page.
    ``reference_chain`` lists the fragments being compiled from the page
    down to this one.
    """

    scope: Scope
    fragment_res_path: str
    root_res_path: str
    slot_contents: Dict[str, DocumentNode] = field(default_factory=dict)
    styles_in_page: Set[str] = field(default_factory=set)
    links_in_page: Set[str] = field(default_factory=set)
    reference_chain: Tuple[str, ...] = ()

    def create_sub_context(
        self, fragment_res_path: str, usage: UsageContext, root_scope: Scope
    ) -> "FragmentContext":
        """Context for a fragment referenced from this one.

        The new scope holds only the usage parameters and falls back to the
        pipeline root scope, never to the scope of the referencing node.
        """
        return FragmentContext(
            scope=root_scope.child(usage.parameters),
            fragment_res_path=fragment_res_path,
            root_res_path=self.root_res_path,
            slot_contents=usage.slot_contents,
            styles_in_page=self.styles_in_page,
            links_in_page=self.links_in_page,
            reference_chain=self.reference_chain + (fragment_res_path,),
        )
