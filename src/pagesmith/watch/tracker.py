"""Page/resource dependency graph for incremental rebuilds."""

from __future__ import annotations

from typing import Dict, Iterable, Set


class DependencyTracker:
    """Bipartite graph of pages and the resources their last compile read.

    An edge P -> R means "the last compile of page P read resource R".
    Both directions are indexed so either side can be queried directly.
    """

    def __init__(self) -> None:
        self._page_to_resources: Dict[str, Set[str]] = {}
        self._resource_to_pages: Dict[str, Set[str]] = {}

    def set_page_dependencies(self, page: str, resources: Iterable[str]) -> None:
        """Replace every edge out of ``page``, even with an empty set."""
        new_resources = set(resources)

        for resource in self._page_to_resources.get(page, set()) - new_resources:
            pages = self._resource_to_pages.get(resource)
            if pages is not None:
                pages.discard(page)
                if not pages:
                    del self._resource_to_pages[resource]

        for resource in new_resources:
            self._resource_to_pages.setdefault(resource, set()).add(page)

        self._page_to_resources[page] = new_resources

    def remove_page(self, page: str) -> None:
        self.set_page_dependencies(page, ())
        del self._page_to_resources[page]

    def has_page(self, path: str) -> bool:
        return path in self._page_to_resources

    def dependents_of(self, resource: str) -> Set[str]:
        """Pages whose last compile read ``resource``."""
        return set(self._resource_to_pages.get(resource, ()))

    def dependencies_of(self, page: str) -> Set[str]:
        return set(self._page_to_resources.get(page, ()))

    def all_tracked(self) -> Set[str]:
        """Every page and every resource that appears in the graph."""
        return set(self._page_to_resources) | set(self._resource_to_pages)

    def minimal_rebuild_set(self, changed: Iterable[str]) -> Set[str]:
        """Pages that must be recompiled after ``changed`` resources change.

        A changed page is rebuilt directly; a changed resource rebuilds
        every page with an edge to it.
        """
        rebuild: Set[str] = set()
        for path in changed:
            if self.has_page(path):
                rebuild.add(path)
            rebuild |= self.dependents_of(path)
        return rebuild
