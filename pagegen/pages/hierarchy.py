"""Parent/child repair over a batch of page configs."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..logging import get_logger
from ..models import PageConfig

logger = get_logger("pages.hierarchy")


class HierarchyResolver:
    """Turns arbitrary parent references into an acyclic forest.

    The batch list is the arena; ``owners`` maps a level id to the index of the
    first config that declared it. Repairs clear ``parent`` and record a
    validation error on the config that was fixed.
    """

    def resolve(self, configs: Sequence[PageConfig]) -> Sequence[PageConfig]:
        owners = self._index_levels(configs)
        self._clear_orphans(configs, owners)
        self._clear_self_references(configs)
        adjacency = self._adjacency(configs, owners)
        self._break_cycles(configs, adjacency)
        self._assign_children(configs, owners)
        return configs

    @staticmethod
    def _index_levels(configs: Sequence[PageConfig]) -> Dict[str, int]:
        owners: Dict[str, int] = {}
        for index, page in enumerate(configs):
            if page.level in owners:
                first = configs[owners[page.level]]
                page.validation_errors.append(
                    f"duplicate level {page.level!r}; already used by {first.name!r}"
                )
                logger.warning("Duplicate level %r in %s", page.level, page.metadata.filename or page.name)
                # Duplicates never join the tree.
                page.parent = ""
                continue
            owners[page.level] = index
        return owners

    @staticmethod
    def _clear_orphans(configs: Sequence[PageConfig], owners: Dict[str, int]) -> None:
        for page in configs:
            if page.parent and page.parent not in owners:
                page.validation_errors.append(f"orphan parent {page.parent!r}; parent does not exist")
                logger.debug("Cleared orphan parent %r on %s", page.parent, page.name)
                page.parent = ""

    @staticmethod
    def _clear_self_references(configs: Sequence[PageConfig]) -> None:
        for page in configs:
            if page.parent and page.parent == page.level:
                page.validation_errors.append(
                    f"cyclic dependency: {page.name!r} is its own parent; parent cleared"
                )
                page.parent = ""

    @staticmethod
    def _adjacency(configs: Sequence[PageConfig], owners: Dict[str, int]) -> List[List[int]]:
        adjacency: List[List[int]] = [[] for _ in configs]
        for index, page in enumerate(configs):
            if page.parent and owners.get(page.level) == index:
                adjacency[owners[page.parent]].append(index)
        return adjacency

    @staticmethod
    def _break_cycles(configs: Sequence[PageConfig], adjacency: List[List[int]]) -> None:
        visited = [False] * len(configs)
        on_path = [False] * len(configs)
        for start in range(len(configs)):
            if visited[start]:
                continue
            visited[start] = True
            on_path[start] = True
            stack = [(start, iter(adjacency[start]))]
            while stack:
                node, edges = stack[-1]
                advanced = False
                for child in edges:
                    if on_path[child]:
                        # Edge node -> child closes a cycle; cut child's parent link.
                        page = configs[child]
                        page.validation_errors.append(
                            f"cyclic dependency through parent {page.parent!r}; parent cleared"
                        )
                        logger.warning("Broke parent cycle at %s", page.name)
                        page.parent = ""
                        continue
                    if visited[child]:
                        continue
                    visited[child] = True
                    on_path[child] = True
                    stack.append((child, iter(adjacency[child])))
                    advanced = True
                    break
                if not advanced:
                    on_path[node] = False
                    stack.pop()

    @staticmethod
    def _assign_children(configs: Sequence[PageConfig], owners: Dict[str, int]) -> None:
        for page in configs:
            page.children = []
        for index, page in enumerate(configs):
            if not page.parent or owners.get(page.level) != index:
                continue
            owner = owners.get(page.parent)
            if owner is None or owner == index:
                continue
            configs[owner].children.append(page.level)


def compute_depths(configs: Sequence[PageConfig]) -> Dict[str, int]:
    """Depth of every owned level in a repaired forest; roots are depth 0."""
    owners: Dict[str, PageConfig] = {}
    for page in configs:
        owners.setdefault(page.level, page)
    depths: Dict[str, int] = {}
    for level in owners:
        chain: List[str] = []
        current = level
        while current not in depths:
            chain.append(current)
            parent = owners[current].parent
            if not parent or parent not in owners or parent in chain:
                depths[current] = 0
                chain.pop()
                break
            current = parent
        base = depths[current]
        for offset, item in enumerate(reversed(chain), start=1):
            depths[item] = base + offset
    return depths


__all__ = ["HierarchyResolver", "compute_depths"]
