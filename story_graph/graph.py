from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Set

from story_graph.models import DependencyGraph, WorkItem


def build_graph(items: Iterable[WorkItem]) -> DependencyGraph:
    """
    Single pass over the items:
    - forward and reverse adjacency for dependency ids that resolve to an item
    - unresolved ids kept aside (never an error)
    - repeated ids in one item's list collapse to one edge
    """
    items = list(items)

    by_id: Dict[str, WorkItem] = {}
    for wi in items:
        if wi.id in by_id:
            raise ValueError(f"Duplicate work item id: {wi.id!r}")
        by_id[wi.id] = wi

    dependencies: Dict[str, List[str]] = {wi.id: [] for wi in items}
    dependents: Dict[str, List[str]] = {wi.id: [] for wi in items}
    unresolved: Dict[str, List[str]] = {}

    for wi in items:
        seen: Set[str] = set()
        for dep in wi.dependency_ids or []:
            if dep in seen:
                continue
            seen.add(dep)

            if dep in by_id:
                dependencies[wi.id].append(dep)
                dependents[dep].append(wi.id)
            else:
                unresolved.setdefault(wi.id, []).append(dep)

    return DependencyGraph(
        order=tuple(wi.id for wi in items),
        items=by_id,
        dependencies=dependencies,
        dependents=dependents,
        unresolved=unresolved,
    )


def would_create_cycle(graph: DependencyGraph, dependent_id: str, dependency_id: str) -> bool:
    """
    True if making `dependent_id` depend on `dependency_id` would close a cycle,
    i.e. `dependency_id` already (transitively) depends on `dependent_id`.
    """
    if dependent_id == dependency_id:
        return True

    visited: Set[str] = set()
    queue = deque([dependency_id])

    while queue:
        current = queue.popleft()
        if current == dependent_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        queue.extend(graph.dependencies_of(current))

    return False
