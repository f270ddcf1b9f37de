from __future__ import annotations

from typing import AbstractSet, List

from story_graph.models import (
    DependencyGraph,
    ReadinessStatus,
    UnresolvedDependencyPolicy,
    WorkItem,
)


def blocked_by(
    item: WorkItem,
    graph: DependencyGraph,
    policy: UnresolvedDependencyPolicy = UnresolvedDependencyPolicy.BLOCK,
) -> List[str]:
    """
    Dependency ids currently holding `item` back, in the item's own order.
    Unresolved ids are included only under the BLOCK policy.
    """
    resolved = set(graph.dependencies_of(item.id))
    unresolved = set(graph.unresolved_of(item.id))

    out: List[str] = []
    for dep in item.dependency_ids or []:
        if dep in out:
            continue
        if dep in resolved:
            if not graph.items[dep].passes:
                out.append(dep)
        elif dep in unresolved and policy == UnresolvedDependencyPolicy.BLOCK:
            out.append(dep)
    return out


def classify(
    item: WorkItem,
    graph: DependencyGraph,
    running_ids: AbstractSet[str],
    policy: UnresolvedDependencyPolicy = UnresolvedDependencyPolicy.BLOCK,
) -> ReadinessStatus:
    """
    First match wins: done > running > blocked > ready > pending.
    """
    if item.passes:
        return ReadinessStatus.DONE

    if item.id in running_ids:
        return ReadinessStatus.RUNNING

    if blocked_by(item, graph, policy):
        return ReadinessStatus.BLOCKED

    if not item.dependency_ids:
        return ReadinessStatus.READY

    unresolved = graph.unresolved_of(item.id)
    if unresolved and policy != UnresolvedDependencyPolicy.IGNORE:
        # PENDING policy: an unknown dependency is neither met nor unmet
        return ReadinessStatus.PENDING

    if all(graph.items[dep].passes for dep in graph.dependencies_of(item.id)):
        return ReadinessStatus.READY

    return ReadinessStatus.PENDING
