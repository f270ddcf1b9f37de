from __future__ import annotations

from typing import Iterator, List, Optional, Set, Tuple

from story_graph.models import DependencyGraph


def detect_cycle(graph: DependencyGraph) -> Optional[List[str]]:
    """
    Depth-first search along dependency edges with an explicit stack.

    Roots are tried in input order and dependencies in list order, so the
    reported cycle is deterministic. Returns the first cycle found as the path
    suffix starting at the repeated node (the closing node is not repeated),
    or None when the graph is acyclic.
    """
    visited: Set[str] = set()

    for root in graph.order:
        if root in visited:
            continue

        path: List[str] = [root]
        on_path: Set[str] = {root}
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.dependencies_of(root)))]
        visited.add(root)

        while stack:
            node, deps = stack[-1]
            descended = False

            for dep in deps:
                if dep in on_path:
                    return path[path.index(dep):]
                if dep not in visited:
                    visited.add(dep)
                    path.append(dep)
                    on_path.add(dep)
                    stack.append((dep, iter(graph.dependencies_of(dep))))
                    descended = True
                    break

            if not descended:
                stack.pop()
                path.pop()
                on_path.discard(node)

    return None
