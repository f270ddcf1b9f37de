from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from subagents.merge import NodeRecord
from subagents.models import SubagentNode

LINEAGE_SEPARATOR = "-sub-"


def lineage_parent(subagent_id: str) -> Optional[str]:
    """'agent-1-sub-2-sub-1' -> 'agent-1-sub-2'; None when the id carries no lineage."""
    if LINEAGE_SEPARATOR not in subagent_id:
        return None
    parent = subagent_id.rsplit(LINEAGE_SEPARATOR, 1)[0]
    return parent or None


def resolve_parents(
    nodes: Mapping[str, NodeRecord],
    hierarchy: Optional[Mapping[str, Sequence[str]]] = None,
) -> Dict[str, Optional[str]]:
    """
    Parent id (or None for a root) for every node in the map.

    Explicit hierarchy first (first listing of a child wins). Everything else is
    inferred: depth 0 is a root, then the declared parent, then id lineage, and
    otherwise the node is an orphan root. Parent chains that loop are cut.
    """
    parent_of: Dict[str, Optional[str]] = {}

    for parent_id, child_ids in (hierarchy or {}).items():
        if parent_id not in nodes:
            continue
        for child_id in child_ids or []:
            if child_id in nodes and child_id != parent_id and child_id not in parent_of:
                parent_of[child_id] = parent_id

    for node_id, rec in nodes.items():
        if node_id not in parent_of:
            parent_of[node_id] = _infer_parent(rec, nodes)

    _cut_loops(list(nodes.keys()), parent_of)
    return parent_of


def _infer_parent(rec: NodeRecord, nodes: Mapping[str, NodeRecord]) -> Optional[str]:
    if rec.depth == 0:
        return None
    if rec.parent_id in nodes and rec.parent_id != rec.id:
        return rec.parent_id
    lineage = lineage_parent(rec.id)
    if lineage is not None and lineage in nodes:
        return lineage
    return None


def _cut_loops(order: List[str], parent_of: Dict[str, Optional[str]]) -> None:
    settled: Set[str] = set()
    for start in order:
        walk: Set[str] = set()
        cur: Optional[str] = start
        while cur is not None and cur not in settled:
            if cur in walk:
                parent_of[cur] = None
                break
            walk.add(cur)
            cur = parent_of.get(cur)
        settled |= walk


def build_forest(
    nodes: Mapping[str, NodeRecord],
    hierarchy: Optional[Mapping[str, Sequence[str]]] = None,
) -> Tuple[Tuple[SubagentNode, ...], Dict[str, SubagentNode]]:
    """
    Rebuild the whole forest from the flat map.

    Returns (roots, by_id). Roots and siblings are ordered most recently
    started first; ties keep first-seen order.
    """
    parent_of = resolve_parents(nodes, hierarchy)

    children: Dict[str, List[str]] = {node_id: [] for node_id in nodes}
    root_ids: List[str] = []
    for node_id in nodes:
        parent_id = parent_of[node_id]
        if parent_id is None:
            root_ids.append(node_id)
        else:
            children[parent_id].append(node_id)

    def _newest_first(ids: List[str]) -> List[str]:
        return sorted(ids, key=lambda i: nodes[i].started_at, reverse=True)

    root_ids = _newest_first(root_ids)
    for node_id in children:
        children[node_id] = _newest_first(children[node_id])

    # post-order freeze without recursion
    frozen: Dict[str, SubagentNode] = {}
    for root_id in root_ids:
        stack: List[Tuple[str, bool]] = [(root_id, False)]
        while stack:
            node_id, expanded = stack.pop()
            if expanded:
                frozen[node_id] = nodes[node_id].freeze(
                    tuple(frozen[c] for c in children[node_id])
                )
                continue
            stack.append((node_id, True))
            for child_id in children[node_id]:
                stack.append((child_id, False))

    roots = tuple(frozen[r] for r in root_ids)
    by_id = {node_id: frozen[node_id] for node_id in nodes}
    return roots, by_id
