from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from subagents.merge import NodeRecord
from subagents.models import ACTIVE_TYPES, OUTCOME_TYPES


@dataclass(frozen=True)
class ActivitySummary:
    active_count: int
    total_count: int
    counts_by_outcome: Dict[str, int]
    active_ids: Tuple[str, ...]
    max_depth: int


def summarize(nodes: Mapping[str, NodeRecord]) -> ActivitySummary:
    counts_by_outcome: Dict[str, int] = {t.value: 0 for t in OUTCOME_TYPES}
    active_ids = []
    max_depth = 0

    for node_id, rec in nodes.items():
        if rec.status in ACTIVE_TYPES:
            active_ids.append(node_id)
        elif rec.status.value in counts_by_outcome:
            counts_by_outcome[rec.status.value] += 1
        max_depth = max(max_depth, rec.depth)

    return ActivitySummary(
        active_count=len(active_ids),
        total_count=len(nodes),
        counts_by_outcome=counts_by_outcome,
        active_ids=tuple(active_ids),
        max_depth=max_depth,
    )
