# subagents/aggregator.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

import config
from subagents.merge import NodeRecord, merge_event
from subagents.models import EventBatch, ExecutionEvent, SubagentEventType, SubagentNode, as_utc
from subagents.summary import summarize
from subagents.tree import build_forest

STATUS_LABELS: Dict[SubagentEventType, str] = {
    SubagentEventType.SPAWNED: "Running",
    SubagentEventType.PROGRESS: "In Progress",
    SubagentEventType.COMPLETED: "Completed",
    SubagentEventType.FAILED: "Failed",
}


@dataclass
class AggregatorPolicy:
    highlight_window_s: float = field(
        default_factory=lambda: float(getattr(config, "NEW_NODE_HIGHLIGHT_S", 2.0))
    )
    trace: bool = field(default_factory=lambda: bool(getattr(config, "AGGREGATOR_TRACE", False)))


@dataclass(frozen=True)
class AggregatorSnapshot:
    roots: Tuple[SubagentNode, ...]
    nodes: Dict[str, SubagentNode]
    active_count: int
    total_count: int
    counts_by_outcome: Dict[str, int]
    active_ids: Tuple[str, ...]
    max_depth: int
    new_ids: FrozenSet[str]
    taken_at: datetime

    def get(self, subagent_id: str) -> Optional[SubagentNode]:
        return self.nodes.get(subagent_id)


def is_new(node: SubagentNode, now: datetime, window_s: float) -> bool:
    """Started within the last `window_s` seconds. Read-time only, nothing is stored."""
    elapsed = (as_utc(now) - node.started_at).total_seconds()
    return 0 <= elapsed < window_s


class ExecutionEventAggregator:
    """
    Live subagent tree for one monitored agent.

    - ingest(): folds events into a flat id -> record map (idempotent per event key)
    - snapshot(): rebuilds the forest + counts from that map, returns frozen values
    - clear(): explicit reset; nothing is ever evicted otherwise
    """

    def __init__(self, agent_id: str = "", policy: Optional[AggregatorPolicy] = None) -> None:
        self.agent_id = agent_id
        self.policy = policy or AggregatorPolicy()
        self._nodes: Dict[str, NodeRecord] = {}
        self._hierarchy: Dict[str, List[str]] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, subagent_id: object) -> bool:
        return subagent_id in self._nodes

    def ingest(
        self,
        events: Iterable[ExecutionEvent],
        hierarchy: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        merged = 0
        skipped = 0
        for event in events:
            if merge_event(self._nodes, event):
                merged += 1
            else:
                skipped += 1

        # accumulate; earlier listings keep precedence, only clear() resets
        for parent_id, child_ids in (hierarchy or {}).items():
            children = self._hierarchy.setdefault(str(parent_id), [])
            for child_id in child_ids or []:
                if str(child_id) not in children:
                    children.append(str(child_id))

        if self.policy.trace:
            print(
                f"[AGG] {self.agent_id or '-'} ingest: merged={merged} duplicate={skipped} "
                f"nodes={len(self._nodes)} hierarchy={'yes' if self._hierarchy else 'no'}"
            )

    def ingest_batch(self, batch: EventBatch) -> None:
        self.ingest(batch.events, batch.hierarchy)

    def clear(self) -> None:
        self._nodes = {}
        self._hierarchy = {}
        if self.policy.trace:
            print(f"[AGG] {self.agent_id or '-'} cleared")

    def snapshot(self, now: Optional[datetime] = None) -> AggregatorSnapshot:
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)

        roots, by_id = build_forest(self._nodes, self._hierarchy)
        summary = summarize(self._nodes)

        window = self.policy.highlight_window_s
        new_ids = frozenset(node_id for node_id, node in by_id.items() if is_new(node, now, window))

        return AggregatorSnapshot(
            roots=roots,
            nodes=by_id,
            active_count=summary.active_count,
            total_count=summary.total_count,
            counts_by_outcome=dict(summary.counts_by_outcome),
            active_ids=summary.active_ids,
            max_depth=summary.max_depth,
            new_ids=new_ids,
            taken_at=now,
        )

    def next_highlight_expiry(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """
        When the earliest current highlight runs out, so the caller knows when
        to re-query. None if nothing is highlighted.
        """
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        window = timedelta(seconds=self.policy.highlight_window_s)

        expiries = [
            rec.started_at + window
            for rec in self._nodes.values()
            if rec.started_at <= now < rec.started_at + window
        ]
        return min(expiries) if expiries else None


def format_duration(secs: float) -> str:
    if secs < 60:
        return f"{secs:.1f}s"
    return f"{int(secs // 60)}m {int(secs % 60)}s"


def describe_snapshot(snapshot: AggregatorSnapshot) -> str:
    """
    Indented text view of a snapshot (for the REPL / logs).
    """
    outcomes = snapshot.counts_by_outcome
    lines: List[str] = [
        f"Subagents: {snapshot.active_count} active / {snapshot.total_count} total "
        f"(completed {outcomes.get('completed', 0)}, failed {outcomes.get('failed', 0)}, "
        f"max depth {snapshot.max_depth})"
    ]

    if not snapshot.roots:
        lines.append("(no subagent activity yet)")
        return "\n".join(lines)

    stack: List[Tuple[SubagentNode, int]] = [(r, 0) for r in reversed(snapshot.roots)]
    while stack:
        node, indent = stack.pop()
        parts = [f"{'  ' * indent}- [{STATUS_LABELS[node.status]}] {node.id}"]
        if node.description:
            parts.append(node.description)
        if node.duration_secs is not None:
            parts.append(f"({format_duration(node.duration_secs)})")
        if node.id in snapshot.new_ids:
            parts.append("*new*")
        lines.append(" ".join(parts))
        if node.error:
            lines.append(f"{'  ' * (indent + 1)}error: {node.error}")
        stack.extend((c, indent + 1) for c in reversed(node.children))

    return "\n".join(lines)
