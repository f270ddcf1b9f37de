from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Set, Tuple

from subagents.models import ACTIVE_TYPES, ExecutionEvent, SubagentEventType, SubagentNode

EventKey = Tuple[str, str, datetime]


@dataclass
class NodeRecord:
    """
    Mutable per-subagent state held in the aggregator's flat map.
    Never handed out: snapshots are built from it as frozen SubagentNode values.
    """
    id: str
    parent_id: str
    description: str
    status: SubagentEventType
    depth: int
    started_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    duration_secs: Optional[float] = None
    error: Optional[str] = None
    summary: Optional[str] = None
    subagent_type: Optional[str] = None
    seen: Set[EventKey] = field(default_factory=set)

    def freeze(self, children: Tuple[SubagentNode, ...] = ()) -> SubagentNode:
        return SubagentNode(
            id=self.id,
            parent_id=self.parent_id,
            description=self.description,
            status=self.status,
            depth=self.depth,
            started_at=self.started_at,
            updated_at=self.updated_at,
            completed_at=self.completed_at,
            duration_secs=self.duration_secs,
            error=self.error,
            summary=self.summary,
            subagent_type=self.subagent_type,
            children=children,
        )


def merge_event(nodes: Dict[str, NodeRecord], event: ExecutionEvent) -> bool:
    """
    Fold one event into `nodes` (create-or-update). Returns False when the
    event was already absorbed, in which case nothing changes.

    Later events overwrite status without comparing timestamps; only the exact
    (subagent_id, event_type, timestamp) key is de-duplicated.
    """
    key = event.key
    event_type = event.known_type
    ts = event.timestamp

    rec = nodes.get(event.subagent_id)
    if rec is None:
        rec = NodeRecord(
            id=event.subagent_id,
            parent_id=event.parent_agent_id,
            description=event.description or "",
            status=event_type or SubagentEventType.SPAWNED,
            depth=event.depth,
            started_at=ts,
            updated_at=ts,
            summary=event.summary,
            subagent_type=event.subagent_type,
        )
        nodes[event.subagent_id] = rec
        rec.seen.add(key)
        _apply_outcome(rec, event, event_type)
        return True

    if key in rec.seen:
        return False
    rec.seen.add(key)

    if event_type is not None:
        rec.status = event_type

    if event_type in ACTIVE_TYPES:
        # back to active: drop the previous outcome
        rec.completed_at = None
        rec.duration_secs = None
        rec.error = None

    if event_type == SubagentEventType.SPAWNED:
        rec.started_at = ts
        rec.parent_id = event.parent_agent_id or rec.parent_id
        rec.depth = event.depth

    if event.description:
        rec.description = event.description
    if event.summary:
        rec.summary = event.summary
    if event.subagent_type:
        rec.subagent_type = event.subagent_type

    rec.updated_at = ts
    _apply_outcome(rec, event, event_type)
    return True


def _apply_outcome(
    rec: NodeRecord,
    event: ExecutionEvent,
    event_type: Optional[SubagentEventType],
) -> None:
    if event_type not in (SubagentEventType.COMPLETED, SubagentEventType.FAILED):
        return

    rec.completed_at = event.timestamp

    if event.duration_secs is not None:
        rec.duration_secs = float(event.duration_secs)
    else:
        elapsed = (event.timestamp - rec.started_at).total_seconds()
        rec.duration_secs = elapsed if elapsed >= 0 else None

    if event_type == SubagentEventType.FAILED:
        rec.error = event.error or event.description or rec.error
