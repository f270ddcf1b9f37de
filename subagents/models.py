from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


class SubagentEventType(str, Enum):
    SPAWNED = "spawned"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"


ACTIVE_TYPES = frozenset({SubagentEventType.SPAWNED, SubagentEventType.PROGRESS})
OUTCOME_TYPES = (SubagentEventType.COMPLETED, SubagentEventType.FAILED)


def parse_event_type(value: object) -> Optional[SubagentEventType]:
    """Known event type, or None for anything this build does not understand."""
    if isinstance(value, SubagentEventType):
        return value
    s = str(value or "").strip().lower()
    try:
        return SubagentEventType(s)
    except ValueError:
        return None


def as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class ExecutionEvent:
    subagent_id: str
    parent_agent_id: str
    event_type: str
    depth: int
    timestamp: datetime
    description: str = ""

    # Carried by some payloads only
    duration_secs: Optional[float] = None
    error: Optional[str] = None
    summary: Optional[str] = None
    subagent_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"Event depth must be >= 0, got {self.depth} for {self.subagent_id!r}")
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))
        if isinstance(self.event_type, SubagentEventType):
            object.__setattr__(self, "event_type", self.event_type.value)

    @property
    def known_type(self) -> Optional[SubagentEventType]:
        return parse_event_type(self.event_type)

    @property
    def key(self) -> Tuple[str, str, datetime]:
        return (self.subagent_id, self.event_type, self.timestamp)


@dataclass(frozen=True)
class SubagentNode:
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
    children: Tuple["SubagentNode", ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_TYPES

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class EventBatch:
    """One poll's worth of trace data for an agent."""
    events: List[ExecutionEvent] = field(default_factory=list)
    hierarchy: Dict[str, List[str]] = field(default_factory=dict)
    active: List[str] = field(default_factory=list)
