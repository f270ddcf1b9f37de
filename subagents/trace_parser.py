# subagents/trace_parser.py

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from subagents.models import EventBatch, ExecutionEvent, SubagentEventType

SPINNER_CHARS = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

_SPAWN_RE = re.compile(rf"^[\s{SPINNER_CHARS}]*Task:?\s*(.+)$")
_COMPLETE_RE = re.compile(r"^[\s✓✔☑]*\s*Task\s+(completed|done|finished)", re.IGNORECASE)
_FAILED_RE = re.compile(r"^[\s✗✘×]*\s*Task\s+(failed|error|aborted)", re.IGNORECASE)
_PROGRESS_RE = re.compile(rf"^[\s{SPINNER_CHARS}]*[{SPINNER_CHARS}]+\s*(.+)$")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StreamingParser:
    """
    Turns agent console output into subagent events, one line at a time.

    Ids encode lineage: the n-th spawn under `agent-1` is `agent-1-sub-n`, and a
    spawn while `agent-1-sub-2` is open becomes `agent-1-sub-2-sub-m`.
    """

    def __init__(self, parent_agent_id: str, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.parent_agent_id = parent_agent_id
        self.clock = clock or _utc_now
        self._counters: Dict[str, int] = {}
        self._stack: List[str] = []

    def parse_line(self, line: str) -> Optional[ExecutionEvent]:
        # Completion/failure first: "Task completed" would otherwise read as a spawn
        if _COMPLETE_RE.match(line):
            return self._close(SubagentEventType.COMPLETED, "Task completed")

        if _FAILED_RE.match(line):
            return self._close(SubagentEventType.FAILED, "Task failed")

        m = _SPAWN_RE.match(line)
        if m:
            description = m.group(1).strip().lstrip(":").strip()
            if description:
                return self._spawn(description)
            return None

        if self._stack:
            m = _PROGRESS_RE.match(line)
            if m:
                text = m.group(1).strip()
                if text and not text.startswith("Task"):
                    return self._event(
                        SubagentEventType.PROGRESS,
                        self._stack[-1],
                        self._parent_of_top(),
                        text,
                        depth=len(self._stack) - 1,
                    )

        return None

    def parse_output(self, output: str) -> List[ExecutionEvent]:
        events: List[ExecutionEvent] = []
        for line in output.splitlines():
            event = self.parse_line(line)
            if event is not None:
                events.append(event)
        return events

    def current_depth(self) -> int:
        return len(self._stack)

    def current_subagent(self) -> Optional[str]:
        return self._stack[-1] if self._stack else None

    def reset(self) -> None:
        self._counters = {}
        self._stack = []

    # ---------------- internals ----------------

    def _parent_of_top(self) -> str:
        return self._stack[-2] if len(self._stack) > 1 else self.parent_agent_id

    def _spawn(self, description: str) -> ExecutionEvent:
        parent = self._stack[-1] if self._stack else self.parent_agent_id
        n = self._counters.get(parent, 0) + 1
        self._counters[parent] = n

        subagent_id = f"{parent}-sub-{n}"
        depth = len(self._stack)
        self._stack.append(subagent_id)
        return self._event(SubagentEventType.SPAWNED, subagent_id, parent, description, depth=depth)

    def _close(self, event_type: SubagentEventType, description: str) -> Optional[ExecutionEvent]:
        if not self._stack:
            return None
        parent = self._parent_of_top()
        subagent_id = self._stack.pop()
        return self._event(event_type, subagent_id, parent, description, depth=len(self._stack))

    def _event(
        self,
        event_type: SubagentEventType,
        subagent_id: str,
        parent_id: str,
        description: str,
        *,
        depth: int,
    ) -> ExecutionEvent:
        return ExecutionEvent(
            subagent_id=subagent_id,
            parent_agent_id=parent_id,
            event_type=event_type.value,
            depth=depth,
            timestamp=self.clock(),
            description=description,
        )


@dataclass
class TraceLog:
    """
    Everything parsed for one agent so far: ordered events, parent -> children
    ids, and the ids spawned but not yet finished.
    """
    events: List[ExecutionEvent] = field(default_factory=list)
    hierarchy: Dict[str, List[str]] = field(default_factory=dict)
    active: List[str] = field(default_factory=list)

    def add_event(self, event: ExecutionEvent) -> None:
        event_type = event.known_type
        if event_type == SubagentEventType.SPAWNED:
            if event.subagent_id not in self.active:
                self.active.append(event.subagent_id)
            children = self.hierarchy.setdefault(event.parent_agent_id, [])
            if event.subagent_id not in children:
                children.append(event.subagent_id)
        elif event_type in (SubagentEventType.COMPLETED, SubagentEventType.FAILED):
            self.active = [i for i in self.active if i != event.subagent_id]
        self.events.append(event)

    def extend(self, events: List[ExecutionEvent]) -> None:
        for event in events:
            self.add_event(event)

    def children_of(self, parent_id: str) -> List[ExecutionEvent]:
        child_ids = set(self.hierarchy.get(parent_id, []))
        return [
            e for e in self.events
            if e.known_type == SubagentEventType.SPAWNED and e.subagent_id in child_ids
        ]

    def events_for(self, subagent_id: str) -> List[ExecutionEvent]:
        return [e for e in self.events if e.subagent_id == subagent_id]

    def is_active(self, subagent_id: str) -> bool:
        return subagent_id in self.active

    def max_depth(self) -> int:
        return max((e.depth for e in self.events), default=0)

    def to_batch(self) -> EventBatch:
        return EventBatch(
            events=list(self.events),
            hierarchy={k: list(v) for k, v in self.hierarchy.items()},
            active=list(self.active),
        )
