# schemas.py

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from story_graph.models import WorkItem
from subagents.models import ExecutionEvent


class _Wire(BaseModel):
    # backend payloads are camelCase; tests and callers may use field names
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InvokeRequest(_Wire):
    cmd: str
    args: Dict[str, Any] = Field(default_factory=dict)


class InvokeResponse(_Wire):
    success: bool
    data: Any = None
    error: Optional[str] = None


class StoryPayload(_Wire):
    id: str
    title: str = ""
    passes: bool = False
    priority: int = 0
    dependencies: List[str] = Field(default_factory=list)
    effort: Optional[str] = None

    def to_work_item(self) -> WorkItem:
        return WorkItem(
            id=self.id,
            dependency_ids=list(self.dependencies),
            passes=self.passes,
            priority=self.priority,
            effort=self.effort,
            title=self.title,
        )


class PrdPayload(_Wire):
    title: str = ""
    stories: List[StoryPayload] = Field(default_factory=list)


class SubagentEventPayload(_Wire):
    subagent_id: str = Field(alias="subagentId", min_length=1)
    parent_agent_id: str = Field(default="", alias="parentAgentId")
    event_type: str = Field(alias="eventType")
    depth: int = Field(default=0, ge=0)
    description: str = ""
    timestamp: datetime
    duration_secs: Optional[float] = Field(default=None, alias="durationSecs")
    error: Optional[str] = None
    summary: Optional[str] = None
    subagent_type: Optional[str] = Field(default=None, alias="subagentType")

    def to_event(self) -> ExecutionEvent:
        return ExecutionEvent(
            subagent_id=self.subagent_id,
            parent_agent_id=self.parent_agent_id,
            event_type=self.event_type.strip().lower(),
            depth=self.depth,
            timestamp=self.timestamp,
            description=self.description or "",
            duration_secs=self.duration_secs,
            error=self.error,
            summary=self.summary,
            subagent_type=self.subagent_type,
        )


class SubagentTreePayload(_Wire):
    # events stay raw here so one malformed event does not reject the whole poll
    events: List[Dict[str, Any]] = Field(default_factory=list)
    hierarchy: Dict[str, List[str]] = Field(default_factory=dict)
    active: List[str] = Field(default_factory=list)


class TraceSummary(_Wire):
    total_events: int = Field(default=0, alias="totalEvents")
    active_ids: List[str] = Field(default_factory=list, alias="activeSubagents")
    max_depth: int = Field(default=0, alias="maxDepth")
    spawn_count: int = Field(default=0, alias="spawnCount")
    complete_count: int = Field(default=0, alias="completeCount")
    fail_count: int = Field(default=0, alias="failCount")

    @property
    def counts_by_outcome(self) -> Dict[str, int]:
        return {"completed": self.complete_count, "failed": self.fail_count}
