# backend/provider.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

import config
from backend.client import BackendError, BackendServer, invoke
from schemas import PrdPayload, SubagentEventPayload, SubagentTreePayload, TraceSummary
from story_graph.models import WorkItem
from subagents.models import EventBatch, ExecutionEvent


@dataclass
class DashboardBackend:
    """
    Read/command surface of the orchestration backend used by the dashboard:
    stories for the resolver, subagent traces for the aggregator.
    """
    server: BackendServer = field(default_factory=BackendServer.from_config)
    session: Optional[requests.Session] = None

    def _invoke(self, cmd: str, args: Dict[str, Any]) -> Any:
        return invoke(self.server, cmd, args, session=self.session)

    def list_work_items(self, project_path: str) -> List[WorkItem]:
        data = self._invoke("get_ralph_prd", {"projectPath": project_path})
        if data is None:
            return []
        try:
            prd = PrdPayload.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Invalid PRD payload for {project_path!r}: {e}", cmd="get_ralph_prd") from e
        return [s.to_work_item() for s in prd.stories]

    def poll_events(self, agent_id: str) -> EventBatch:
        data = self._invoke("get_subagent_tree", {"agentId": agent_id})
        if data is None:
            return EventBatch()

        try:
            tree = SubagentTreePayload.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Invalid subagent tree for {agent_id!r}: {e}", cmd="get_subagent_tree") from e

        events: List[ExecutionEvent] = []
        for i, raw in enumerate(tree.events):
            try:
                events.append(SubagentEventPayload.model_validate(raw).to_event())
            except (ValidationError, ValueError) as e:
                if bool(getattr(config, "BACKEND_TRACE", False)):
                    print(f"[BACKEND] skipped malformed event #{i} for {agent_id}: {e}")
                continue

        return EventBatch(events=events, hierarchy=tree.hierarchy, active=tree.active)

    def poll_summary(self, agent_id: str) -> Optional[TraceSummary]:
        data = self._invoke("get_subagent_summary", {"agentId": agent_id})
        if data is None:
            return None
        try:
            return TraceSummary.model_validate(data)
        except ValidationError as e:
            raise BackendError(f"Invalid trace summary for {agent_id!r}: {e}", cmd="get_subagent_summary") from e

    def clear_trace(self, agent_id: str) -> None:
        self._invoke("clear_trace_data", {"agentId": agent_id})
