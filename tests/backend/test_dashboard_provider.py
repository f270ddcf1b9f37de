from __future__ import annotations

from datetime import timezone

import pytest

import config
from backend.client import BackendError, BackendServer
from backend.provider import DashboardBackend
from story_graph.resolver import resolve
from subagents.aggregator import ExecutionEventAggregator


class ScriptedSession:
    """Answers each command with a canned `data` value."""

    def __init__(self, answers):
        self.answers = answers
        self.commands = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.commands.append((json["cmd"], json["args"]))
        answer = self.answers[json["cmd"]]
        return _Resp({"success": True, "data": answer})


class _Resp:
    status_code = 200

    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


def _backend(answers):
    session = ScriptedSession(answers)
    return DashboardBackend(server=BackendServer(base_url="http://b"), session=session), session


PRD = {
    "title": "Demo",
    "stories": [
        {"id": "US-1", "title": "Login", "passes": True, "priority": 1},
        {"id": "US-2", "title": "Logout", "priority": 2, "dependencies": ["US-1"], "effort": "S"},
    ],
}


def test_list_work_items_maps_prd_stories():
    backend, session = _backend({"get_ralph_prd": PRD})

    items = backend.list_work_items("/repo")

    assert session.commands == [("get_ralph_prd", {"projectPath": "/repo"})]
    assert [wi.id for wi in items] == ["US-1", "US-2"]
    assert items[1].dependency_ids == ["US-1"]
    assert items[1].effort == "S"
    assert resolve(items).statuses["US-2"].value == "ready"


def test_missing_prd_is_empty():
    backend, _ = _backend({"get_ralph_prd": None})

    assert backend.list_work_items("/repo") == []


def test_invalid_prd_raises_backend_error():
    backend, _ = _backend({"get_ralph_prd": {"stories": [{"title": "no id"}]}})

    with pytest.raises(BackendError):
        backend.list_work_items("/repo")


def test_poll_events_converts_camel_case_and_skips_malformed(monkeypatch, capsys):
    monkeypatch.setattr(config, "BACKEND_TRACE", True)
    tree = {
        "events": [
            {
                "subagentId": "s1",
                "parentAgentId": "root",
                "eventType": "Spawned",
                "depth": 1,
                "timestamp": "2026-01-01T12:00:00Z",
                "description": "Explore",
            },
            {"subagentId": "s1", "eventType": "completed", "timestamp": "2026-01-01T12:00:05Z"},
            {"subagentId": "bad", "eventType": "spawned", "depth": -2, "timestamp": "2026-01-01T12:00:00Z"},
            {"eventType": "spawned"},
        ],
        "hierarchy": {"root": ["s1"]},
        "active": [],
    }
    backend, session = _backend({"get_subagent_tree": tree})

    batch = backend.poll_events("root")

    assert session.commands[-1] == ("get_subagent_tree", {"agentId": "root"})
    assert [e.event_type for e in batch.events] == ["spawned", "completed"]
    assert batch.events[0].timestamp.tzinfo == timezone.utc
    assert batch.hierarchy == {"root": ["s1"]}
    assert capsys.readouterr().out.count("skipped malformed event") == 2

    agg = ExecutionEventAggregator("root")
    agg.ingest_batch(batch)
    snap = agg.snapshot()
    assert snap.total_count == 1
    assert snap.roots[0].status.value == "completed"


def test_poll_events_without_data_is_empty_batch():
    backend, _ = _backend({"get_subagent_tree": None})

    batch = backend.poll_events("root")

    assert batch.events == [] and batch.hierarchy == {}


def test_poll_summary_and_clear_trace():
    summary = {
        "totalEvents": 4,
        "activeSubagents": ["s2"],
        "maxDepth": 2,
        "spawnCount": 2,
        "completeCount": 1,
        "failCount": 0,
    }
    backend, session = _backend({"get_subagent_summary": summary, "clear_trace_data": None})

    s = backend.poll_summary("root")
    backend.clear_trace("root")

    assert s.total_events == 4
    assert s.active_ids == ["s2"]
    assert s.counts_by_outcome == {"completed": 1, "failed": 0}
    assert session.commands[-1] == ("clear_trace_data", {"agentId": "root"})
