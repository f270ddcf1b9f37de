from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

import io_utils
from io_utils import get_user_input, load_prd_file
from schemas import SubagentEventPayload


def test_load_prd_file_accepts_object_or_bare_list(tmp_path):
    obj = tmp_path / "prd.json"
    obj.write_text(
        json.dumps({"title": "x", "stories": [{"id": "A"}, {"id": "B", "dependencies": ["A"], "priority": 2}]}),
        encoding="utf-8",
    )
    bare = tmp_path / "stories.json"
    bare.write_text(json.dumps([{"id": "A", "passes": True}]), encoding="utf-8")

    items = load_prd_file(obj)
    assert [wi.id for wi in items] == ["A", "B"]
    assert items[1].dependency_ids == ["A"]
    assert items[1].priority == 2

    assert load_prd_file(str(bare))[0].passes is True


def test_load_prd_file_rejects_story_without_id(tmp_path):
    p = tmp_path / "prd.json"
    p.write_text(json.dumps({"stories": [{"title": "nameless"}]}), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_prd_file(p)


def test_event_payload_accepts_field_names_and_aliases():
    by_alias = SubagentEventPayload.model_validate(
        {"subagentId": "s1", "eventType": " COMPLETED ", "timestamp": "2026-01-01T00:00:00+02:00", "durationSecs": 1.5}
    )
    by_name = SubagentEventPayload(subagent_id="s1", event_type="progress", timestamp="2026-01-01T00:00:00")

    event = by_alias.to_event()
    assert event.event_type == "completed"
    assert event.duration_secs == 1.5
    assert event.timestamp.hour == 22
    assert by_name.to_event().parent_agent_id == ""


def test_get_user_input_uses_the_operator_prompt(monkeypatch):
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt: prompts.append(prompt) or ":graph")

    assert get_user_input() == ":graph"
    assert prompts == [f"{io_utils.OPERATOR_LABEL} > "]
